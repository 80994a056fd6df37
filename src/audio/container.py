"""
src/audio/container.py
=======================
PCM Container Adapter - VoiceRedact

Responsibility:
    - Decode WAV bytes into a PcmStream: float samples normalized to
      [-1.0, 1.0], one row per frame, one column per channel
    - Encode a PcmStream back into WAV bytes with the original sample width
    - Pull a single channel out of a stream for the cut-and-splice pipeline

Supported sample widths: 8-bit (unsigned), 16-bit and 32-bit signed PCM.
Samples are held as float64 so 32-bit audio survives the round trip.

This module does NOT:
    - Resample, downmix or otherwise alter audio content
    - Decode compressed formats (see src/audio/normalizer.py)
"""

import io
import logging
import wave
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger("voiceredact.audio.container")


# ---------------------------------------------------------------------------
# Sample format tables
# ---------------------------------------------------------------------------

_DTYPE_MAP = {1: np.uint8, 2: np.dtype("<i2"), 4: np.dtype("<i4")}
_NORM_MAP = {1: 128.0, 2: 32768.0, 4: 2147483648.0}
_OFFSET_MAP = {1: 128.0, 2: 0.0, 4: 0.0}
_RANGE_MAP = {1: (0, 255), 2: (-32768, 32767), 4: (-2147483648, 2147483647)}


class ContainerError(Exception):
    """Raised when WAV bytes cannot be decoded or a stream cannot be encoded."""
    pass


@dataclass
class PcmStream:
    """Decoded multi-channel PCM audio."""

    sample_rate: int
    channel_count: int
    frames: np.ndarray
    sample_width: int = 2

    @property
    def frame_count(self) -> int:
        return int(self.frames.shape[0])

    @property
    def duration_ms(self) -> float:
        return self.frame_count * 1000.0 / self.sample_rate


# ---------------------------------------------------------------------------
# Decode / encode
# ---------------------------------------------------------------------------


def decode_wav(audio_bytes: bytes) -> PcmStream:
    """
    Decode WAV bytes into a PcmStream.

    Raises:
        ContainerError: If the bytes are not a readable PCM WAV file or
                        use an unsupported sample width.
    """
    if not audio_bytes:
        raise ContainerError("audio_bytes is empty - nothing to decode.")

    try:
        with wave.open(io.BytesIO(audio_bytes), "rb") as wf:
            sample_rate = wf.getframerate()
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            n_frames = wf.getnframes()
            raw_pcm = wf.readframes(n_frames)
    except (wave.Error, EOFError) as exc:
        raise ContainerError(f"Failed to read WAV audio: {exc}") from exc

    if sampwidth not in _DTYPE_MAP:
        raise ContainerError(
            f"Unsupported sample width {sampwidth * 8}-bit. "
            f"Supported: {', '.join(str(w * 8) for w in sorted(_DTYPE_MAP))}-bit."
        )

    usable = len(raw_pcm) - len(raw_pcm) % (sampwidth * n_channels)
    pcm = np.frombuffer(raw_pcm[:usable], dtype=_DTYPE_MAP[sampwidth]).astype(np.float64)
    pcm = (pcm - _OFFSET_MAP[sampwidth]) / _NORM_MAP[sampwidth]
    frames = pcm.reshape(-1, n_channels)

    logger.debug(
        "Decoded WAV: %d frames | %d Hz | %d ch | %d-bit",
        frames.shape[0], sample_rate, n_channels, sampwidth * 8,
    )
    return PcmStream(
        sample_rate=sample_rate,
        channel_count=n_channels,
        frames=frames,
        sample_width=sampwidth,
    )


def encode_wav(stream: PcmStream) -> bytes:
    """Encode a PcmStream as WAV bytes using the stream's sample width."""
    width = stream.sample_width
    if width not in _DTYPE_MAP:
        raise ContainerError(f"Unsupported sample width {width * 8}-bit.")

    frames = np.asarray(stream.frames, dtype=np.float64)
    if frames.ndim != 2 or frames.shape[1] != stream.channel_count:
        raise ContainerError(
            f"Frame layout {frames.shape} does not match "
            f"{stream.channel_count} channel(s)."
        )

    lo, hi = _RANGE_MAP[width]
    scaled = np.round(frames * _NORM_MAP[width] + _OFFSET_MAP[width])
    pcm = np.clip(scaled, lo, hi).astype(_DTYPE_MAP[width])

    buf = io.BytesIO()
    with wave.open(buf, "wb") as wf:
        wf.setnchannels(stream.channel_count)
        wf.setsampwidth(width)
        wf.setframerate(stream.sample_rate)
        wf.writeframes(pcm.tobytes())
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Channel helpers
# ---------------------------------------------------------------------------


def extract_channel(stream: PcmStream, channel: int) -> np.ndarray:
    """Return a copy of one channel's samples as a 1-D array."""
    if not 0 <= channel < stream.channel_count:
        raise ContainerError(
            f"Channel {channel} out of range for a {stream.channel_count}-channel stream."
        )
    return stream.frames[:, channel].copy()


def mono_stream(samples: np.ndarray, sample_rate: int, sample_width: int = 2) -> PcmStream:
    """Wrap a 1-D sample array as a single-channel PcmStream."""
    return PcmStream(
        sample_rate=sample_rate,
        channel_count=1,
        frames=np.asarray(samples, dtype=np.float64).reshape(-1, 1),
        sample_width=sample_width,
    )
