"""
src/audio/normalizer.py
========================
Audio Normalizer - VoiceRedact

Responsibility:
    - Validate uploaded audio (extension, non-empty, duration limit)
    - Turn any supported upload into WAV bytes the container adapter can
      decode, keeping every channel and the original sample rate

WAV uploads are passed through byte-for-byte. Other formats are decoded
with pydub (ffmpeg) and exported as 16-bit PCM WAV.

This module does NOT:
    - Downmix to mono or resample - channels must survive for
      per-channel redaction
    - Redact anything
"""

import io
import logging
import os

from pydub import AudioSegment
from pydub.exceptions import CouldntDecodeError

logger = logging.getLogger("voiceredact.audio.normalizer")


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

ALLOWED_EXTENSIONS = {".wav", ".mp3", ".m4a", ".flac"}
MAX_DURATION_SECONDS = float(os.getenv("MAX_AUDIO_DURATION_SECONDS", "1800"))
OUTPUT_FORMAT = "wav"
OUTPUT_SAMPLE_WIDTH = 2  # bytes - 16-bit PCM


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class AudioValidationError(Exception):
    """Raised when the uploaded audio file fails validation."""
    pass


class AudioNormalizationError(Exception):
    """Raised when audio conversion fails unexpectedly."""
    pass


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_extension(filename: str) -> None:
    """
    Check that the file extension is one of ALLOWED_EXTENSIONS.

    Raises:
        AudioValidationError: If the extension is not allowed.
    """
    if not filename:
        raise AudioValidationError("Filename is missing.")

    ext = _extract_extension(filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise AudioValidationError(
            f"Unsupported file type '{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )


def validate_not_empty(audio_bytes: bytes) -> None:
    """
    Check that the uploaded file is not empty (zero bytes).

    Raises:
        AudioValidationError: If the file has no content.
    """
    if not audio_bytes:
        raise AudioValidationError("Audio file is empty.")


def validate_duration(duration_seconds: float) -> None:
    """
    Check that audio duration does not exceed the safety limit.

    Zero-length audio is accepted; redacting it yields zero frames.

    Raises:
        AudioValidationError: If duration exceeds MAX_DURATION_SECONDS.
    """
    if duration_seconds > MAX_DURATION_SECONDS:
        raise AudioValidationError(
            f"Audio duration ({duration_seconds:.1f}s) exceeds the "
            f"maximum allowed ({MAX_DURATION_SECONDS:.0f}s)."
        )


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------


def to_wav(audio_bytes: bytes, filename: str) -> bytes:
    """
    Validate an upload and return it as WAV bytes.

    Steps:
        1. Validate file extension
        2. Validate file is non-empty
        3. WAV → returned untouched
        4. Otherwise decode with pydub, check duration, export 16-bit WAV

    Args:
        audio_bytes: Raw bytes of the uploaded audio file.
        filename:    Original filename (used for extension check).

    Returns:
        WAV bytes with the original channel count and sample rate.

    Raises:
        AudioValidationError:    On any validation failure.
        AudioNormalizationError: On unexpected conversion failure.
    """
    validate_extension(filename)
    validate_not_empty(audio_bytes)

    ext = _extract_extension(filename)
    if ext == ".wav":
        return audio_bytes

    try:
        audio = AudioSegment.from_file(io.BytesIO(audio_bytes), format=ext.lstrip("."))
    except CouldntDecodeError:
        raise AudioValidationError("Audio file is corrupt or could not be decoded.")
    except Exception as exc:
        raise AudioNormalizationError(f"Unexpected error decoding audio: {exc}")

    validate_duration(len(audio) / 1000.0)

    if audio.sample_width != OUTPUT_SAMPLE_WIDTH:
        audio = audio.set_sample_width(OUTPUT_SAMPLE_WIDTH)

    logger.info(
        "Converted %s upload to WAV: %d ch | %d Hz | %.1fs",
        ext, audio.channels, audio.frame_rate, len(audio) / 1000.0,
    )

    try:
        buffer = io.BytesIO()
        audio.export(buffer, format=OUTPUT_FORMAT)
        return buffer.getvalue()
    except Exception as exc:
        raise AudioNormalizationError(f"Failed to export WAV audio: {exc}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _extract_extension(filename: str) -> str:
    """Return lowercase file extension including the dot, e.g. '.wav'."""
    dot_index = filename.rfind(".")
    if dot_index == -1:
        return ""
    return filename[dot_index:].lower()
