"""
src/redaction/splicer.py
=========================
Segment Cut-Replace Engine - VoiceRedact (cut-and-splice)

Responsibility:
    - For a single channel, remove each cut interval's audio and splice in
      filler audio of exactly the same number of samples
    - Apply cuts sequentially on the evolving sequence, in the order given
    - Keep total length constant, so positions on the working sequence
      always match the original timeline

Filler modes:
    silence            - zeros (default)
    tone               - sine tone for the whole interval
    tone_then_silence  - sine tone for at most REDACTION_BEEP_MS, then zeros

The tone is rendered with pydub's Sine generator.

This module does NOT:
    - Handle multi-channel audio (extract a channel first)
    - Mute in place (see src/redaction/engine.py)
"""

import logging
import os
from enum import Enum
from numbers import Integral
from typing import Any, Iterable

import numpy as np
from pydub.generators import Sine
from pydub.utils import ratio_to_db

from src.redaction.errors import ChannelMismatchError, InvalidRedactionArgument
from src.redaction.spans import validate_cut_intervals

logger = logging.getLogger("voiceredact.redaction.splicer")


class FillerMode(str, Enum):
    SILENCE = "silence"
    TONE = "tone"
    TONE_THEN_SILENCE = "tone_then_silence"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

DEFAULT_FILLER: str = os.getenv("REDACTION_FILLER_MODE", FillerMode.SILENCE.value)
TONE_FREQUENCY_HZ: float = float(os.getenv("REDACTION_TONE_FREQUENCY_HZ", "1000"))
TONE_GAIN: float = float(os.getenv("REDACTION_TONE_GAIN", "0.2"))
BEEP_MS: int = int(os.getenv("REDACTION_BEEP_MS", "250"))

_TONE_BIT_DEPTH = 16
_TONE_FULL_SCALE = float(2 ** (_TONE_BIT_DEPTH - 1))


def resolve_filler(value: Any) -> FillerMode:
    """Map a FillerMode, its string value, or None (→ configured default)."""
    if value is None:
        value = DEFAULT_FILLER
    if isinstance(value, FillerMode):
        return value
    try:
        return FillerMode(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(m.value for m in FillerMode)
        raise InvalidRedactionArgument(
            f"Unknown filler mode '{value}'. Allowed: {allowed}"
        ) from None


# ---------------------------------------------------------------------------
# Filler generation
# ---------------------------------------------------------------------------


def generate_tone(
    n_samples: int,
    sample_rate: int,
    frequency_hz: float = TONE_FREQUENCY_HZ,
    gain: float = TONE_GAIN,
) -> np.ndarray:
    """Render exactly *n_samples* of a sine tone, normalized to [-1.0, 1.0]."""
    if n_samples <= 0:
        return np.zeros(0, dtype=np.float64)
    if gain <= 0:
        return np.zeros(n_samples, dtype=np.float64)

    duration_ms = n_samples * 1000.0 / sample_rate
    segment = Sine(
        frequency_hz, sample_rate=sample_rate, bit_depth=_TONE_BIT_DEPTH,
    ).to_audio_segment(duration=duration_ms, volume=ratio_to_db(gain))

    tone = np.array(segment.get_array_of_samples(), dtype=np.float64) / _TONE_FULL_SCALE
    # pydub truncates the sample count; pad the last sample or two with silence
    if len(tone) < n_samples:
        tone = np.concatenate([tone, np.zeros(n_samples - len(tone))])
    return tone[:n_samples]


def generate_filler(
    n_samples: int,
    sample_rate: int,
    filler: FillerMode | str | None = None,
    *,
    tone_frequency_hz: float = TONE_FREQUENCY_HZ,
    tone_gain: float = TONE_GAIN,
    beep_ms: int = BEEP_MS,
) -> np.ndarray:
    """
    Build *n_samples* of filler audio.

    Both candidate components (tone and silence) are sized from the same
    sample budget; the filler mode decides how much of each is used. The
    result is always exactly *n_samples* long.
    """
    mode = resolve_filler(filler)
    silence = np.zeros(n_samples, dtype=np.float64)
    if mode is FillerMode.SILENCE or n_samples == 0:
        return silence

    if mode is FillerMode.TONE:
        return generate_tone(n_samples, sample_rate, tone_frequency_hz, tone_gain)

    tone_samples = min(n_samples, max(0, beep_ms) * sample_rate // 1000)
    silence[:tone_samples] = generate_tone(
        tone_samples, sample_rate, tone_frequency_hz, tone_gain,
    )
    return silence


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def cut_and_replace(
    samples: np.ndarray | None,
    sample_rate: int,
    cuts: Iterable[Any] | None,
    filler: FillerMode | str | None = None,
    *,
    tone_frequency_hz: float = TONE_FREQUENCY_HZ,
    tone_gain: float = TONE_GAIN,
    beep_ms: int = BEEP_MS,
) -> np.ndarray:
    """
    Replace each cut interval of a single-channel sequence with filler.

    For every interval, in order:
        1. Split the working sequence at start_ms and start_ms + duration_ms
           (converted to sample offsets, clamped to the sequence length)
        2. Generate filler of exactly the removed sample count
        3. Working sequence = prefix + filler + suffix

    Args:
        samples:     1-D array of samples for one channel.
        sample_rate: Sample rate of *samples* in Hz.
        cuts:        Ordered collection of CutInterval, (start_ms,
                     duration_ms) pairs or {"start_ms", "duration_ms"} dicts.
        filler:      FillerMode or its string value; None uses
                     REDACTION_FILLER_MODE.

    Returns:
        A 1-D array the same length as *samples*. With an empty cut list
        the untransformed source is returned as given, keeping its dtype.
        Any non-empty cut list yields a new float64 array, even when every
        cut is zero-length or past the end.

    Raises:
        InvalidRedactionArgument: samples/cuts missing, bad values, bad rate.
        SpanOrderError:           Cuts unsorted or overlapping.
        ChannelMismatchError:     *samples* is not one-dimensional.
    """
    if samples is None:
        raise InvalidRedactionArgument("Sample source is required.")
    if cuts is None:
        raise InvalidRedactionArgument("Cut interval collection is required.")
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, Integral) or sample_rate <= 0:
        raise InvalidRedactionArgument(f"sample_rate must be a positive integer, got {sample_rate!r}.")

    source = np.asarray(samples)
    if source.ndim != 1:
        raise ChannelMismatchError(
            f"Cut-and-splice expects a single channel (1-D array), got shape {source.shape}.",
            expected=1,
            actual=source.shape[1] if source.ndim == 2 else None,
        )

    intervals = validate_cut_intervals(cuts)
    mode = resolve_filler(filler)
    if not intervals:
        logger.info("No cut intervals - returning source unchanged.")
        return source

    working = source.astype(np.float64, copy=True)
    total = len(working)
    replaced = 0

    for position, cut in enumerate(intervals):
        start = cut.start_ms * sample_rate // 1000
        end = cut.end_ms * sample_rate // 1000
        if start >= total:
            logger.debug(
                "Cut %d starts at %dms, after the end of the audio - skipped.",
                position, cut.start_ms,
            )
            continue
        if end > total:
            logger.warning(
                "Cut %d (%dms + %dms) runs past the end of the audio (%.1fms) - clamped.",
                position, cut.start_ms, cut.duration_ms, total * 1000.0 / sample_rate,
            )
            end = total
        if end == start:
            continue

        fill = generate_filler(
            end - start, sample_rate, mode,
            tone_frequency_hz=tone_frequency_hz,
            tone_gain=tone_gain,
            beep_ms=beep_ms,
        )
        working = np.concatenate([working[:start], fill, working[end:]])
        replaced += end - start

    logger.info(
        "Cut-and-splice complete: %d interval(s), %d sample(s) replaced with %s filler.",
        len(intervals), replaced, mode.value,
    )
    return working
