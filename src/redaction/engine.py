"""
src/redaction/engine.py
========================
Sample Redaction Engine - VoiceRedact (mute-in-place)

Responsibility:
    - Map each span on each channel to the frames whose time falls inside
      it, and replace those samples with silence (0.0) in one slice
    - Pass every other sample through unchanged
    - Preserve sample rate, channel count and frame count exactly

Frame n sits at t_ms = floor(n * 1000 / sample_rate). Each channel owns a
Span Cursor that only ever moves forward, so span lists must be sorted and
non-overlapping (guaranteed by build_span_index).

This module does NOT:
    - Decode or encode containers (see src/audio/container.py)
    - Remove or shift audio (see src/redaction/splicer.py)
    - Mutate its input buffers
"""

import logging
from numbers import Integral
from typing import Any, Mapping

import numpy as np

from src.audio.container import PcmStream
from src.redaction.errors import ChannelMismatchError, InvalidRedactionArgument
from src.redaction.spans import (
    EXHAUSTED,
    RedactionSpan,
    SpanCursor,
    SpanIndex,
    advance_cursor,
    build_span_index,
    start_cursor,
)

logger = logging.getLogger("voiceredact.redaction.engine")

SILENCE: float = 0.0


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def redact_stream(stream: PcmStream, span_index: Mapping[Any, Any] | None) -> PcmStream:
    """
    Mute every span of *span_index* in *stream*.

    Args:
        stream:     Decoded PCM audio.
        span_index: Channel → spans mapping. Either the output of
                    build_span_index or a raw mapping it accepts.

    Returns:
        A new PcmStream with identical shape and format.

    Raises:
        ChannelMismatchError:     Frame layout or span channels disagree
                                  with stream.channel_count.
        InvalidRedactionArgument: Bad sample rate or span values.
        SpanOrderError:           Overlapping spans on a channel.
    """
    frames = np.asarray(stream.frames)
    if frames.ndim != 2 or frames.shape[1] != stream.channel_count:
        raise ChannelMismatchError(
            f"Frames carry {frames.shape[1] if frames.ndim == 2 else 'no'} channel(s), "
            f"stream declares {stream.channel_count}.",
            expected=stream.channel_count,
            actual=frames.shape[1] if frames.ndim == 2 else None,
        )

    redacted = redact_frames(frames, stream.sample_rate, span_index)
    return PcmStream(
        sample_rate=stream.sample_rate,
        channel_count=stream.channel_count,
        frames=redacted,
        sample_width=stream.sample_width,
    )


def redact_frames(
    frames: np.ndarray,
    sample_rate: int,
    span_index: Mapping[Any, Any] | None,
) -> np.ndarray:
    """
    Frame-synchronized mute over a (n_frames, n_channels) sample array.

    Each channel walks its span list with a Span Cursor. The current span
    is mapped to the frames whose time falls inside it (see
    span_frame_range) and that slice of the channel is set to silence.
    The walk stops at the first span that starts after the last frame.

    Every frame inside any span is muted, including the frames where two
    adjacent spans meet.

    Returns:
        A new array; *frames* is left untouched.
    """
    if isinstance(sample_rate, bool) or not isinstance(sample_rate, Integral) or sample_rate <= 0:
        raise InvalidRedactionArgument(f"sample_rate must be a positive integer, got {sample_rate!r}.")

    frames = np.asarray(frames)
    if frames.ndim != 2:
        raise ChannelMismatchError(
            f"Expected a 2-D (frames, channels) array, got {frames.ndim}-D.",
        )
    n_frames, channel_count = frames.shape

    index: SpanIndex = build_span_index(span_index)
    for channel in index:
        if channel >= channel_count:
            raise ChannelMismatchError(
                f"Spans reference channel {channel} but the audio has "
                f"{channel_count} channel(s).",
                expected=channel_count,
                actual=channel + 1,
            )

    output = frames.copy()
    if n_frames == 0 or not index:
        return output

    span_lists = [index.get(c, ()) for c in range(channel_count)]
    muted = [0] * channel_count

    for c, spans in enumerate(span_lists):
        cursor: SpanCursor = start_cursor(spans)
        while cursor is not EXHAUSTED:
            lo, hi = span_frame_range(cursor.span, sample_rate, n_frames)
            if lo >= n_frames:
                break
            output[lo:hi, c] = SILENCE
            muted[c] += hi - lo
            cursor = advance_cursor(cursor, spans)

    for c, count in enumerate(muted):
        if span_lists[c]:
            logger.debug(
                "Channel %d: %d span(s), %d sample(s) muted (%.1f ms).",
                c, len(span_lists[c]), count, count * 1000.0 / sample_rate,
            )
    logger.info(
        "Mute redaction complete: %d frame(s), %d channel(s), %d sample(s) muted.",
        n_frames, channel_count, sum(muted),
    )
    return output


def span_frame_range(span: RedactionSpan, sample_rate: int, n_frames: int) -> tuple[int, int]:
    """
    Half-open frame range [lo, hi) whose frame times fall inside *span*.

    Frame n sits at floor(n * 1000 / sample_rate), so the first frame at or
    after t ms is ceil(t * sample_rate / 1000). Both bounds are clamped to
    n_frames.
    """
    lo = -(-span.offset * sample_rate // 1000)
    hi = -(-(span.end + 1) * sample_rate // 1000)
    return min(lo, n_frames), min(hi, n_frames)
