"""
src/pipeline.py
================
Redaction Pipeline Orchestrator - VoiceRedact

Responsibility:
    1. Normalize the upload to WAV bytes
    2. Decode the WAV container into PCM frames
    3. Run the requested redaction engine
    4. Re-encode the result in the input's container format

Pipelines:
    run_redaction              - mute-in-place from a channel → spans map
    run_transcript_redaction   - mute-in-place from transcript utterances
    run_cut_replace            - cut-and-splice on one channel
    run_transcript_cut_replace - cut-and-splice from transcript utterances

This layer MUST NOT:
    - Implement redaction logic itself
    - Swallow engine errors - every failure surfaces to the caller and no
      partially redacted audio is returned
"""

import logging
from typing import Any, Iterable, Mapping

from src.audio.container import decode_wav, encode_wav, extract_channel, mono_stream
from src.audio.normalizer import to_wav, validate_duration
from src.redaction.engine import redact_stream
from src.redaction.spans import build_span_index
from src.redaction.splicer import FillerMode, cut_and_replace, resolve_filler
from src.redaction.transcript import cuts_from_utterances, spans_from_utterances

logger = logging.getLogger("voiceredact.pipeline")


# =====================================================================
# Mute-in-place
# =====================================================================


def run_redaction(
    audio_bytes: bytes,
    filename: str,
    span_map: Mapping[Any, Iterable[Any]] | None,
) -> bytes:
    """
    Mute the given spans in an uploaded recording.

    Args:
        audio_bytes: Raw upload bytes (.wav, .mp3, .m4a, .flac).
        filename:    Original filename (extension drives decoding).
        span_map:    Channel index → spans (see build_span_index).

    Returns:
        WAV bytes with the same channel count, rate and frame count.
    """
    index = build_span_index(span_map)
    logger.info(
        "Redaction requested for %s: %d span(s) on channel(s) %s.",
        filename, sum(len(s) for s in index.values()), sorted(index),
    )

    stream = decode_wav(to_wav(audio_bytes, filename))
    validate_duration(stream.duration_ms / 1000.0)
    logger.info(
        "Decoded %s: %d frames | %d Hz | %d ch",
        filename, stream.frame_count, stream.sample_rate, stream.channel_count,
    )

    redacted = redact_stream(stream, index)
    output = encode_wav(redacted)
    logger.info("Redacted audio encoded: %.2f KB", len(output) / 1024)
    return output


def run_transcript_redaction(
    audio_bytes: bytes,
    filename: str,
    utterances: list[dict[str, Any]],
) -> bytes:
    """Mute every utterance the transcript marks as redacted."""
    return run_redaction(audio_bytes, filename, spans_from_utterances(utterances))


# =====================================================================
# Cut-and-splice
# =====================================================================


def run_cut_replace(
    audio_bytes: bytes,
    filename: str,
    cuts: Iterable[Any],
    channel: int = 0,
    filler: FillerMode | str | None = None,
) -> bytes:
    """
    Cut intervals out of one channel and splice in filler of equal length.

    Args:
        audio_bytes: Raw upload bytes.
        filename:    Original filename.
        cuts:        Ordered cut intervals on the original timeline.
        channel:     Channel to process; the output is mono.
        filler:      Filler mode; None uses REDACTION_FILLER_MODE.

    Returns:
        Mono WAV bytes, same sample rate and length as the source channel.
    """
    mode = resolve_filler(filler)
    stream = decode_wav(to_wav(audio_bytes, filename))
    validate_duration(stream.duration_ms / 1000.0)
    samples = extract_channel(stream, channel)

    logger.info(
        "Cut-and-splice requested for %s channel %d: %d samples @ %d Hz, filler=%s.",
        filename, channel, len(samples), stream.sample_rate, mode.value,
    )

    spliced = cut_and_replace(samples, stream.sample_rate, cuts, mode)
    output = encode_wav(mono_stream(spliced, stream.sample_rate, stream.sample_width))
    logger.info("Spliced audio encoded: %.2f KB", len(output) / 1024)
    return output


def run_transcript_cut_replace(
    audio_bytes: bytes,
    filename: str,
    utterances: list[dict[str, Any]],
    channel: int = 0,
    filler: FillerMode | str | None = None,
) -> bytes:
    """Cut every utterance on *channel* the transcript flags for audio redaction."""
    cuts = cuts_from_utterances(utterances, channel)
    return run_cut_replace(audio_bytes, filename, cuts, channel, filler)
