"""
src/redaction/transcript.py
============================
Transcript → Redaction Spans - VoiceRedact

Responsibility:
    - Turn recognized utterances that carry redaction markers into the
      inputs of the two engines:
        * a channel → span mapping for mute-in-place redaction
        * an ordered cut-interval list for cut-and-splice redaction

Each utterance is a dict with integer millisecond timing:
    {
        "channel": 0,
        "offset": 1200,
        "duration": 800,
        "redacted_spans": [...],         # optional - text-level redactions
        "redacted_audio_spans": [...],   # optional - audio cut markers
    }

Only utterances with a non-empty marker list contribute, and the whole
utterance window is redacted.

This module does NOT:
    - Parse transcript JSON files or talk to a recognition service
    - Decide what counts as sensitive
"""

import logging
from typing import Any

from src.redaction.errors import InvalidRedactionArgument
from src.redaction.spans import (
    CutInterval,
    RedactionSpan,
    SpanIndex,
    build_span_index,
    to_channel,
)

logger = logging.getLogger("voiceredact.redaction.transcript")

_REQUIRED_KEYS = ("channel", "offset", "duration")


def _check_utterance_list(utterances: Any) -> None:
    if utterances is None:
        raise InvalidRedactionArgument("Utterance list is required.")
    if not isinstance(utterances, (list, tuple)):
        raise InvalidRedactionArgument(
            f"Utterances must be a list, got {type(utterances).__name__}."
        )


def _check_utterance(utt: Any, position: int) -> None:
    if not isinstance(utt, dict):
        raise InvalidRedactionArgument(
            f"Utterance {position} is not a dict: {type(utt).__name__}"
        )
    missing = [key for key in _REQUIRED_KEYS if key not in utt]
    if missing:
        raise InvalidRedactionArgument(
            f"Utterance {position} is missing keys: {', '.join(missing)}"
        )


def spans_from_utterances(utterances: list[dict[str, Any]] | None) -> SpanIndex:
    """
    Group redacted utterances by channel into a span index.

    Args:
        utterances: Utterance dicts (see module docstring).

    Returns:
        Span index ready for redact_stream, sorted by offset per channel.

    Raises:
        InvalidRedactionArgument: On malformed utterances.
        SpanOrderError:           If redacted utterances overlap on a channel.
    """
    _check_utterance_list(utterances)

    grouped: dict[int, list[RedactionSpan]] = {}
    for position, utt in enumerate(utterances):
        _check_utterance(utt, position)
        if not utt.get("redacted_spans"):
            continue
        grouped.setdefault(to_channel(utt["channel"]), []).append(
            RedactionSpan(utt["offset"], utt["duration"])
        )

    index = build_span_index(grouped)
    logger.info(
        "Extracted %d redaction span(s) across %d channel(s) from %d utterance(s).",
        sum(len(spans) for spans in index.values()), len(index), len(utterances),
    )
    return index


def cuts_from_utterances(
    utterances: list[dict[str, Any]] | None,
    channel: int | None = None,
) -> list[CutInterval]:
    """
    Collect cut intervals from utterances flagged with audio redactions.

    Args:
        utterances: Utterance dicts (see module docstring).
        channel:    Only use utterances on this channel; None uses all.

    Returns:
        Cut intervals ordered by start time.
    """
    _check_utterance_list(utterances)
    if channel is not None:
        channel = to_channel(channel)

    cuts: list[CutInterval] = []
    for position, utt in enumerate(utterances):
        _check_utterance(utt, position)
        if not utt.get("redacted_audio_spans"):
            continue
        if channel is not None and to_channel(utt["channel"]) != channel:
            continue
        cuts.append(CutInterval(utt["offset"], utt["duration"]))

    cuts.sort(key=lambda cut: cut.start_ms)
    logger.info("Extracted %d cut interval(s) from %d utterance(s).", len(cuts), len(utterances))
    return cuts
