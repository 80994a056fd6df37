"""
src/redaction/spans.py
=======================
Redaction Span Index - VoiceRedact

Responsibility:
    - Define the time-interval value types used by both engines
      (RedactionSpan for mute-in-place, CutInterval for cut-and-splice)
    - Normalize raw per-channel (offset, duration) pairs into sorted,
      read-only span lists
    - Provide the per-channel Span Cursor used by the Sample Redaction
      Engine to walk a span list monotonically
    - Validate cut-interval ordering with an explicit stateful pass

All times are integer milliseconds. Spans are CLOSED intervals:
[offset, offset + duration].

This module does NOT:
    - Merge, deduplicate or otherwise "fix" caller input
    - Touch audio samples
"""

import logging
from dataclasses import dataclass
from numbers import Integral
from typing import Any, Iterable, Mapping, Sequence

from src.redaction.errors import InvalidRedactionArgument, SpanOrderError

logger = logging.getLogger("voiceredact.redaction.spans")


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------


def _as_ms(value: Any, name: str) -> int:
    """Coerce *value* to a non-negative integer millisecond count."""
    if isinstance(value, bool):
        raise InvalidRedactionArgument(f"{name} must be an integer, got bool.")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, Integral):
        raise InvalidRedactionArgument(
            f"{name} must be an integer number of milliseconds, got {value!r}."
        )
    if value < 0:
        raise InvalidRedactionArgument(f"{name} must be non-negative, got {value}.")
    return int(value)


@dataclass(frozen=True, slots=True)
class RedactionSpan:
    """Closed interval [offset, offset + duration] to be muted, in ms."""

    offset: int
    duration: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "offset", _as_ms(self.offset, "offset"))
        object.__setattr__(self, "duration", _as_ms(self.duration, "duration"))

    @property
    def end(self) -> int:
        return self.offset + self.duration

    def contains(self, t_ms: int) -> bool:
        return self.offset <= t_ms <= self.end


@dataclass(frozen=True, slots=True)
class CutInterval:
    """Interval [start_ms, start_ms + duration_ms) to excise and refill."""

    start_ms: int
    duration_ms: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_ms", _as_ms(self.start_ms, "start_ms"))
        object.__setattr__(self, "duration_ms", _as_ms(self.duration_ms, "duration_ms"))

    @property
    def end_ms(self) -> int:
        return self.start_ms + self.duration_ms


def _coerce_pair(item: Any, cls, keys: tuple[str, str]):
    """Accept an instance of *cls*, a 2-item sequence, or a dict."""
    if isinstance(item, cls):
        return item
    if isinstance(item, Mapping):
        missing = [k for k in keys if k not in item]
        if missing:
            raise InvalidRedactionArgument(
                f"{cls.__name__} mapping is missing keys: {', '.join(missing)}."
            )
        return cls(item[keys[0]], item[keys[1]])
    if isinstance(item, Sequence) and not isinstance(item, (str, bytes)) and len(item) == 2:
        return cls(item[0], item[1])
    raise InvalidRedactionArgument(
        f"Cannot build {cls.__name__} from {type(item).__name__}: {item!r}"
    )


def to_span(item: Any) -> RedactionSpan:
    return _coerce_pair(item, RedactionSpan, ("offset", "duration"))


def to_cut(item: Any) -> CutInterval:
    return _coerce_pair(item, CutInterval, ("start_ms", "duration_ms"))


# ---------------------------------------------------------------------------
# Span index
# ---------------------------------------------------------------------------

SpanIndex = dict[int, tuple[RedactionSpan, ...]]


def build_span_index(raw: Mapping[Any, Iterable[Any]] | None) -> SpanIndex:
    """
    Normalize a channel → spans mapping into sorted per-channel span lists.

    Each channel's spans are sorted ascending by offset (stable sort, so
    equal offsets keep caller order). Channels with no spans are dropped
    from the result; the engine treats a missing channel as never muted.

    Args:
        raw: Mapping of 0-based channel index to an iterable of spans.
             Items may be RedactionSpan, (offset, duration) pairs, or
             {"offset": ..., "duration": ...} dicts. None is treated as
             an empty mapping.

    Returns:
        Dict of channel index to a tuple of RedactionSpan sorted by offset.

    Raises:
        InvalidRedactionArgument: On negative channels or bad span values.
        SpanOrderError: If two spans on the same channel overlap.
    """
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise InvalidRedactionArgument(
            f"Span index must map channels to span lists, got {type(raw).__name__}."
        )

    index: SpanIndex = {}
    for channel_key, spans in raw.items():
        channel = to_channel(channel_key)
        if spans is None:
            raise InvalidRedactionArgument(f"Span list for channel {channel} is None.")
        if not isinstance(spans, Iterable) or isinstance(spans, (str, bytes, Mapping)):
            raise InvalidRedactionArgument(
                f"Span list for channel {channel} must be a list of spans, "
                f"got {type(spans).__name__}."
            )
        ordered = tuple(sorted((to_span(s) for s in spans), key=lambda s: s.offset))
        if not ordered:
            continue
        _check_no_overlap(ordered, channel)
        if channel in index:
            raise InvalidRedactionArgument(f"Channel {channel} listed more than once.")
        index[channel] = ordered

    logger.debug(
        "Span index built: %s",
        {ch: len(spans) for ch, spans in sorted(index.items())},
    )
    return index


def to_channel(value: Any) -> int:
    """Coerce a channel key (int or decimal string) to a 0-based index."""
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidRedactionArgument(f"Channel index must be an integer, got {value!r}.")
    if value < 0:
        raise InvalidRedactionArgument(f"Channel index must be non-negative, got {value}.")
    return int(value)


def _check_no_overlap(spans: tuple[RedactionSpan, ...], channel: int) -> None:
    # Sharing an end point is allowed; starting inside the previous span is not.
    for position in range(1, len(spans)):
        prev, cur = spans[position - 1], spans[position]
        if cur.offset < prev.end:
            raise SpanOrderError(
                f"Channel {channel}: span {position} "
                f"[{cur.offset}, {cur.end}] overlaps [{prev.offset}, {prev.end}].",
                channel=channel,
                position=position,
            )


# ---------------------------------------------------------------------------
# Span cursor
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ActiveCursor:
    """Cursor positioned on ``span``, the ``index``-th entry of its list."""

    span: RedactionSpan
    index: int


class Exhausted:
    """Cursor state for a channel with no (remaining) spans."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EXHAUSTED"


EXHAUSTED = Exhausted()

SpanCursor = ActiveCursor | Exhausted


def start_cursor(spans: Sequence[RedactionSpan]) -> SpanCursor:
    if not spans:
        return EXHAUSTED
    return ActiveCursor(spans[0], 0)


def advance_cursor(cursor: SpanCursor, spans: Sequence[RedactionSpan]) -> SpanCursor:
    """Move to the next span in *spans*, or EXHAUSTED past the last one."""
    if cursor is EXHAUSTED:
        return EXHAUSTED
    next_index = cursor.index + 1
    if next_index >= len(spans):
        return EXHAUSTED
    return ActiveCursor(spans[next_index], next_index)


# ---------------------------------------------------------------------------
# Cut interval validation
# ---------------------------------------------------------------------------


def validate_cut_intervals(intervals: Iterable[Any] | None) -> tuple[CutInterval, ...]:
    """
    Coerce and validate an ordered collection of cut intervals.

    Walks the intervals once, carrying the end of the previous interval as
    a running cursor. Each interval must start at or after that cursor, so
    the list is sorted and non-overlapping on the original timeline. The
    input order is never changed.

    Raises:
        InvalidRedactionArgument: If *intervals* is None or holds bad values.
        SpanOrderError: If an interval starts before the previous one ends.
    """
    if intervals is None:
        raise InvalidRedactionArgument("Cut interval collection is required.")
    if not isinstance(intervals, Iterable) or isinstance(intervals, (str, bytes, Mapping)):
        raise InvalidRedactionArgument(
            f"Cut intervals must be a list, got {type(intervals).__name__}."
        )

    validated = tuple(to_cut(item) for item in intervals)
    cursor = 0
    for position, cut in enumerate(validated):
        if cut.start_ms < cursor:
            raise SpanOrderError(
                f"Cut interval {position} starts at {cut.start_ms}ms, before the "
                f"previous interval ends at {cursor}ms.",
                position=position,
            )
        cursor = cut.end_ms
    return validated
