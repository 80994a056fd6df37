# src/redaction/__init__.py
# ==========================
# Redaction Core - VoiceRedact
#
# Two independent engines over decoded PCM:
#   - Sample Redaction Engine (mute-in-place, multi-channel)
#   - Segment Cut-Replace Engine (cut-and-splice, single channel)
#
# Both are pure, synchronous transformations over in-memory buffers.

from src.redaction.engine import redact_frames, redact_stream  # noqa: F401
from src.redaction.errors import (  # noqa: F401
    ChannelMismatchError,
    InvalidRedactionArgument,
    RedactionError,
    SpanOrderError,
)
from src.redaction.spans import (  # noqa: F401
    CutInterval,
    RedactionSpan,
    build_span_index,
    validate_cut_intervals,
)
from src.redaction.splicer import FillerMode, cut_and_replace  # noqa: F401

__all__ = [
    "redact_frames",
    "redact_stream",
    "cut_and_replace",
    "FillerMode",
    "CutInterval",
    "RedactionSpan",
    "build_span_index",
    "validate_cut_intervals",
    "RedactionError",
    "InvalidRedactionArgument",
    "SpanOrderError",
    "ChannelMismatchError",
]
