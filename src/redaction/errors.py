"""
src/redaction/errors.py
========================
Redaction Error Taxonomy - VoiceRedact

Every failure raised by the redaction core derives from RedactionError so
callers can catch the whole family, while the three concrete types let
them tell a bad input shape apart from an ordering violation:

    InvalidRedactionArgument - missing collections, negative times
    SpanOrderError           - unsorted / overlapping spans or cut intervals
    ChannelMismatchError     - frame or span channels disagree with the stream

None of these are recoverable locally. The core never retries and never
returns a partially redacted buffer.
"""


class RedactionError(Exception):
    """Base class for all redaction core failures."""
    pass


class InvalidRedactionArgument(RedactionError, ValueError):
    """Raised when a required argument is missing or out of range."""
    pass


class SpanOrderError(RedactionError):
    """Raised when spans or cut intervals are unsorted or overlapping."""

    def __init__(self, message: str, channel: int | None = None, position: int | None = None):
        self.channel = channel
        self.position = position
        self.message = message
        super().__init__(message)


class ChannelMismatchError(RedactionError):
    """Raised when the channel layout of the input is inconsistent."""

    def __init__(self, message: str, expected: int | None = None, actual: int | None = None):
        self.expected = expected
        self.actual = actual
        self.message = message
        super().__init__(message)
