from __future__ import annotations


class SenderError(Exception):
    """Base class for every recoverable failure of the send pipeline."""


class OpenFailed(SenderError):
    """The serial device is absent, busy, or could not be configured."""


class NotConnected(SenderError):
    """The liveness probe failed before a transmission started."""


class WriteFailed(SenderError):
    """A write to the device failed (including mid-stream disconnects)."""


class SourceUnreadable(SenderError):
    """The source text file is missing or cannot be read."""
