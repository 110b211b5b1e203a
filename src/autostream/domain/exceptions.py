"""Errors raised by external collaborators of the stream pipeline."""

from __future__ import annotations


class AutoStreamError(Exception):
    """Base class for all AutoStream errors."""


class UpstreamError(AutoStreamError):
    """Raised when an upstream source cannot deliver a stream list."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class TitleLookupError(AutoStreamError):
    """Raised when the display name for a media id cannot be resolved."""
