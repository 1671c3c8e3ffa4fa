"""
Error types for the event aggregator.
"""

from __future__ import annotations

from .models import FailureKind


class ConfigError(Exception):
    """Invalid or missing configuration. Fatal at startup."""


class SourceError(Exception):
    """A source could not produce records."""

    kind = FailureKind.TRANSPORT

    def __init__(self, message: str, kind: FailureKind | None = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class FeedParseError(SourceError):
    """Feed payload was not a usable syndication document."""

    kind = FailureKind.PARSE
