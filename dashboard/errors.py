"""Error taxonomy shared by the fetch client and the controllers.

Every failure the client can produce is an :class:`AnalyzerError`.  The
controllers catch these at their boundary and keep only the message in their
``error`` slot, so nothing below ever escapes to the presentation layer.
"""

from __future__ import annotations

GENERIC_SERVER_MESSAGE = "The analysis service returned an unexpected error."


class AnalyzerError(Exception):
    """Base class for all client-side failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkFailure(AnalyzerError):
    """The request never produced a response (connect, timeout, protocol)."""


class ServerError(AnalyzerError):
    """Non-2xx response whose ``{"error": ...}`` body could be decoded."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


class ServerErrorOpaque(AnalyzerError):
    """Non-2xx response (or undecodable 2xx body) without a usable message."""

    def __init__(self, status_code: int, message: str = GENERIC_SERVER_MESSAGE) -> None:
        super().__init__(message)
        self.status_code = status_code


class ValidationFailure(AnalyzerError):
    """Input rejected locally, before any network call."""
