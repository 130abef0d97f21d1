"""Custom exception hierarchy for fsbridge."""

from __future__ import annotations


class BridgeError(Exception):
    """Base exception for all fsbridge errors."""


class BridgeConfigError(BridgeError):
    """Invalid or missing configuration."""


class SourceError(BridgeError):
    """Telemetry source adapter failure."""


class SourceConnectionError(SourceError):
    """The simulator could not be reached.

    Raised by :meth:`TelemetrySource.connect`.  The connection manager
    catches it, logs it and retries after the backoff interval; it is
    never fatal to the process.
    """

    def __init__(self, message: str, *, app_name: str = "") -> None:
        self.app_name = app_name
        super().__init__(message)


class SourceUnavailableError(SourceError):
    """The simulator SDK is not installed or not supported on this platform."""
