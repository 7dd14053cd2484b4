from __future__ import annotations


class StatusServerError(Exception):
    """Base class for status server errors."""


class StartupBindError(StatusServerError):
    """Raised when the listening socket cannot be bound. Fatal."""

    def __init__(self, host: str, port: int, reason: str = "") -> None:
        self.host = host
        self.port = port
        message = f"Cannot bind {host}:{port}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MalformedBodyError(StatusServerError):
    """Raised by the body parser; surfaced to the caller as a 4xx response."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)


class PayloadTooLargeError(MalformedBodyError):
    status_code = 413


class UnsupportedBodyError(MalformedBodyError):
    status_code = 415
