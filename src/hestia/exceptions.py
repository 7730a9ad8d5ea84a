"""Exception types raised by the file server."""

from __future__ import annotations

from .http import Status, ensure_status, reason_phrase
from .serialization import encode_error


class HestiaError(Exception):
    """Base error type."""


class HTTPError(HestiaError):
    """HTTP error carrying a short, path-free ``detail`` code."""

    def __init__(self, status: int | Status, detail: str) -> None:
        status_code = ensure_status(status)
        super().__init__(status_code, detail)
        self.status = status_code
        self.detail = detail
        self.reason = reason_phrase(status_code)

    def to_response_body(self) -> bytes:
        return encode_error(self.status, self.reason, self.detail)


class FileServerError(HTTPError):
    """Unexpected failure while touching the filesystem.

    ``code`` is machine readable (``OPEN_ERROR``, ``READ_ERROR`` ...) and
    ``operation`` names the step that failed. Neither ends up in a response
    body; the client only sees ``internal_error``.
    """

    def __init__(
        self,
        code: str,
        *,
        operation: str,
        status: int | Status = Status.INTERNAL_SERVER_ERROR,
    ) -> None:
        super().__init__(status, "internal_error")
        self.code = code
        self.operation = operation

    def __str__(self) -> str:
        return f"{self.code} during {self.operation}"


class ConfigurationError(HestiaError):
    """Raised when a :class:`~hestia.config.FileServerConfig` cannot be used."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


__all__ = ["ConfigurationError", "FileServerError", "HTTPError", "HestiaError"]
