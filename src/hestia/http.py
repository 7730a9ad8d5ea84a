"""HTTP utilities, status codes and date helpers."""

from __future__ import annotations

from datetime import timezone
from email.utils import formatdate, parsedate_to_datetime
from enum import IntEnum
from http import HTTPStatus as _HTTPStatus

MAX_HEADER_LENGTH = 8192


class Status(IntEnum):
    """Enumeration of the HTTP status codes produced by the file server."""

    OK = 200
    PARTIAL_CONTENT = 206
    NOT_MODIFIED = 304
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    RANGE_NOT_SATISFIABLE = 416
    INTERNAL_SERVER_ERROR = 500


def ensure_status(status: int | Status) -> int:
    code = int(status)
    if not 100 <= code <= 599:
        raise ValueError(f"status {status!r} is outside the HTTP range")
    return code


def reason_phrase(status: int | Status) -> str:
    try:
        return _HTTPStatus(int(status)).phrase
    except ValueError:
        return "Unknown Status"


def http_date(timestamp: float) -> str:
    """Format ``timestamp`` as an IMF-fixdate (``Wed, 21 Oct 2015 07:28:00 GMT``)."""

    return formatdate(timestamp, usegmt=True)


def parse_http_date(value: str | None) -> int | None:
    """Return the epoch seconds encoded in ``value`` or ``None`` when unparsable."""

    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def sanitize_header(value: str | None) -> str | None:
    """Strip NUL, CR and LF from ``value`` and cap its length.

    Empty values are reported as ``None`` so callers can treat a blank header
    exactly like a missing one.
    """

    if not value:
        return None
    cleaned = value.replace("\x00", "").replace("\r", "").replace("\n", "")
    if len(cleaned) > MAX_HEADER_LENGTH:
        cleaned = cleaned[:MAX_HEADER_LENGTH]
    return cleaned or None


__all__ = [
    "MAX_HEADER_LENGTH",
    "Status",
    "ensure_status",
    "http_date",
    "parse_http_date",
    "reason_phrase",
    "sanitize_header",
]
