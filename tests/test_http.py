from __future__ import annotations

import pytest

from hestia.http import (
    MAX_HEADER_LENGTH,
    Status,
    ensure_status,
    http_date,
    parse_http_date,
    reason_phrase,
    sanitize_header,
)


def test_ensure_status_validates_range() -> None:
    assert ensure_status(Status.OK) == 200
    assert ensure_status(416) == 416
    with pytest.raises(ValueError):
        ensure_status(99)
    with pytest.raises(ValueError):
        ensure_status(600)


def test_reason_phrase_for_known_and_unknown_statuses() -> None:
    assert reason_phrase(Status.PARTIAL_CONTENT) == "Partial Content"
    assert reason_phrase(Status.NOT_FOUND) == "Not Found"
    assert reason_phrase(799) == "Unknown Status"


def test_http_date_round_trip() -> None:
    formatted = http_date(1_700_000_000)
    assert formatted == "Tue, 14 Nov 2023 22:13:20 GMT"
    assert parse_http_date(formatted) == 1_700_000_000


def test_parse_http_date_rejects_garbage() -> None:
    assert parse_http_date(None) is None
    assert parse_http_date("") is None
    assert parse_http_date("not a date") is None
    assert parse_http_date("Tue, 14 Nov 2023 22:13:20 -0000") == 1_700_000_000


def test_sanitize_header_strips_injection_characters() -> None:
    assert sanitize_header(None) is None
    assert sanitize_header("") is None
    assert sanitize_header("bytes=0-10") == "bytes=0-10"
    assert sanitize_header("value\r\nX-Injected: evil") == "valueX-Injected: evil"
    assert sanitize_header("a\x00b") == "ab"
    assert sanitize_header("\r\n") is None


def test_sanitize_header_truncates_long_values() -> None:
    value = sanitize_header("a" * (MAX_HEADER_LENGTH + 100))
    assert value is not None
    assert len(value) == MAX_HEADER_LENGTH
