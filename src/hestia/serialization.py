"""JSON error bodies."""

from __future__ import annotations

import msgspec


class ErrorDetail(msgspec.Struct, frozen=True):
    status: int
    reason: str
    detail: str


class ErrorBody(msgspec.Struct, frozen=True):
    """``{"error": {"status": ..., "reason": ..., "detail": ...}}``"""

    error: ErrorDetail


_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder(ErrorBody)


def encode_error(status: int, reason: str, detail: str) -> bytes:
    return _encoder.encode(ErrorBody(error=ErrorDetail(status=status, reason=reason, detail=detail)))


def decode_error(data: bytes) -> ErrorBody:
    """Parse an error body produced by :func:`encode_error`."""

    return _decoder.decode(data)


__all__ = ["ErrorBody", "ErrorDetail", "decode_error", "encode_error"]
