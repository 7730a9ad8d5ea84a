"""Single byte-range parsing for ``Range: bytes=...`` headers."""

from __future__ import annotations

import msgspec

RANGE_UNIT = "bytes"


class RangeSpec(msgspec.Struct, frozen=True):
    """Inclusive ``[start, end]`` span of a resource."""

    start: int
    end: int

    @property
    def content_length(self) -> int:
        return self.end - self.start + 1

    def content_range(self, size: int) -> str:
        return f"{RANGE_UNIT} {self.start}-{self.end}/{size}"


class RangeNotSatisfiable(msgspec.Struct, frozen=True):
    reason: str

    @staticmethod
    def content_range(size: int) -> str:
        return f"{RANGE_UNIT} */{size}"


def _parse_offset(value: str) -> int | None:
    value = value.strip()
    if not value or not value.isascii() or not value.isdigit():
        return None
    return int(value)


def parse_range(header: str, size: int) -> RangeSpec | RangeNotSatisfiable:
    """Parse ``header`` against a resource of ``size`` bytes.

    Supported forms are ``bytes=a-b``, ``bytes=a-`` and ``bytes=-n``. An ``end``
    past the last byte is clamped, and a suffix longer than the resource
    selects the whole resource. Multiple ranges are refused outright.
    """

    if size <= 0:
        return RangeNotSatisfiable("empty_resource")
    unit, sep, spec = header.strip().partition("=")
    if not sep or unit.strip().lower() != RANGE_UNIT:
        return RangeNotSatisfiable("malformed")
    if "," in spec:
        return RangeNotSatisfiable("multiple_ranges")
    first, dash, last = spec.strip().partition("-")
    if not dash:
        return RangeNotSatisfiable("malformed")

    if not first.strip():
        suffix = _parse_offset(last)
        if suffix is None or suffix == 0:
            return RangeNotSatisfiable("malformed")
        start = max(0, size - suffix)
        end = size - 1
    else:
        parsed_start = _parse_offset(first)
        if parsed_start is None:
            return RangeNotSatisfiable("malformed")
        start = parsed_start
        if last.strip():
            parsed_end = _parse_offset(last)
            if parsed_end is None:
                return RangeNotSatisfiable("malformed")
            end = parsed_end
        else:
            end = size - 1

    if start >= size or start > end:
        return RangeNotSatisfiable("out_of_bounds")
    return RangeSpec(start=start, end=min(end, size - 1))


__all__ = ["RANGE_UNIT", "RangeNotSatisfiable", "RangeSpec", "parse_range"]
