"""Response primitives."""

from __future__ import annotations

from typing import AsyncIterable, Iterable, Iterator

import msgspec

from .exceptions import HTTPError
from .http import Status

Headers = tuple[tuple[str, str], ...]

# Headers whose values are dictated by the chosen status and body; caller
# supplied static headers never replace them.
PROTECTED_HEADERS: frozenset[str] = frozenset(
    {"content-length", "content-range", "content-encoding", "etag", "last-modified"}
)


class Response(msgspec.Struct, frozen=True):
    """Immutable response payload.

    ``stream`` is set instead of ``body`` for streamed responses; whoever
    consumes it must ``aclose()`` it when done.
    """

    status: int = int(Status.OK)
    headers: Headers = ()
    body: bytes = b""
    stream: AsyncIterable[bytes] | None = None

    def header(self, name: str, default: str | None = None) -> str | None:
        lowered = name.lower()
        for key, value in reversed(self.headers):
            if key == lowered:
                return value
        return default


class Terminal(msgspec.Struct, frozen=True):
    """Tagged stage result: stop the pipeline and send ``response``."""

    response: Response


class ResponseHeaders:
    """Ordered, case-insensitive header map where the last write wins."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: dict[str, str] = {}
        for name, value in items:
            self[name] = value

    def __setitem__(self, name: str, value: str) -> None:
        key = name.lower()
        self._items.pop(key, None)
        self._items[key] = value

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._items.get(name.lower(), default)

    def set_optional(self, name: str, value: str | None) -> None:
        if value is not None:
            self[name] = value

    def merge(self, overrides: Iterable[tuple[str, str]], *, protected: frozenset[str] = PROTECTED_HEADERS) -> None:
        """Apply caller overrides; names in ``protected`` are never touched."""

        for name, value in overrides:
            key = name.lower()
            if key in protected:
                continue
            self[key] = value

    def to_tuple(self) -> Headers:
        return tuple(self._items.items())


def error_response(
    status: int | Status,
    detail: str,
    *,
    headers: Iterable[tuple[str, str]] = (),
) -> Response:
    """Return a JSON error response; ``detail`` must never carry paths."""

    return exception_to_response(HTTPError(status, detail), headers=headers)


def exception_to_response(exc: HTTPError, *, headers: Iterable[tuple[str, str]] = ()) -> Response:
    body = exc.to_response_body()
    merged = ResponseHeaders((("content-type", "application/json"), ("content-length", str(len(body)))))
    merged.merge(headers, protected=frozenset({"content-length"}))
    return Response(status=exc.status, headers=merged.to_tuple(), body=body)


__all__ = [
    "PROTECTED_HEADERS",
    "Headers",
    "Response",
    "ResponseHeaders",
    "Terminal",
    "error_response",
    "exception_to_response",
]
