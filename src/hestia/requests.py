"""Request primitives."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from .http import sanitize_header


class ServeRequest:
    """Immutable view of an incoming request."""

    __slots__ = ("headers", "method", "path")

    method: str
    path: str
    headers: Mapping[str, str]

    def __init__(self, *, method: str, path: str, headers: Mapping[str, str] | None = None) -> None:
        object.__setattr__(self, "method", method.upper())
        object.__setattr__(self, "path", path)
        object.__setattr__(
            self,
            "headers",
            MappingProxyType({k.lower(): v for k, v in (headers or {}).items()}),
        )

    @classmethod
    def from_target(
        cls,
        method: str,
        target: str,
        headers: Mapping[str, str] | None = None,
    ) -> "ServeRequest":
        """Build a request from a raw request target, dropping query and fragment."""

        path = target.split("#", 1)[0].split("?", 1)[0]
        return cls(method=method, path=path or "/", headers=headers)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"ServeRequest(method={self.method!r}, path={self.path!r})"

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the sanitized header ``name``; blank values count as absent."""

        value = sanitize_header(self.headers.get(name.lower()))
        return default if value is None else value


__all__ = ["ServeRequest"]
