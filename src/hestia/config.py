"""File server configuration.

:class:`FileServerConfig` mirrors the options a caller hands over (several are
unions of ``bool``/``str``/collections). :func:`resolve_config` validates it
once and normalizes every union into an explicit variant so the request path
never has to inspect option types again.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath
from typing import Any, Literal, Mapping

import msgspec
from msgspec import Struct

from .exceptions import ConfigurationError
from .execution import ExecutionConfig

KNOWN_ENCODINGS: tuple[str, ...] = ("br", "gzip", "deflate")


class DotfilePolicy(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    IGNORE = "ignore"


class ETagMode(str, Enum):
    DISABLED = "disabled"
    STRONG = "strong"
    WEAK = "weak"


class FileServerConfig(Struct, frozen=True):
    """Typed configuration for a :class:`~hestia.pipeline.FileServer`."""

    root: str
    index: tuple[str, ...] = ("index.html",)
    dotfiles: DotfilePolicy = DotfilePolicy.IGNORE
    headers: dict[str, str] = {}
    streaming: bool = True
    etag: bool | Literal["strong", "weak"] = True
    compression: bool | tuple[str, ...] = True
    precompressed: bool = True
    cache_control: str | dict[str, str] | None = None
    execution: ExecutionConfig = ExecutionConfig()

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "FileServerConfig":
        """Build a config from plain data (parsed TOML, JSON, env, ...)."""

        data = dict(options)
        if isinstance(data.get("root"), os.PathLike):
            data["root"] = os.fspath(data["root"])
        try:
            return msgspec.convert(data, type=cls)
        except msgspec.ValidationError as exc:
            raise ConfigurationError("INVALID_CONFIG", str(exc)) from exc


@dataclass(slots=True, frozen=True)
class EncodingPolicy:
    """Which content codings may be negotiated, in server preference order."""

    @property
    def supported(self) -> tuple[str, ...]:
        return ()

    @property
    def enabled(self) -> bool:
        return bool(self.supported)


@dataclass(slots=True, frozen=True)
class EncodingDisabled(EncodingPolicy):
    pass


@dataclass(slots=True, frozen=True)
class AllEncodings(EncodingPolicy):
    @property
    def supported(self) -> tuple[str, ...]:
        return KNOWN_ENCODINGS


@dataclass(slots=True, frozen=True)
class ExplicitEncodings(EncodingPolicy):
    names: tuple[str, ...] = ()

    @property
    def supported(self) -> tuple[str, ...]:
        return self.names


@dataclass(slots=True, frozen=True)
class CachePolicy:
    def directive_for(self, path: str) -> str | None:
        return None


@dataclass(slots=True, frozen=True)
class NoCacheControl(CachePolicy):
    pass


@dataclass(slots=True, frozen=True)
class GlobalCacheControl(CachePolicy):
    directive: str = ""

    def directive_for(self, path: str) -> str | None:
        return self.directive


@dataclass(slots=True, frozen=True)
class CacheControlRules(CachePolicy):
    """Ordered ``(pattern, directive)`` pairs; the first pattern found in the path wins."""

    rules: tuple[tuple[re.Pattern[str], str], ...] = ()

    def directive_for(self, path: str) -> str | None:
        for pattern, directive in self.rules:
            if pattern.search(path):
                return directive
        return None


@dataclass(slots=True, frozen=True)
class ResolvedConfig:
    root: Path
    index: tuple[str, ...]
    dotfiles: DotfilePolicy
    headers: tuple[tuple[str, str], ...]
    streaming: bool
    etag: ETagMode
    encodings: EncodingPolicy
    precompressed: bool
    cache_control: CachePolicy
    execution: ExecutionConfig


def resolve_config(config: FileServerConfig) -> ResolvedConfig:
    """Validate ``config`` and normalize it into a :class:`ResolvedConfig`."""

    return ResolvedConfig(
        root=_resolve_root(config.root),
        index=_resolve_index(config.index),
        dotfiles=_resolve_dotfiles(config.dotfiles),
        headers=_resolve_headers(config.headers),
        streaming=bool(config.streaming),
        etag=_resolve_etag(config.etag),
        encodings=_resolve_encodings(config.compression),
        precompressed=bool(config.precompressed),
        cache_control=_resolve_cache_control(config.cache_control),
        execution=config.execution,
    )


def _resolve_root(root: str | os.PathLike[str]) -> Path:
    if not root or not isinstance(root, (str, os.PathLike)):
        raise ConfigurationError("INVALID_CONFIG", "Root directory must be a non-empty path")
    path = Path(os.fspath(root))
    try:
        is_dir = path.is_dir()
        exists = path.exists()
    except OSError as exc:
        raise ConfigurationError("ROOT_NOT_ACCESSIBLE", f"Root directory not accessible: {path}") from exc
    if not exists:
        raise ConfigurationError("ROOT_NOT_ACCESSIBLE", f"Root directory not accessible: {path}")
    if not is_dir:
        raise ConfigurationError("INVALID_ROOT", f"Root path is not a directory: {path}")
    return path.resolve()


def _resolve_index(index: tuple[str, ...] | list[str] | str) -> tuple[str, ...]:
    if isinstance(index, str):
        index = (index,)
    names: list[str] = []
    for name in index:
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError("INVALID_INDEX_FILE", "Index file names must be non-empty strings")
        candidate = PurePath(name)
        if candidate.is_absolute() or name.startswith("/") or ".." in candidate.parts:
            raise ConfigurationError("INVALID_INDEX_FILE", f"Index file must be a relative name: {name}")
        names.append(name)
    return tuple(names)


def _resolve_dotfiles(value: DotfilePolicy | str) -> DotfilePolicy:
    try:
        return DotfilePolicy(value)
    except ValueError as exc:
        raise ConfigurationError("INVALID_DOTFILES", f"Unknown dotfile policy: {value!r}") from exc


def _resolve_headers(headers: Mapping[str, str] | None) -> tuple[tuple[str, str], ...]:
    pairs: list[tuple[str, str]] = []
    for name, value in (headers or {}).items():
        if not isinstance(name, str) or not isinstance(value, str):
            raise ConfigurationError("INVALID_HEADER", "Static headers must map strings to strings")
        if any(char in name + value for char in "\r\n\x00") or not name.strip():
            raise ConfigurationError("INVALID_HEADER", f"Invalid static header: {name!r}")
        pairs.append((name.strip().lower(), value))
    return tuple(pairs)


def _resolve_etag(value: bool | str) -> ETagMode:
    if value is True or value == "strong":
        return ETagMode.STRONG
    if value == "weak":
        return ETagMode.WEAK
    if value is False:
        return ETagMode.DISABLED
    raise ConfigurationError("INVALID_ETAG", f"Unsupported etag mode: {value!r}")


def _resolve_encodings(value: bool | tuple[str, ...] | list[str]) -> EncodingPolicy:
    if value is True:
        return AllEncodings()
    if value is False:
        return EncodingDisabled()
    names: list[str] = []
    for encoding in value:
        normalized = encoding.strip().lower() if isinstance(encoding, str) else encoding
        if normalized not in KNOWN_ENCODINGS:
            raise ConfigurationError(
                "INVALID_COMPRESSION",
                f"Unsupported compression algorithm: {encoding}. Supported: {', '.join(KNOWN_ENCODINGS)}",
            )
        if normalized not in names:
            names.append(normalized)
    if not names:
        return EncodingDisabled()
    return ExplicitEncodings(names=tuple(names))


def _resolve_cache_control(value: str | Mapping[str, str] | None) -> CachePolicy:
    if not value:
        return NoCacheControl()
    if isinstance(value, str):
        return GlobalCacheControl(directive=value)
    rules: list[tuple[re.Pattern[str], str]] = []
    for pattern, directive in value.items():
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            raise ConfigurationError(
                "INVALID_CACHE_PATTERN", f"Invalid regex pattern in cache control: {pattern}"
            ) from exc
        if not isinstance(directive, str):
            raise ConfigurationError("INVALID_CACHE_VALUE", f"Cache control value must be a string: {pattern}")
        rules.append((compiled, directive))
    return CacheControlRules(rules=tuple(rules))


__all__ = [
    "KNOWN_ENCODINGS",
    "AllEncodings",
    "CacheControlRules",
    "CachePolicy",
    "DotfilePolicy",
    "ETagMode",
    "EncodingDisabled",
    "EncodingPolicy",
    "ExplicitEncodings",
    "FileServerConfig",
    "GlobalCacheControl",
    "NoCacheControl",
    "ResolvedConfig",
    "resolve_config",
]
