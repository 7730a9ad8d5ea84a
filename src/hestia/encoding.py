"""Content-encoding negotiation against pre-compressed sibling files.

Nothing is compressed at request time. ``app.js`` can be served as ``br`` only
when ``app.js.br`` already exists next to it; ``gzip`` and ``deflate`` both
look for ``app.js.gz``.
"""

from __future__ import annotations

import logging
import math

import msgspec

from .storage import FileMetadata, FileSystem, is_missing

logger = logging.getLogger(__name__)

SIBLING_EXTENSIONS: dict[str, str] = {
    "br": ".br",
    "gzip": ".gz",
    "deflate": ".gz",
}


class EncodingChoice(msgspec.Struct, frozen=True):
    """File actually served; ``encoding`` is ``None`` for the identity file."""

    path: str
    metadata: FileMetadata
    encoding: str | None = None


def _parse_quality(params: list[str]) -> float:
    """Weight in ``[0, 1]``; unparsable or non-finite weights count as 0."""

    quality = 1.0
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() != "q":
            continue
        try:
            quality = float(value.strip())
        except ValueError:
            quality = 0.0
        if not math.isfinite(quality):
            quality = 0.0
    return min(quality, 1.0)


def parse_accept_encoding(header: str | None) -> tuple[tuple[str, float], ...]:
    """Return ``(coding, weight)`` pairs in client preference order.

    Codings with a weight of zero or less are dropped. Ties keep header order
    because :func:`sorted` is stable. Repeated codings keep their first entry.
    """

    if not header:
        return ()
    entries: list[tuple[str, float]] = []
    seen: set[str] = set()
    for raw_part in header.split(","):
        parts = [segment.strip() for segment in raw_part.split(";")]
        coding = parts[0].lower() if parts else ""
        if not coding or coding in seen:
            continue
        seen.add(coding)
        quality = _parse_quality(parts[1:])
        if quality <= 0:
            continue
        entries.append((coding, quality))
    return tuple(sorted(entries, key=lambda entry: -entry[1]))


def acceptable_encodings(header: str | None, supported: tuple[str, ...]) -> tuple[str, ...]:
    """Order the server's ``supported`` codings by the client's preferences.

    ``*`` stands for every supported coding the header does not name itself.
    """

    preferences = parse_accept_encoding(header)
    named = {coding for coding, _ in preferences}
    refused = {
        part.split(";", 1)[0].strip().lower()
        for part in (header or "").split(",")
        if part.strip()
    } - named
    ordered: list[str] = []
    for coding, _ in preferences:
        if coding == "*":
            candidates = [name for name in supported if name not in named and name not in refused]
        else:
            candidates = [coding] if coding in supported else []
        for candidate in candidates:
            if candidate not in ordered:
                ordered.append(candidate)
    return tuple(ordered)


async def find_precompressed(filesystem: FileSystem, path: str, encoding: str) -> FileMetadata | None:
    """Return the metadata of ``path``'s sibling for ``encoding`` if it is a plain file."""

    extension = SIBLING_EXTENSIONS.get(encoding)
    if extension is None:
        return None
    sibling = f"{path}{extension}"
    try:
        link_metadata = await filesystem.lstat(sibling)
    except OSError as exc:
        if is_missing(exc):
            return None
        raise
    if not link_metadata.is_file:
        return None
    return link_metadata


async def negotiate_encoding(
    filesystem: FileSystem,
    path: str,
    metadata: FileMetadata,
    header: str | None,
    supported: tuple[str, ...],
    *,
    precompressed: bool = True,
) -> EncodingChoice:
    """Pick the first acceptable coding that has a sibling file on disk."""

    identity = EncodingChoice(path=path, metadata=metadata)
    if not header or not supported or not precompressed:
        return identity
    for encoding in acceptable_encodings(header, supported):
        sibling_metadata = await find_precompressed(filesystem, path, encoding)
        if sibling_metadata is None:
            continue
        logger.debug("Serving %s with content-encoding %s", path, encoding)
        return EncodingChoice(
            path=f"{path}{SIBLING_EXTENSIONS[encoding]}",
            metadata=sibling_metadata,
            encoding=encoding,
        )
    return identity


__all__ = [
    "SIBLING_EXTENSIONS",
    "EncodingChoice",
    "acceptable_encodings",
    "find_precompressed",
    "negotiate_encoding",
    "parse_accept_encoding",
]
