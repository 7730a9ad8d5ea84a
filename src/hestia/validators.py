"""ETag and Last-Modified generation.

ETags hash ``(size, mtime, path)``, never the file contents. Two paths holding
identical bytes therefore get different tags.
"""

from __future__ import annotations

import hashlib

import msgspec

from .config import ETagMode
from .http import http_date
from .storage import FileMetadata

ETAG_LENGTH = 16


class Validator(msgspec.Struct, frozen=True):
    last_modified: str
    etag: str | None = None


def generate_etag(size: int, mtime_ms: int, path: str, *, weak: bool = False) -> str:
    digest = hashlib.sha256(f"{size}-{mtime_ms}-{path}".encode("utf-8", "surrogateescape")).hexdigest()
    token = f'"{digest[:ETAG_LENGTH]}"'
    return f"W/{token}" if weak else token


def build_validator(metadata: FileMetadata, path: str, mode: ETagMode) -> Validator:
    etag: str | None = None
    if mode is not ETagMode.DISABLED:
        etag = generate_etag(metadata.size, metadata.mtime_ms, path, weak=mode is ETagMode.WEAK)
    return Validator(last_modified=http_date(metadata.mtime_seconds), etag=etag)


__all__ = ["ETAG_LENGTH", "Validator", "build_validator", "generate_etag"]
