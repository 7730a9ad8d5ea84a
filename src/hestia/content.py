"""Content type lookup."""

from __future__ import annotations

from pathlib import PurePath
from types import MappingProxyType
from typing import Mapping

DEFAULT_CONTENT_TYPE = "application/octet-stream"

MIME_TYPES: Mapping[str, str] = MappingProxyType(
    {
        # text
        ".html": "text/html",
        ".htm": "text/html",
        ".css": "text/css",
        ".js": "text/javascript",
        ".mjs": "text/javascript",
        ".txt": "text/plain",
        ".xml": "text/xml",
        ".json": "application/json",
        # images
        ".png": "image/png",
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".gif": "image/gif",
        ".svg": "image/svg+xml",
        ".webp": "image/webp",
        ".ico": "image/x-icon",
        # fonts
        ".woff": "font/woff",
        ".woff2": "font/woff2",
        ".ttf": "font/ttf",
        ".otf": "font/otf",
        ".eot": "application/vnd.ms-fontobject",
        # archives and documents
        ".pdf": "application/pdf",
        ".zip": "application/zip",
        ".tar": "application/x-tar",
        ".gz": "application/gzip",
        # media
        ".mp4": "video/mp4",
        ".webm": "video/webm",
        ".mp3": "audio/mpeg",
        ".wav": "audio/wav",
        ".ogg": "audio/ogg",
    }
)


def mime_type_for(path: str | PurePath) -> str:
    """Return the media type for ``path`` based on its final extension."""

    suffix = PurePath(path).suffix.lower()
    return MIME_TYPES.get(suffix, DEFAULT_CONTENT_TYPE)


__all__ = ["DEFAULT_CONTENT_TYPE", "MIME_TYPES", "mime_type_for"]
