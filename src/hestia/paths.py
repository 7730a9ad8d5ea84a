"""Mapping request paths onto the served directory tree."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from urllib.parse import unquote

import msgspec

from .config import DotfilePolicy
from .exceptions import FileServerError
from .http import Status
from .responses import Terminal, error_response
from .storage import FileSystem, is_missing

logger = logging.getLogger(__name__)

_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class ResolvedTarget(msgspec.Struct, frozen=True):
    """Absolute path confirmed to lie inside the root, plus its relative parts."""

    path: str
    parts: tuple[str, ...]

    def child(self, name: str) -> "ResolvedTarget":
        relative = tuple(part for part in Path(name).parts if part not in ("", "."))
        return ResolvedTarget(path=os.path.join(self.path, *relative), parts=self.parts + relative)


def forbidden() -> Terminal:
    return Terminal(error_response(Status.FORBIDDEN, "forbidden"))


def not_found() -> Terminal:
    return Terminal(error_response(Status.NOT_FOUND, "not_found"))


def decode_path(raw_path: str) -> str | None:
    """Percent-decode ``raw_path``; ``None`` when it is not valid UTF-8 or has bad escapes."""

    if _MALFORMED_ESCAPE.search(raw_path):
        return None
    try:
        decoded = unquote(raw_path, errors="strict")
    except UnicodeDecodeError:
        return None
    if "\x00" in decoded:
        return None
    return decoded


def is_dotfile(parts: tuple[str, ...]) -> bool:
    return any(part.startswith(".") for part in parts)


def resolve_path(raw_path: str, root: Path, dotfiles: DotfilePolicy) -> ResolvedTarget | Terminal:
    """Resolve ``raw_path`` below ``root``.

    Escaping the root (or an undecodable path) is a security violation and
    yields 403. Dotfiles under the ``deny``/``ignore`` policies look exactly
    like missing files (404).
    """

    decoded = decode_path(raw_path)
    if decoded is None:
        logger.warning("Rejected undecodable request path %r", raw_path)
        return forbidden()
    root_path = os.fspath(root)
    relative = decoded.lstrip("/")
    target = os.path.normpath(os.path.join(root_path, relative))
    relative_to_root = os.path.relpath(target, root_path)
    if os.path.isabs(relative_to_root) or relative_to_root.split(os.sep, 1)[0] == os.pardir:
        logger.warning("Rejected request path escaping the root: %r", raw_path)
        return forbidden()
    parts = () if relative_to_root == os.curdir else tuple(relative_to_root.split(os.sep))
    if is_dotfile(parts) and dotfiles is not DotfilePolicy.ALLOW:
        return not_found()
    return ResolvedTarget(path=target, parts=parts)


async def check_symlinks(filesystem: FileSystem, root: Path, target: ResolvedTarget) -> Terminal | None:
    """Refuse any symbolic link between ``root`` and ``target`` with a 404.

    Broken links are refused the same way. A missing component, or a name too
    long to exist, is also a 404; any other ``lstat`` failure is an internal error.
    """

    current = os.fspath(root)
    for part in target.parts:
        current = os.path.join(current, part)
        try:
            metadata = await filesystem.lstat(current)
        except OSError as exc:
            if is_missing(exc):
                return not_found()
            raise FileServerError("SYMLINK_CHECK_ERROR", operation="symlink_check") from exc
        if metadata.is_symlink:
            logger.debug("Refusing symbolic link %s", current)
            return not_found()
    return None


__all__ = [
    "ResolvedTarget",
    "check_symlinks",
    "decode_path",
    "forbidden",
    "is_dotfile",
    "not_found",
    "resolve_path",
]
