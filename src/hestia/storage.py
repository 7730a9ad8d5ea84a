"""Filesystem access used by the serving pipeline.

Every blocking call goes through :class:`~hestia.execution.TaskExecutor`.
Nothing here caches: metadata is read fresh for each request because files
may change between requests.
"""

from __future__ import annotations

import errno
import logging
import os
import stat as stat_module
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol

from .exceptions import FileServerError
from .execution import TaskExecutor

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# errno values for names that do not, or cannot, exist below the root.
MISSING_ERRNOS: frozenset[int] = frozenset({errno.ENOENT, errno.ENOTDIR, errno.ENAMETOOLONG, errno.ELOOP})


def is_missing(exc: OSError) -> bool:
    return exc.errno in MISSING_ERRNOS


@dataclass(slots=True, frozen=True)
class FileMetadata:
    size: int
    mtime_ns: int
    mode: int

    @classmethod
    def from_stat(cls, result: os.stat_result) -> "FileMetadata":
        return cls(size=result.st_size, mtime_ns=result.st_mtime_ns, mode=result.st_mode)

    @property
    def is_dir(self) -> bool:
        return stat_module.S_ISDIR(self.mode)

    @property
    def is_file(self) -> bool:
        return stat_module.S_ISREG(self.mode)

    @property
    def is_symlink(self) -> bool:
        return stat_module.S_ISLNK(self.mode)

    @property
    def mtime(self) -> float:
        return self.mtime_ns / 1_000_000_000

    @property
    def mtime_ms(self) -> int:
        return self.mtime_ns // 1_000_000

    @property
    def mtime_seconds(self) -> int:
        return self.mtime_ns // 1_000_000_000


class FileSystem(Protocol):
    """Storage capability consumed by :class:`~hestia.pipeline.FileServer`.

    ``stat`` and ``lstat`` raise :class:`OSError` for missing paths; see
    :func:`is_missing`.
    """

    async def stat(self, path: str) -> FileMetadata: ...

    async def lstat(self, path: str) -> FileMetadata: ...

    async def open_stream(self, path: str, *, offset: int, length: int) -> "FileStream": ...

    async def read_range(self, path: str, *, offset: int, length: int) -> bytes: ...


def _stat_path(path: str) -> FileMetadata:
    return FileMetadata.from_stat(os.stat(path))


def _lstat_path(path: str) -> FileMetadata:
    return FileMetadata.from_stat(os.lstat(path))


def _open_path(path: str) -> BinaryIO:
    return open(path, "rb")


def _read_at(handle: BinaryIO, offset: int, length: int) -> bytes:
    handle.seek(offset)
    return handle.read(length)


def _read_path_span(path: str, offset: int, length: int) -> bytes:
    with open(path, "rb") as handle:
        return _read_at(handle, offset, length)


class FileStream:
    """Async iterator over a byte span of an open file.

    Chunks are read only when the consumer asks for the next one. The handle is
    closed when the span is exhausted, when a read fails, or when the consumer
    calls :meth:`aclose` (directly or by leaving ``async with``).
    """

    def __init__(
        self,
        handle: BinaryIO,
        *,
        offset: int,
        length: int,
        executor: TaskExecutor,
        chunk_size: int = CHUNK_SIZE,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._handle = handle
        self._position = offset
        self._remaining = max(length, 0)
        self._executor = executor
        self._chunk_size = chunk_size

    @property
    def closed(self) -> bool:
        return self._handle.closed

    def __aiter__(self) -> "FileStream":
        return self

    async def __anext__(self) -> bytes:
        if self.closed or self._remaining <= 0:
            await self.aclose()
            raise StopAsyncIteration
        size = min(self._chunk_size, self._remaining)
        try:
            chunk = await self._executor.run(_read_at, self._handle, self._position, size)
        except OSError as exc:
            await self.aclose()
            raise FileServerError("READ_ERROR", operation="stream") from exc
        except BaseException:
            await self.aclose()
            raise
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration
        self._position += len(chunk)
        self._remaining -= len(chunk)
        return chunk

    async def aclose(self) -> None:
        if not self._handle.closed:
            self._handle.close()

    async def __aenter__(self) -> "FileStream":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()


class LocalFileSystem:
    """:class:`FileSystem` backed by the local disk."""

    def __init__(self, executor: TaskExecutor, *, chunk_size: int = CHUNK_SIZE) -> None:
        self._executor = executor
        self._chunk_size = chunk_size

    async def stat(self, path: str) -> FileMetadata:
        return await self._executor.run(_stat_path, path)

    async def lstat(self, path: str) -> FileMetadata:
        return await self._executor.run(_lstat_path, path)

    async def open_stream(self, path: str, *, offset: int, length: int) -> FileStream:
        try:
            handle = await self._executor.run(_open_path, path)
        except OSError as exc:
            logger.error("Unable to open %s for streaming: %s", path, exc)
            raise FileServerError("OPEN_ERROR", operation="open") from exc
        return FileStream(
            handle,
            offset=offset,
            length=length,
            executor=self._executor,
            chunk_size=self._chunk_size,
        )

    async def read_range(self, path: str, *, offset: int, length: int) -> bytes:
        try:
            return await self._executor.run(_read_path_span, path, offset, length)
        except OSError as exc:
            logger.error("Unable to read %s: %s", path, exc)
            raise FileServerError("READ_ERROR", operation="read") from exc


__all__ = [
    "CHUNK_SIZE",
    "MISSING_ERRNOS",
    "FileMetadata",
    "FileStream",
    "FileSystem",
    "LocalFileSystem",
    "is_missing",
]
