from __future__ import annotations

import errno
import os

import pytest
import pytest_asyncio

from hestia.exceptions import FileServerError
from hestia.execution import ExecutionConfig, ExecutionMode, TaskExecutor
from hestia.storage import FileMetadata, FileStream, LocalFileSystem, is_missing


@pytest_asyncio.fixture
async def executor():
    executor = TaskExecutor(ExecutionConfig(mode=ExecutionMode.THREAD, max_workers=2))
    yield executor
    await executor.shutdown()


@pytest.mark.asyncio
async def test_stat_reports_size_and_kind(tmp_path, executor) -> None:
    (tmp_path / "file.bin").write_bytes(b"abcdef")
    fs = LocalFileSystem(executor)
    metadata = await fs.stat(str(tmp_path / "file.bin"))
    assert metadata.size == 6
    assert metadata.is_file
    assert not metadata.is_dir
    directory = await fs.stat(str(tmp_path))
    assert directory.is_dir


@pytest.mark.asyncio
async def test_stat_missing_raises_file_not_found(tmp_path, executor) -> None:
    fs = LocalFileSystem(executor)
    with pytest.raises(FileNotFoundError):
        await fs.stat(str(tmp_path / "missing"))


@pytest.mark.asyncio
async def test_lstat_sees_symlinks(tmp_path, executor) -> None:
    (tmp_path / "real.txt").write_text("real", encoding="utf-8")
    link = tmp_path / "link.txt"
    try:
        link.symlink_to(tmp_path / "real.txt")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not supported here")
    fs = LocalFileSystem(executor)
    assert (await fs.lstat(str(link))).is_symlink
    assert (await fs.stat(str(link))).is_file


def test_metadata_time_views() -> None:
    metadata = FileMetadata(size=1, mtime_ns=1_700_000_000_250_000_000, mode=0o100644)
    assert metadata.mtime_ms == 1_700_000_000_250
    assert metadata.mtime_seconds == 1_700_000_000
    assert metadata.mtime == pytest.approx(1_700_000_000.25)
    assert metadata.is_file


@pytest.mark.asyncio
async def test_stream_reads_span_in_chunks(tmp_path, executor) -> None:
    (tmp_path / "data.bin").write_bytes(bytes(range(256)) * 4)
    fs = LocalFileSystem(executor, chunk_size=100)
    stream = await fs.open_stream(str(tmp_path / "data.bin"), offset=10, length=250)
    chunks = [chunk async for chunk in stream]
    assert [len(chunk) for chunk in chunks] == [100, 100, 50]
    assert b"".join(chunks) == (bytes(range(256)) * 4)[10:260]
    assert stream.closed


@pytest.mark.asyncio
async def test_stream_aclose_releases_handle_early(tmp_path, executor) -> None:
    (tmp_path / "data.bin").write_bytes(b"x" * 1000)
    fs = LocalFileSystem(executor, chunk_size=10)
    async with await fs.open_stream(str(tmp_path / "data.bin"), offset=0, length=1000) as stream:
        assert await stream.__anext__() == b"x" * 10
    assert stream.closed
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.asyncio
async def test_stream_stops_at_eof_when_file_shrinks(tmp_path, executor) -> None:
    (tmp_path / "data.bin").write_bytes(b"x" * 10)
    fs = LocalFileSystem(executor)
    stream = await fs.open_stream(str(tmp_path / "data.bin"), offset=0, length=50)
    assert [chunk async for chunk in stream] == [b"x" * 10]
    assert stream.closed


class _FailingHandle:
    closed = False

    def seek(self, offset: int) -> int:
        return offset

    def read(self, size: int) -> bytes:
        raise OSError(errno.EIO, "I/O error")

    def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_stream_read_failure_closes_and_raises(executor) -> None:
    handle = _FailingHandle()
    stream = FileStream(handle, offset=0, length=10, executor=executor)  # type: ignore[arg-type]
    with pytest.raises(FileServerError) as excinfo:
        await stream.__anext__()
    assert excinfo.value.code == "READ_ERROR"
    assert excinfo.value.operation == "stream"
    assert handle.closed


def test_stream_rejects_non_positive_chunk_size() -> None:
    executor = TaskExecutor(ExecutionConfig(mode=ExecutionMode.INLINE))
    with pytest.raises(ValueError):
        FileStream(_FailingHandle(), offset=0, length=1, executor=executor, chunk_size=0)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_read_range_returns_exact_bytes(tmp_path, executor) -> None:
    (tmp_path / "data.txt").write_bytes(b"0123456789")
    fs = LocalFileSystem(executor)
    assert await fs.read_range(str(tmp_path / "data.txt"), offset=2, length=5) == b"23456"


@pytest.mark.asyncio
async def test_open_and_read_failures_become_file_server_errors(tmp_path, executor) -> None:
    fs = LocalFileSystem(executor)
    with pytest.raises(FileServerError) as opened:
        await fs.open_stream(str(tmp_path / "missing"), offset=0, length=1)
    assert opened.value.code == "OPEN_ERROR"
    assert opened.value.status == 500
    with pytest.raises(FileServerError) as read:
        await fs.read_range(str(tmp_path / "missing"), offset=0, length=1)
    assert read.value.code == "READ_ERROR"
    assert str(tmp_path) not in read.value.to_response_body().decode()


@pytest.mark.parametrize(
    ("code", "missing"),
    [
        (errno.ENOENT, True),
        (errno.ENOTDIR, True),
        (errno.ENAMETOOLONG, True),
        (errno.ELOOP, True),
        (errno.EACCES, False),
        (errno.EIO, False),
    ],
)
def test_is_missing(code, missing) -> None:
    assert is_missing(OSError(code, os.strerror(code))) is missing


@pytest.mark.asyncio
async def test_overlong_name_reports_name_too_long(tmp_path, executor) -> None:
    fs = LocalFileSystem(executor)
    with pytest.raises(OSError) as excinfo:
        await fs.lstat(str(tmp_path / ("a" * 300)))
    assert is_missing(excinfo.value)
