"""Shared fixtures for the file server tests."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from hestia.config import FileServerConfig
from hestia.execution import ExecutionConfig, ExecutionMode
from hestia.pipeline import FileServer
from hestia.storage import FileStream, LocalFileSystem

README_TEXT = b"This is a plain text file for testing purposes."
INDEX_HTML = b"<!doctype html><h1>Home</h1>"
APP_JS = b"const data = '" + b"x" * 600 + b"';\n"
FIXED_MTIME = 1_700_000_000.25


def build_site(root: Path) -> Path:
    """Populate ``root`` with the files most tests serve."""

    (root / "readme.txt").write_bytes(README_TEXT)
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "app.js").write_bytes(APP_JS)
    (root / "style.css").write_text("body { color: red; }", encoding="utf-8")
    (root / "data.json").write_text('{"ok": true}', encoding="utf-8")
    (root / "empty.txt").write_bytes(b"")
    (root / "blob.unknownext").write_bytes(b"\x00\x01\x02")
    (root / ".env").write_text("SECRET_KEY=12345", encoding="utf-8")
    subdir = root / "subdir"
    subdir.mkdir()
    (subdir / "nested.txt").write_text("nested content", encoding="utf-8")
    (root / "empty-dir").mkdir()
    for path in root.rglob("*"):
        if path.is_file():
            os.utime(path, (FIXED_MTIME, FIXED_MTIME))
    return root


def make_server(root: Path, **options: Any) -> FileServer:
    options.setdefault("execution", ExecutionConfig(mode=ExecutionMode.THREAD, max_workers=2))
    return FileServer(FileServerConfig(root=str(root), **options))


class RecordingFileSystem(LocalFileSystem):
    """Local filesystem that remembers every stream it opened."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.streams: list[FileStream] = []

    async def open_stream(self, path: str, *, offset: int, length: int) -> FileStream:
        stream = await super().open_stream(path, offset=offset, length=length)
        self.streams.append(stream)
        return stream
