from __future__ import annotations

import os

import pytest
import pytest_asyncio

from hestia.encoding import acceptable_encodings, find_precompressed, negotiate_encoding, parse_accept_encoding
from hestia.execution import ExecutionConfig, ExecutionMode, TaskExecutor
from hestia.storage import LocalFileSystem

SUPPORTED = ("br", "gzip", "deflate")


@pytest_asyncio.fixture
async def filesystem():
    executor = TaskExecutor(ExecutionConfig(mode=ExecutionMode.INLINE))
    yield LocalFileSystem(executor)
    await executor.shutdown()


def test_parse_accept_encoding_orders_by_weight() -> None:
    assert parse_accept_encoding("gzip;q=0.5, br, deflate;q=0.8") == (
        ("br", 1.0),
        ("deflate", 0.8),
        ("gzip", 0.5),
    )


def test_parse_accept_encoding_ties_keep_header_order() -> None:
    assert [coding for coding, _ in parse_accept_encoding("gzip, br")] == ["gzip", "br"]


def test_parse_accept_encoding_drops_refused_and_invalid_weights() -> None:
    assert parse_accept_encoding("br;q=0, gzip;q=abc, deflate;q=-1, identity") == (("identity", 1.0),)


def test_parse_accept_encoding_empty() -> None:
    assert parse_accept_encoding(None) == ()
    assert parse_accept_encoding("") == ()


def test_acceptable_encodings_filters_to_supported() -> None:
    assert acceptable_encodings("gzip, zstd, br;q=0.9", SUPPORTED) == ("gzip", "br")
    assert acceptable_encodings("gzip, br", ("gzip",)) == ("gzip",)


def test_wildcard_expands_to_unnamed_codings() -> None:
    assert acceptable_encodings("*", SUPPORTED) == SUPPORTED
    assert acceptable_encodings("gzip;q=0.1, *", SUPPORTED) == ("br", "deflate", "gzip")
    assert acceptable_encodings("br;q=0, *", SUPPORTED) == ("gzip", "deflate")


@pytest.mark.asyncio
async def test_negotiation_prefers_client_order(tmp_path, filesystem) -> None:
    source = tmp_path / "app.js"
    source.write_bytes(b"x" * 100)
    (tmp_path / "app.js.br").write_bytes(b"b" * 10)
    (tmp_path / "app.js.gz").write_bytes(b"g" * 20)
    metadata = await filesystem.stat(str(source))

    choice = await negotiate_encoding(filesystem, str(source), metadata, "gzip, br;q=0.5", SUPPORTED)
    assert choice.encoding == "gzip"
    assert choice.path == f"{source}.gz"
    assert choice.metadata.size == 20

    choice = await negotiate_encoding(filesystem, str(source), metadata, "br, gzip", SUPPORTED)
    assert choice.encoding == "br"
    assert choice.metadata.size == 10


@pytest.mark.asyncio
async def test_deflate_uses_gzip_sibling(tmp_path, filesystem) -> None:
    source = tmp_path / "app.js"
    source.write_bytes(b"x" * 100)
    (tmp_path / "app.js.gz").write_bytes(b"g" * 20)
    metadata = await filesystem.stat(str(source))
    choice = await negotiate_encoding(filesystem, str(source), metadata, "deflate", SUPPORTED)
    assert choice.encoding == "deflate"
    assert choice.path == f"{source}.gz"


@pytest.mark.asyncio
async def test_negotiation_falls_back_to_identity(tmp_path, filesystem) -> None:
    source = tmp_path / "app.js"
    source.write_bytes(b"x" * 100)
    metadata = await filesystem.stat(str(source))

    for header in (None, "", "br", "identity", "br;q=0"):
        choice = await negotiate_encoding(filesystem, str(source), metadata, header, SUPPORTED)
        assert choice.encoding is None
        assert choice.path == str(source)
        assert choice.metadata == metadata

    (tmp_path / "app.js.br").write_bytes(b"b")
    disabled = await negotiate_encoding(filesystem, str(source), metadata, "br", SUPPORTED, precompressed=False)
    assert disabled.encoding is None
    unsupported = await negotiate_encoding(filesystem, str(source), metadata, "br", ("gzip",))
    assert unsupported.encoding is None


@pytest.mark.asyncio
async def test_sibling_must_be_a_regular_file(tmp_path, filesystem) -> None:
    source = tmp_path / "app.js"
    source.write_bytes(b"x")
    (tmp_path / "app.js.gz").mkdir()
    assert await find_precompressed(filesystem, str(source), "gzip") is None
    assert await find_precompressed(filesystem, str(source), "zstd") is None


@pytest.mark.asyncio
async def test_symlinked_sibling_is_ignored(tmp_path, filesystem) -> None:
    source = tmp_path / "app.js"
    source.write_bytes(b"x")
    (tmp_path / "elsewhere.br").write_bytes(b"b")
    try:
        os.symlink(tmp_path / "elsewhere.br", tmp_path / "app.js.br")
    except (OSError, NotImplementedError):
        pytest.skip("symlinks are not supported here")
    assert await find_precompressed(filesystem, str(source), "br") is None


def test_non_finite_weights_are_dropped() -> None:
    assert parse_accept_encoding("deflate;q=0.1, gzip;q=nan, br;q=1") == (("br", 1.0), ("deflate", 0.1))
    assert parse_accept_encoding("gzip;q=inf, br;q=-inf, deflate") == (("deflate", 1.0),)


def test_weights_above_one_are_clamped() -> None:
    assert parse_accept_encoding("gzip;q=5, br") == (("gzip", 1.0), ("br", 1.0))
    assert acceptable_encodings("gzip;q=5, br", SUPPORTED) == ("gzip", "br")


@pytest.mark.asyncio
async def test_sibling_name_too_long_falls_back_to_identity(tmp_path, filesystem) -> None:
    source = tmp_path / ("a" * 250 + ".txt")
    source.write_bytes(b"x")
    metadata = await filesystem.stat(str(source))
    assert await find_precompressed(filesystem, str(source), "br") is None
    choice = await negotiate_encoding(filesystem, str(source), metadata, "br, gzip", SUPPORTED)
    assert choice.encoding is None
