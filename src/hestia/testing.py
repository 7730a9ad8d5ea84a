"""Testing helpers."""

from __future__ import annotations

from typing import Any, Mapping

import msgspec

from .pipeline import FileServer
from .requests import ServeRequest
from .responses import Headers, Response


class TestResponse(msgspec.Struct, frozen=True):
    """Response with its body fully drained, streamed or not."""

    __test__ = False

    status: int
    headers: Headers
    body: bytes
    streamed: bool = False

    def header(self, name: str, default: str | None = None) -> str | None:
        lowered = name.lower()
        for key, value in reversed(self.headers):
            if key == lowered:
                return value
        return default


async def read_body(response: Response) -> bytes:
    """Drain ``response`` and release any stream it holds."""

    stream = response.stream
    if stream is None:
        return response.body
    chunks: list[bytes] = []
    try:
        async for chunk in stream:
            chunks.append(chunk)
    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()
    return b"".join(chunks)


class TestClient:
    """Async test client that executes requests in-process."""

    __test__ = False

    def __init__(self, server: FileServer) -> None:
        self.server = server

    async def __aenter__(self) -> "TestClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.server.aclose()

    async def request(
        self,
        method: str,
        target: str,
        *,
        headers: Mapping[str, str] | None = None,
    ) -> TestResponse:
        request = ServeRequest.from_target(method, target, headers)
        response = await self.server.handle(request)
        body = await read_body(response)
        return TestResponse(
            status=response.status,
            headers=response.headers,
            body=body,
            streamed=response.stream is not None,
        )

    async def get(self, target: str, *, headers: Mapping[str, str] | None = None) -> TestResponse:
        return await self.request("GET", target, headers=headers)

    async def head(self, target: str, *, headers: Mapping[str, str] | None = None) -> TestResponse:
        return await self.request("HEAD", target, headers=headers)
