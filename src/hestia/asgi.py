"""ASGI adapter for :class:`~hestia.pipeline.FileServer`."""

from __future__ import annotations

import logging
from typing import Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Mapping

from .exceptions import FileServerError
from .http import Status
from .pipeline import FileServer
from .requests import ServeRequest
from .responses import Response, error_response, exception_to_response

logger = logging.getLogger(__name__)

Receive = Callable[[], Awaitable[Mapping[str, Any]]]
Send = Callable[[Mapping[str, Any]], Awaitable[None]]


class StaticFilesApp:
    """Expose a :class:`FileServer` as an ASGI 3 application."""

    def __init__(self, server: FileServer) -> None:
        self.server = server

    async def __call__(self, scope: Mapping[str, Any], receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            raise RuntimeError("StaticFilesApp only supports HTTP scopes")
        request = request_from_scope(scope)
        response = await self.server.handle(request)
        await send_response(response, send)


def request_from_scope(scope: Mapping[str, Any]) -> ServeRequest:
    """Build a :class:`ServeRequest` from an ASGI HTTP scope.

    ``raw_path`` keeps the percent-encoding the resolver needs to see; servers
    that omit it get ``path`` re-used as is.
    """

    headers: dict[str, str] = {}
    for key, value in scope.get("headers", []):
        name = key.decode("latin-1").lower()
        decoded = value.decode("latin-1")
        headers[name] = f"{headers[name]}, {decoded}" if name in headers else decoded
    raw_path = scope.get("raw_path")
    target = raw_path.decode("latin-1") if raw_path else scope.get("path", "/")
    return ServeRequest.from_target(scope.get("method", "GET"), target, headers)


async def send_response(response: Response, send: Send) -> None:
    stream = response.stream
    if stream is None:
        await _send_start(response, send)
        await send({"type": "http.response.body", "body": response.body})
        return
    iterator = _ensure_async_iterator(stream)
    try:
        try:
            first = await anext(iterator)
        except StopAsyncIteration:
            first = b""
        except FileServerError as exc:
            logger.exception("Failed to read the first chunk of a response body")
            await send_response(exception_to_response(exc), send)
            return
        except OSError:
            logger.exception("Failed to read the first chunk of a response body")
            await send_response(error_response(Status.INTERNAL_SERVER_ERROR, "internal_error"), send)
            return
        await _send_start(response, send)
        await send({"type": "http.response.body", "body": first, "more_body": True})
        async for chunk in iterator:
            await send({"type": "http.response.body", "body": chunk, "more_body": True})
        await send({"type": "http.response.body", "body": b"", "more_body": False})
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()


async def _send_start(response: Response, send: Send) -> None:
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": [(k.encode("latin-1"), v.encode("latin-1")) for k, v in response.headers],
        }
    )


def _ensure_async_iterator(stream: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    if isinstance(stream, AsyncIterator):
        return stream
    return stream.__aiter__()


__all__ = ["StaticFilesApp", "request_from_scope", "send_response"]
