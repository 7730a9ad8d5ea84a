"""Final status, headers and body for a successful file response."""

from __future__ import annotations

from typing import Iterable

from .encoding import EncodingChoice
from .http import Status
from .ranges import RangeSpec
from .responses import Response, ResponseHeaders
from .storage import FileSystem
from .validators import Validator


def build_headers(
    *,
    content_type: str,
    content_length: int,
    validator: Validator,
    encoding: str | None,
    cache_control: str | None,
    content_range: str | None,
    vary: bool,
    overrides: Iterable[tuple[str, str]],
) -> ResponseHeaders:
    headers = ResponseHeaders()
    headers["content-type"] = content_type
    headers["content-length"] = str(content_length)
    headers["last-modified"] = validator.last_modified
    headers["accept-ranges"] = "bytes"
    headers.set_optional("etag", validator.etag)
    headers.set_optional("content-encoding", encoding)
    headers.set_optional("cache-control", cache_control)
    headers.set_optional("content-range", content_range)
    if vary:
        headers["vary"] = "accept-encoding"
    headers.merge(overrides)
    return headers


async def assemble_response(
    filesystem: FileSystem,
    choice: EncodingChoice,
    *,
    range_spec: RangeSpec | None,
    content_type: str,
    validator: Validator,
    cache_control: str | None,
    vary: bool,
    overrides: Iterable[tuple[str, str]],
    head: bool,
    streaming: bool,
) -> Response:
    """Build the 200/206 response for ``choice``.

    ``HEAD`` requests never open the file. Streaming responses hand back an
    open :class:`~hestia.storage.FileStream`; buffered ones read the whole
    span before returning.
    """

    size = choice.metadata.size
    if range_spec is not None:
        status = Status.PARTIAL_CONTENT
        offset = range_spec.start
        length = range_spec.content_length
        content_range: str | None = range_spec.content_range(size)
    else:
        status = Status.OK
        offset = 0
        length = size
        content_range = None

    headers = build_headers(
        content_type=content_type,
        content_length=length,
        validator=validator,
        encoding=choice.encoding,
        cache_control=cache_control,
        content_range=content_range,
        vary=vary,
        overrides=overrides,
    )
    if head:
        return Response(status=int(status), headers=headers.to_tuple())
    if streaming:
        stream = await filesystem.open_stream(choice.path, offset=offset, length=length)
        return Response(status=int(status), headers=headers.to_tuple(), stream=stream)
    body = await filesystem.read_range(choice.path, offset=offset, length=length)
    return Response(status=int(status), headers=headers.to_tuple(), body=body)


__all__ = ["assemble_response", "build_headers"]
