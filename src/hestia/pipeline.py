"""Request-processing pipeline for serving files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping

import msgspec

from .assembly import assemble_response
from .conditional import evaluate_conditional
from .config import FileServerConfig, ResolvedConfig, resolve_config
from .content import DEFAULT_CONTENT_TYPE, mime_type_for
from .encoding import EncodingChoice, negotiate_encoding
from .exceptions import FileServerError
from .execution import TaskExecutor
from .http import Status
from .paths import ResolvedTarget, check_symlinks, not_found, resolve_path
from .ranges import RangeNotSatisfiable, RangeSpec, parse_range
from .requests import ServeRequest
from .responses import Response, ResponseHeaders, Terminal, error_response, exception_to_response
from .storage import FileMetadata, FileSystem, LocalFileSystem, is_missing
from .validators import Validator, build_validator

logger = logging.getLogger(__name__)

ALLOWED_METHODS: tuple[str, ...] = ("GET", "HEAD")


@dataclass(slots=True)
class _ServeContext:
    """State for one request; created by :meth:`FileServer.handle` and then discarded."""

    request: ServeRequest
    target: ResolvedTarget | None = None
    metadata: FileMetadata | None = None
    content_type: str = DEFAULT_CONTENT_TYPE
    cache_control: str | None = None
    validator: Validator | None = None
    range_header: str | None = None
    range_spec: RangeSpec | None = None
    choice: EncodingChoice | None = None

    @property
    def head(self) -> bool:
        return self.request.method == "HEAD"


Stage = Callable[[_ServeContext], Awaitable[Terminal | None]]


class FileServer:
    """Serve files below a root directory.

    Each stage of :meth:`handle` either updates the per-request context and
    returns ``None`` or returns a :class:`~hestia.responses.Terminal` that ends
    the request. Expected outcomes (304, 403, 404, 405, 416) travel that way;
    only genuine I/O failures raise, and those become a 500.
    """

    def __init__(
        self,
        config: FileServerConfig,
        *,
        filesystem: FileSystem | None = None,
        executor: TaskExecutor | None = None,
    ) -> None:
        self.config = config
        self._settings = resolve_config(config)
        self._owns_executor = executor is None
        self._executor = executor or TaskExecutor(self._settings.execution)
        self._filesystem = filesystem or LocalFileSystem(self._executor)
        self._stages: tuple[Stage, ...] = (
            self._check_method,
            self._resolve,
            self._locate,
            self._describe,
            self._generate_validator,
            self._negotiate_range,
            self._evaluate_conditional,
            self._negotiate_encoding,
            self._assemble,
        )

    @classmethod
    def from_config(cls, config: FileServerConfig | Mapping[str, Any], **kwargs: Any) -> "FileServer":
        if isinstance(config, FileServerConfig):
            return cls(config, **kwargs)
        return cls(FileServerConfig.from_mapping(config), **kwargs)

    @property
    def settings(self) -> ResolvedConfig:
        return self._settings

    async def __aenter__(self) -> "FileServer":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_executor:
            await self._executor.shutdown()

    async def handle(self, request: ServeRequest) -> Response:
        """Return the response for ``request``."""

        context = _ServeContext(request=request)
        try:
            for stage in self._stages:
                outcome = await stage(context)
                if outcome is not None:
                    return _without_body(outcome.response) if context.head else outcome.response
        except FileServerError as exc:
            logger.exception("Failed to serve %s: %s", request.path, exc)
            response = exception_to_response(exc)
        except OSError:
            logger.exception("Unexpected I/O failure serving %s", request.path)
            response = error_response(Status.INTERNAL_SERVER_ERROR, "internal_error")
        else:
            raise RuntimeError("pipeline finished without producing a response")
        return _without_body(response) if context.head else response

    async def _check_method(self, context: _ServeContext) -> Terminal | None:
        if context.request.method in ALLOWED_METHODS:
            return None
        return Terminal(
            error_response(
                Status.METHOD_NOT_ALLOWED,
                "method_not_allowed",
                headers=(("allow", ", ".join(ALLOWED_METHODS)),),
            )
        )

    async def _resolve(self, context: _ServeContext) -> Terminal | None:
        resolved = resolve_path(context.request.path, self._settings.root, self._settings.dotfiles)
        if isinstance(resolved, Terminal):
            return resolved
        context.target = resolved
        return None

    async def _locate(self, context: _ServeContext) -> Terminal | None:
        target = _require(context.target)
        rejected = await check_symlinks(self._filesystem, self._settings.root, target)
        if rejected is not None:
            return rejected
        try:
            metadata = await self._filesystem.stat(target.path)
        except OSError as exc:
            if is_missing(exc):
                return not_found()
            raise
        if metadata.is_dir:
            located = await self._find_index(target)
            if located is None:
                return not_found()
            target, metadata = located
        if not metadata.is_file:
            return not_found()
        context.target = target
        context.metadata = metadata
        return None

    async def _find_index(self, directory: ResolvedTarget) -> tuple[ResolvedTarget, FileMetadata] | None:
        for name in self._settings.index:
            candidate = directory.child(name)
            try:
                metadata = await self._filesystem.lstat(candidate.path)
            except OSError as exc:
                if is_missing(exc):
                    continue
                raise
            if metadata.is_file:
                return candidate, metadata
        return None

    async def _describe(self, context: _ServeContext) -> Terminal | None:
        target = _require(context.target)
        context.content_type = mime_type_for(target.path)
        context.cache_control = self._settings.cache_control.directive_for(target.path)
        return None

    async def _generate_validator(self, context: _ServeContext) -> Terminal | None:
        target = _require(context.target)
        context.validator = build_validator(_require(context.metadata), target.path, self._settings.etag)
        return None

    async def _negotiate_range(self, context: _ServeContext) -> Terminal | None:
        header = context.request.header("range")
        if header is None:
            return None
        metadata = _require(context.metadata)
        parsed = parse_range(header, metadata.size)
        if isinstance(parsed, RangeNotSatisfiable):
            logger.debug("Unsatisfiable range %r (%s)", header, parsed.reason)
            headers = ResponseHeaders((("content-range", parsed.content_range(metadata.size)),))
            headers.set_optional("etag", _require(context.validator).etag)
            headers.merge(self._settings.headers)
            return Terminal(
                error_response(Status.RANGE_NOT_SATISFIABLE, "range_not_satisfiable", headers=headers.to_tuple())
            )
        context.range_header = header
        context.range_spec = parsed
        return None

    async def _evaluate_conditional(self, context: _ServeContext) -> Terminal | None:
        validator = _require(context.validator)
        matched = evaluate_conditional(
            context.request.header("if-none-match"),
            context.request.header("if-modified-since"),
            validator,
            _require(context.metadata).mtime_seconds,
        )
        if not matched:
            return None
        headers = ResponseHeaders()
        headers.set_optional("etag", validator.etag)
        headers["last-modified"] = validator.last_modified
        headers.set_optional("cache-control", context.cache_control)
        if self._negotiates_encoding:
            headers["vary"] = "accept-encoding"
        headers.merge(self._settings.headers)
        return Terminal(Response(status=int(Status.NOT_MODIFIED), headers=headers.to_tuple()))

    async def _negotiate_encoding(self, context: _ServeContext) -> Terminal | None:
        target = _require(context.target)
        metadata = _require(context.metadata)
        choice = await negotiate_encoding(
            self._filesystem,
            target.path,
            metadata,
            context.request.header("accept-encoding"),
            self._settings.encodings.supported,
            precompressed=self._settings.precompressed,
        )
        if choice.encoding is not None and context.range_header is not None:
            # Byte ranges address the representation actually sent.
            encoded_range = parse_range(context.range_header, choice.metadata.size)
            if isinstance(encoded_range, RangeSpec):
                context.range_spec = encoded_range
            else:
                choice = EncodingChoice(path=target.path, metadata=metadata)
        context.choice = choice
        return None

    async def _assemble(self, context: _ServeContext) -> Terminal | None:
        response = await assemble_response(
            self._filesystem,
            _require(context.choice),
            range_spec=context.range_spec,
            content_type=context.content_type,
            validator=_require(context.validator),
            cache_control=context.cache_control,
            vary=self._negotiates_encoding,
            overrides=self._settings.headers,
            head=context.head,
            streaming=self._settings.streaming,
        )
        return Terminal(response)

    @property
    def _negotiates_encoding(self) -> bool:
        return self._settings.encodings.enabled and self._settings.precompressed


def _without_body(response: Response) -> Response:
    """HEAD answers keep every header, ``content-length`` included, but send no bytes."""

    if not response.body:
        return response
    return msgspec.structs.replace(response, body=b"")


def _require(value: Any) -> Any:
    if value is None:  # pragma: no cover - stage ordering guarantees a value
        raise RuntimeError("pipeline stage ran before its inputs were resolved")
    return value


__all__ = ["ALLOWED_METHODS", "FileServer"]
