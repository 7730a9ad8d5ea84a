"""Hestia: asynchronous static file serving with HTTP caching, ranges and pre-compressed variants."""

from .asgi import StaticFilesApp
from .config import DotfilePolicy, ETagMode, FileServerConfig, resolve_config
from .exceptions import ConfigurationError, FileServerError, HestiaError, HTTPError
from .execution import ExecutionConfig, ExecutionMode, TaskExecutor
from .pipeline import FileServer
from .requests import ServeRequest
from .responses import Response
from .storage import FileMetadata, FileStream, LocalFileSystem
from .testing import TestClient

__all__ = [
    "ConfigurationError",
    "DotfilePolicy",
    "ETagMode",
    "ExecutionConfig",
    "ExecutionMode",
    "FileMetadata",
    "FileServer",
    "FileServerConfig",
    "FileServerError",
    "FileStream",
    "HTTPError",
    "HestiaError",
    "LocalFileSystem",
    "Response",
    "ServeRequest",
    "StaticFilesApp",
    "TaskExecutor",
    "TestClient",
    "resolve_config",
]
