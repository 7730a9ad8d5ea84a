"""Offloading of blocking filesystem calls."""

from __future__ import annotations

import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, TypeVar

import msgspec

T = TypeVar("T")


class ExecutionMode(str, Enum):
    THREAD = "thread"
    INLINE = "inline"


class ExecutionConfig(msgspec.Struct, frozen=True):
    """Where :class:`TaskExecutor` runs ``os.stat``, ``open`` and ``read`` calls."""

    mode: ExecutionMode = ExecutionMode.THREAD
    max_workers: int = 4
    thread_name_prefix: str = "hestia-io"


class TaskExecutor:
    """Run blocking callables without stalling the event loop.

    ``THREAD`` hands each call to a pool that is created on first use, so a
    slow read for one request never holds up another. ``INLINE`` calls the
    function on the loop itself and only suits tests and tiny deployments.
    Coroutine functions are awaited directly in either mode.
    """

    def __init__(self, config: ExecutionConfig | None = None) -> None:
        self.config = config or ExecutionConfig()
        if self.config.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._pool: ThreadPoolExecutor | None = None

    @property
    def pool(self) -> ThreadPoolExecutor:
        if self._pool is None:
            self._pool = ThreadPoolExecutor(
                max_workers=self.config.max_workers,
                thread_name_prefix=self.config.thread_name_prefix,
            )
        return self._pool

    async def run(self, func: Callable[..., Any], /, *args: Any, mode: ExecutionMode | None = None) -> Any:
        if inspect.iscoroutinefunction(func):
            return await func(*args)
        selected = mode or self.config.mode
        if selected == ExecutionMode.INLINE:
            return func(*args)
        if selected == ExecutionMode.THREAD:
            return await asyncio.get_running_loop().run_in_executor(self.pool, func, *args)
        raise ValueError(f"Unsupported execution mode: {selected!r}")

    async def shutdown(self) -> None:
        """Release the thread pool; a later :meth:`run` starts a fresh one."""

        pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=False, cancel_futures=True)

    async def __aenter__(self) -> "TaskExecutor":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.shutdown()


__all__ = ["ExecutionConfig", "ExecutionMode", "TaskExecutor"]
