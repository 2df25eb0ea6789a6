"""Trailing-edge debouncer for background maintenance work."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class Debouncer:
    """Coalesces bursts of ``schedule()`` calls into one callback run.

    Each call pushes the deadline back by ``delay`` seconds. Must be used
    from inside a running event loop.
    """

    def __init__(self, delay: float, callback: Callable[[], Awaitable[Any]]) -> None:
        self._delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[Any] | None = None
        self._runs = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def runs(self) -> int:
        return self._runs

    def schedule(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def flush(self) -> None:
        """Run a pending callback now and wait for any running one."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            await self._run()
        elif self._task is not None and not self._task.done():
            await self._task

    def _fire(self) -> None:
        self._handle = None
        self._task = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        self._runs += 1
        try:
            await self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
