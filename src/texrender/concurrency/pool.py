"""Bounded async render pool that coalesces identical in-flight requests."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RenderPool:
    """Runs render jobs keyed by content hash.

    A second request for a key that is still in flight attaches to the
    first job instead of starting another external process. A semaphore
    bounds how many jobs run at once.
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers)
        self._inflight: dict[str, asyncio.Task[Any]] = {}
        self._coalesced = 0

    @property
    def in_flight(self) -> int:
        return len(self._inflight)

    @property
    def coalesced(self) -> int:
        return self._coalesced

    def is_in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def run(self, key: str, job: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Run ``job`` for ``key`` or join the one already running.

        Returns (result, shared) where ``shared`` is True when the result
        came from another caller's job. A cancelled caller never cancels the
        shared job.
        """
        task = self._inflight.get(key)
        if task is not None:
            self._coalesced += 1
            logger.debug("Joining in-flight render for %s", key)
            return await asyncio.shield(task), True

        task = asyncio.ensure_future(self._bounded(job))
        self._inflight[key] = task
        task.add_done_callback(lambda t: self._forget(key, t))
        return await asyncio.shield(task), False

    async def wait_idle(self) -> None:
        """Wait until every in-flight job has finished."""
        while self._inflight:
            await asyncio.gather(*self._inflight.values(), return_exceptions=True)

    async def _bounded(self, job: Callable[[], Awaitable[T]]) -> T:
        async with self._semaphore:
            return await job()

    def _forget(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
