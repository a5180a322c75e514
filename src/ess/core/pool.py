"""Shared worker pool for per-record formatting units.

The pool is created once at startup and injected into the dispatcher. It is
unbounded by default; ``max_workers`` caps the number of units running at the
same time across all requests.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from ess.core.exceptions import PoolClosedError
from ess.observability.metrics import UNITS_IN_FLIGHT

logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkerPool:
    """Runs units of work with an optional concurrency bound.

    Units run inside the caller's task, so a request's task group still owns
    (and can cancel) them. The pool tracks them so ``shutdown()`` can cancel
    whatever is still running.

    Example:
        >>> pool = WorkerPool(max_workers=32)
        >>> await pool.start()
        >>> result = await pool.run(lambda: formatter.format(...))
        >>> await pool.shutdown()
    """

    def __init__(self, max_workers: int | None = None) -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be positive or None")
        self._max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers) if max_workers else None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._in_flight = 0
        self._running = False

    @property
    def max_workers(self) -> int | None:
        return self._max_workers

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> int:
        """Units currently executing (not counting those waiting for a slot)."""
        return self._in_flight

    @property
    def waiting(self) -> int:
        """Units submitted but not yet executing."""
        return len(self._tasks) - self._in_flight

    async def start(self) -> None:
        self._running = True
        logger.info("Worker pool started (max_workers=%s)", self._max_workers or "unbounded")

    async def shutdown(self) -> None:
        """Stop accepting work and cancel every unit still tracked."""
        self._running = False
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Worker pool cancelled %d running units", len(tasks))
        self._tasks.clear()
        logger.info("Worker pool shut down")

    async def run(self, unit: Callable[[], Awaitable[T]]) -> T:
        """Run ``unit`` in the calling task, waiting for a free slot if bounded.

        Raises:
            PoolClosedError: The pool has not been started or was shut down.
        """
        if not self._running:
            raise PoolClosedError("Worker pool is not running")

        task = asyncio.current_task()
        if task is not None:
            self._tasks.add(task)
        try:
            if self._semaphore is None:
                return await self._execute(unit)
            async with self._semaphore:
                return await self._execute(unit)
        finally:
            if task is not None:
                self._tasks.discard(task)

    async def _execute(self, unit: Callable[[], Awaitable[T]]) -> T:
        self._in_flight += 1
        UNITS_IN_FLIGHT.inc()
        try:
            return await unit()
        finally:
            self._in_flight -= 1
            UNITS_IN_FLIGHT.dec()

    def stats(self) -> dict[str, Any]:
        return {
            "running": self._running,
            "max_workers": self._max_workers,
            "in_flight": self._in_flight,
            "waiting": self.waiting,
        }
