"""
RequestDeduplicator - Single-flight execution keyed by cache key.

When several callers miss the same cache key at once, only one factory runs
and every caller shares its outcome. The shared task is detached from the
callers: a caller that stops waiting (timeout or cancellation) does not
cancel the work for the others.
"""

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

T = TypeVar("T")


class RequestDeduplicator:
    """
    Deduplicates concurrent async work.

    Usage:
        dedup = RequestDeduplicator()

        task = await dedup.start(key, lambda: load(key))
        value = await asyncio.wait_for(asyncio.shield(task), timeout)
    """

    def __init__(self, debug: bool = False):
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._lock = asyncio.Lock()
        self._debug = debug
        self._stats = DeduplicatorStats()

    async def start(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
    ) -> "asyncio.Task[T]":
        """
        Return the in-flight task for key, starting request_fn if none exists.

        Callers must await the task through asyncio.shield when they may
        give up early.
        """
        async with self._lock:
            task = self._in_flight.get(key)
            if task is not None:
                self._stats.deduplicated += 1
                self._log(f"DEDUPE: joining in-flight work for {key}")
                return task

            self._stats.total += 1
            self._log(f"NEW: starting work for {key}")
            task = asyncio.create_task(self._execute_and_cleanup(key, request_fn))
            self._in_flight[key] = task
            return task

    async def dedupe(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """Run request_fn once per key and await its shared result."""
        task = await self.start(key, request_fn)
        return await asyncio.shield(task)

    async def _execute_and_cleanup(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
    ) -> T:
        try:
            return await request_fn()
        finally:
            async with self._lock:
                # a forgotten key may already map to newer work
                if self._in_flight.get(key) is asyncio.current_task():
                    del self._in_flight[key]
                self._log(f"DONE: {key}")

    async def forget(self, *keys: str) -> None:
        """
        Detach in-flight work from keys so later callers start fresh.

        The detached work keeps running for the callers already waiting on it.
        """
        async with self._lock:
            for key in keys:
                if self._in_flight.pop(key, None) is not None:
                    self._log(f"FORGET: {key}")

    async def cancel_all(self) -> int:
        """Cancel all in-flight work. Used on shutdown."""
        async with self._lock:
            tasks = list(self._in_flight.values())
            self._in_flight.clear()

        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} in-flight cache populations")
        return len(tasks)

    def get_in_flight_count(self) -> int:
        """Get number of in-flight requests."""
        return len(self._in_flight)

    def get_stats(self) -> "DeduplicatorStats":
        """Get deduplication statistics."""
        self._stats.in_flight = len(self._in_flight)
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[Deduplicator] {message}")


class DeduplicatorStats:
    """Statistics for request deduplication."""

    def __init__(self):
        self.total: int = 0  # Factories actually started
        self.deduplicated: int = 0  # Callers that joined an in-flight factory
        self.in_flight: int = 0

    @property
    def dedup_rate(self) -> float:
        """Calculate deduplication rate."""
        total = self.total + self.deduplicated
        if total == 0:
            return 0.0
        return self.deduplicated / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_requests": self.total,
            "deduplicated": self.deduplicated,
            "in_flight": self.in_flight,
            "dedup_rate": f"{self.dedup_rate:.2%}",
        }
