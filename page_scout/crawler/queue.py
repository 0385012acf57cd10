# page_scout/crawler/queue.py
"""
Task queue with a concurrency cap and a rolling per-interval start cap.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Optional, Set

__all__ = ("RateLimitedQueue",)

logger = logging.getLogger(__name__)

TaskFactory = Callable[[], Awaitable[None]]


class RateLimitedQueue:
    """Runs coroutine factories with at most ``concurrency`` in flight and at
    most ``interval_cap`` starts per rolling ``interval`` seconds.

    ``size`` counts tasks still waiting for a slot, ``pending`` those running.
    """

    def __init__(
        self,
        concurrency: int,
        interval_cap: int,
        interval: float = 1.0,
        *,
        on_task_done: Optional[Callable[[], None]] = None,
    ) -> None:
        if concurrency < 1 or interval_cap < 1:
            raise ValueError("concurrency and interval_cap must be >= 1")
        self.interval = interval
        self.interval_cap = interval_cap
        self._semaphore = asyncio.Semaphore(concurrency)
        self._rate_lock = asyncio.Lock()
        self._starts: Deque[float] = deque()
        self._waiting: Set[asyncio.Task[None]] = set()
        self._running: Set[asyncio.Task[None]] = set()
        self._on_task_done = on_task_done

    @property
    def size(self) -> int:
        return len(self._waiting)

    @property
    def pending(self) -> int:
        return len(self._running)

    @property
    def has_work(self) -> bool:
        return bool(self._waiting or self._running)

    def add(self, factory: TaskFactory) -> asyncio.Task[None]:
        task: asyncio.Task[None] = asyncio.create_task(self._run(factory))
        self._waiting.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def _run(self, factory: TaskFactory) -> None:
        task = asyncio.current_task()
        async with self._semaphore:
            await self._wait_for_rate_limit()
            self._waiting.discard(task)  # type: ignore[arg-type]
            self._running.add(task)  # type: ignore[arg-type]
            await factory()

    async def _wait_for_rate_limit(self) -> None:
        async with self._rate_lock:
            while True:
                now = time.monotonic()
                # remove timestamps older than the interval
                while self._starts and now - self._starts[0] >= self.interval:
                    self._starts.popleft()
                if len(self._starts) < self.interval_cap:
                    self._starts.append(now)
                    return
                await asyncio.sleep(self.interval - (now - self._starts[0]))

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._waiting.discard(task)
        self._running.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Queued task failed: %s", task.exception())
        if self._on_task_done is not None:
            self._on_task_done()

    def clear(self) -> None:
        """Drop every task that has not started yet."""
        for task in list(self._waiting):
            task.cancel()

    async def close(self) -> None:
        """Cancel waiting and running tasks and wait for them to finish."""
        tasks = list(self._waiting | self._running)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._waiting.clear()
        self._running.clear()
