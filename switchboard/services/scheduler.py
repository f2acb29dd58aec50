from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TaskScheduler:
    """
    Owns delayed one-shot callbacks (confirmatory polls, error recovery).

    Each call_later() spawns an asyncio task that sleeps and then runs the
    callback; coroutine results are awaited. cancel_all() cancels whatever is
    still pending so shutdown leaves no stray timers behind.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def call_later(
        self, delay_s: float, callback: Callable[..., Any], *args: Any
    ) -> asyncio.Task:
        task = asyncio.create_task(self._run(delay_s, callback, args))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, delay_s: float, callback: Callable[..., Any], args: tuple) -> None:
        await asyncio.sleep(max(0.0, delay_s))
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("Scheduled callback %r failed: %s", callback, e)

    async def cancel_all(self) -> None:
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
