"""Asyncio scheduler adapter.

Implements the core SchedulerPort on the running event loop. Each timer tick
is spawned as its own task, so a slow request never pushes back the next one.
"""

from __future__ import annotations

import asyncio
import logging

from core.ports import TickFactory

LOGGER = logging.getLogger(__name__)


class _RepeatingTimer:
    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    def cancel(self) -> None:
        self._task.cancel()


class AsyncioScheduler:
    """Runs ticks as tasks and keeps references until they finish."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, factory: TickFactory) -> None:
        task = asyncio.get_running_loop().create_task(self._guard(factory))
        self._track(task)

    def every(self, interval_s: float, factory: TickFactory) -> _RepeatingTimer:
        task = asyncio.get_running_loop().create_task(self._repeat(interval_s, factory))
        self._track(task)
        return _RepeatingTimer(task)

    async def shutdown(self) -> None:
        """Cancel every task this scheduler started and wait for them."""

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _repeat(self, interval_s: float, factory: TickFactory) -> None:
        while True:
            await asyncio.sleep(interval_s)
            self.spawn(factory)

    async def _guard(self, factory: TickFactory) -> None:
        try:
            await factory()
        except asyncio.CancelledError:
            raise
        except Exception:
            LOGGER.exception("Scheduled task failed")
