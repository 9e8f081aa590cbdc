import asyncio
import logging
from typing import Callable, Set

from ...application.ports.scheduler import ScheduledTask, Scheduler

logger = logging.getLogger(__name__)


class AsyncioScheduledTask(ScheduledTask):
    def __init__(self, task: "asyncio.Task[None]") -> None:
        self._task = task

    def cancel(self) -> bool:
        return self._task.cancel()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def done(self) -> bool:
        return self._task.done()


class AsyncioScheduler(Scheduler):
    """Runs each callback once, ``delay_seconds`` after scheduling, on the running loop."""

    def __init__(self) -> None:
        self._tasks: Set["asyncio.Task[None]"] = set()

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run_later(delay_seconds, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return AsyncioScheduledTask(task)

    async def _run_later(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        await asyncio.sleep(delay_seconds)
        try:
            callback()
        except Exception:
            logger.exception("Scheduled callback raised")

    def cancel_all(self) -> int:
        cancelled = 0
        for task in list(self._tasks):
            if task.cancel():
                cancelled += 1
        return cancelled
