from typing import Callable, Protocol


class ScheduledTask(Protocol):
    def cancel(self) -> bool:
        ...

    def cancelled(self) -> bool:
        ...

    def done(self) -> bool:
        ...


class Scheduler(Protocol):
    def schedule(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        ...
