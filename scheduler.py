# scheduler.py
from __future__ import annotations

import time
from typing import Callable


class ScheduledTask:
    def __init__(self) -> None:
        self._cancelled = False
        self._done = False

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        if self.active:
            self._cancelled = True
            self._on_cancel()

    def _on_cancel(self) -> None:
        return

    def _fire(self, fn: Callable[[], None]) -> None:
        if not self.active:
            return
        self._done = True
        fn()


class Scheduler:
    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> ScheduledTask:
        raise NotImplementedError


class BlockingScheduler(Scheduler):
    """
    Sleeps in place. Only for one-shot command line runs that exit right after.
    """

    def call_later(self, delay_ms: int, fn: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask()
        if delay_ms > 0:
            time.sleep(delay_ms / 1000.0)
        task._fire(fn)
        return task
