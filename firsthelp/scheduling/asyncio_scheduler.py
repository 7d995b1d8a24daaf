"""asyncio event-loop implementation of Scheduler."""

from __future__ import annotations

import asyncio
from typing import Callable

import structlog

log = structlog.get_logger()


class _RepeatingTask:
    """Fixed-rate task: tick N fires at start + N * interval, so drift does not accumulate."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float,
                 callback: Callable[[], None]) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._start = loop.time()
        self._ticks = 0
        self._cancelled = False
        self._timer: asyncio.TimerHandle | None = None
        self._schedule_next()

    def _schedule_next(self) -> None:
        self._ticks += 1
        self._timer = self._loop.call_at(self._start + self._ticks * self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        try:
            self._callback()
        except Exception:
            log.error("scheduled_callback_failed", exc_info=True)
        if not self._cancelled:
            self._schedule_next()

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler:
    """Scheduler backed by the running asyncio loop. Zero dependencies."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_every(self, interval: float, callback: Callable[[], None]) -> _RepeatingTask:
        return _RepeatingTask(self._get_loop(), interval, callback)

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._get_loop().call_later(delay, callback)
