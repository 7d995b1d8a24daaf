"""Scheduler interface (port) for the engines' timers."""

from __future__ import annotations

from typing import Callable, Protocol


class TaskHandle(Protocol):
    """A scheduled callback that can be cancelled before it fires."""

    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    """Port: runs callbacks at fixed rates or after a delay.

    Callbacks run one at a time on a single thread, so a callback may cancel
    its own task and schedule a replacement before any other tick fires.
    """

    def call_every(self, interval: float, callback: Callable[[], None]) -> TaskHandle: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TaskHandle: ...
