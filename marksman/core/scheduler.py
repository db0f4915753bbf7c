"""
Scheduler — Delayed callbacks for debounced persistence

The registry holds at most one pending handle and replaces it on every
mutation (cancel and reschedule), so bursts of edits coalesce into one
flush of the latest state.

Implementations:
- TimerScheduler: threading.Timer, daemon threads
- ImmediateScheduler: runs the callback synchronously (no debounce)
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable


class CancelHandle(ABC):
    """Handle for a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running if it has not started."""
        pass


class Scheduler(ABC):
    """Capability: run fn once after delay seconds."""

    @abstractmethod
    def after(self, delay: float, fn: Callable[[], None]) -> CancelHandle:
        pass


class _TimerHandle(CancelHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class TimerScheduler(Scheduler):
    """Background timers. Callbacks run on a timer thread."""

    def after(self, delay: float, fn: Callable[[], None]) -> CancelHandle:
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        timer.start()
        return _TimerHandle(timer)


class _NoopHandle(CancelHandle):
    def cancel(self) -> None:
        pass


class ImmediateScheduler(Scheduler):
    """Runs callbacks at once; every mutation is written through."""

    def after(self, delay: float, fn: Callable[[], None]) -> CancelHandle:
        fn()
        return _NoopHandle()
