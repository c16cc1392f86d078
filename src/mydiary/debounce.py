"""
Debounced callbacks.

A ``Debouncer`` collapses a burst of ``schedule()`` calls into a single
invocation that fires once ``delay`` seconds have passed without another call.
Each scheduled run carries a ``CancellationToken``; scheduling again cancels the
previous token and timer, and a timer whose token was cancelled does nothing
when it fires.
"""
from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .log import get_logger

logger = get_logger(__name__)


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class TimerHandle(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """Stop the timer if it has not fired yet."""


# PUBLIC_INTERFACE
class Scheduler(ABC):
    """Something that can run a callback after a delay."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Arrange for ``callback`` to run once after ``delay`` seconds."""


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        if self._timer.is_alive():
            self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Runs each callback on a daemon ``threading.Timer``."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)


# PUBLIC_INTERFACE
class Debouncer:
    """
    Run ``callback`` after ``delay`` seconds of quiet.

    At most one run is pending at any time.
    """

    def __init__(self, delay: float, callback: Callable[[], None], scheduler: Optional[Scheduler] = None) -> None:
        self.delay = delay
        self._callback = callback
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.RLock()
        self._token: Optional[CancellationToken] = None
        self._handle: Optional[TimerHandle] = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._token is not None and not self._token.cancelled

    def schedule(self) -> None:
        with self._lock:
            self._cancel_pending()
            token = CancellationToken()
            self._token = token
            self._handle = self._scheduler.call_later(self.delay, lambda: self._fire(token))

    def cancel(self) -> None:
        with self._lock:
            self._cancel_pending()

    def flush(self) -> bool:
        """Run the pending callback now. Returns False if nothing was pending."""
        with self._lock:
            if not self.pending:
                return False
            self._cancel_pending()
        self._callback()
        return True

    def _cancel_pending(self) -> None:
        if self._token is not None:
            self._token.cancel()
        if self._handle is not None:
            self._handle.cancel()
        self._token = None
        self._handle = None

    def _fire(self, token: CancellationToken) -> None:
        with self._lock:
            if token.cancelled:
                logger.debug("debounced_call_skipped")
                return
            self._token = None
            self._handle = None
        self._callback()
