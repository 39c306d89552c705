"""
Clock and timer abstraction for the prediction state machine.

``ThreadingScheduler`` runs callbacks on ``threading.Timer`` threads.
``ManualScheduler`` only runs them when ``advance`` moves its virtual clock,
which keeps debounce behaviour deterministic in tests.
"""

import heapq
import itertools
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class ScheduledCall(ABC):
    @abstractmethod
    def cancel(self):
        """Prevent the callback from running if it has not run yet."""


class Scheduler(ABC):
    @abstractmethod
    def now(self) -> datetime:
        pass

    @abstractmethod
    def call_later(self, delay: float, callback) -> ScheduledCall:
        pass


class _TimerCall(ScheduledCall):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self):
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def call_later(self, delay, callback) -> ScheduledCall:
        timer = threading.Timer(max(delay, 0), callback)
        timer.daemon = True
        timer.start()
        return _TimerCall(timer)


class _ManualCall(ScheduledCall):
    def __init__(self, due: float, callback):
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler(Scheduler):
    """Virtual time scheduler, nothing runs until ``advance`` is called."""

    def __init__(self, start: datetime = None):
        self._start = start or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self._elapsed = 0.0
        self._queue = []
        self._counter = itertools.count()

    def now(self) -> datetime:
        return self._start + timedelta(seconds=self._elapsed)

    def call_later(self, delay, callback) -> ScheduledCall:
        call = _ManualCall(self._elapsed + max(delay, 0), callback)
        heapq.heappush(self._queue, (call.due, next(self._counter), call))
        return call

    @property
    def pending(self) -> int:
        return sum(1 for _, _, call in self._queue if not call.cancelled)

    def advance(self, seconds: float = 0):
        """
        Move the clock forward, running every callback that falls due.

        Callbacks scheduled while advancing run too if they fall inside the
        window.
        """
        target = self._elapsed + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._elapsed = max(self._elapsed, due)
            call.callback()
        self._elapsed = target
