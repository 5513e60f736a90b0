"""Clock abstraction used by the countdown timer.

``SystemClock`` schedules callbacks on daemon ``threading.Timer`` threads
and reads ``time.monotonic``.  ``ManualClock`` only moves when ``advance``
is called, which lets tests assert exact expiry instants without waiting.
"""

from __future__ import annotations

import heapq
import itertools
import threading
import time
from typing import Callable, Protocol


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class Clock(Protocol):
    def now(self) -> float: ...

    def after(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...


class SystemClock:
    """Wall-clock implementation backed by ``threading.Timer``."""

    def now(self) -> float:
        return time.monotonic()

    def after(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        timer.start()
        return timer


class _ManualCall:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """Deterministic clock: time only moves through ``advance``.

    Callbacks due at or before the new instant run in due order, on the
    caller's thread.  Callbacks scheduled while advancing run in the same
    ``advance`` call if they fall inside the window.
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, _ManualCall]] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def after(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = _ManualCall(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (call.due, next(self._seq), call))
        return call

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while self._queue and self._queue[0][0] <= target + 1e-9:
            due, _, call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = max(self._now, due)
            call.callback()
        self._now = target

    def pending(self) -> int:
        """Number of scheduled, not-yet-cancelled callbacks."""
        return sum(1 for _, _, call in self._queue if not call.cancelled)
