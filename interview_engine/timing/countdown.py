"""Per-question countdown timer.

The timer never trusts tick counts for its remaining time: remaining is
always ``total - (now - reference_start)``, so a late or dropped tick can
only delay a notification, never shift the deadline.  Pausing freezes the
elapsed time; resuming moves ``reference_start`` forward by the paused
interval so total elapsed run-time is conserved exactly.

Callbacks (``on_tick``, ``on_persist``, ``on_expire``) are always invoked
outside the timer's lock, so a callback may call back into the timer.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import Callable

from interview_engine.models.session import TimerState
from interview_engine.timing.clock import Clock, ScheduledCall

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


class CountdownTimer:
    """Countdown with start / pause / resume / stop and a one-shot expiry.

    Usage:
        timer = CountdownTimer(clock, on_expire=handle_timeout)
        timer.start(60)
        ...
        timer.pause()   # elapsed time is kept
        timer.resume()  # deadline moves by the paused interval
    """

    def __init__(
        self,
        clock: Clock,
        *,
        on_expire: Callable[[], None] | None = None,
        on_tick: Callable[[float], None] | None = None,
        on_persist: Callable[[TimerState], None] | None = None,
        persist_interval: float | None = 5.0,
        tick_interval: float = 1.0,
    ) -> None:
        self._clock = clock
        self._default_on_expire = on_expire
        self._on_expire = on_expire
        self._on_tick = on_tick
        self._on_persist = on_persist
        self._persist_interval = persist_interval
        self._tick_interval = tick_interval

        self._lock = threading.Lock()
        self._total = 0.0
        self._elapsed = 0.0
        self._reference_start: float | None = None
        self._running = False
        self._started = False
        self._expired = False
        self._generation = 0
        self._handle: ScheduledCall | None = None
        self._last_persisted: int | None = None

    # ── Properties ────────────────────────────────────────────────────

    @property
    def running(self) -> bool:
        return self._running

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def remaining(self) -> float:
        with self._lock:
            return self._remaining_locked()

    @property
    def elapsed(self) -> float:
        with self._lock:
            return self._elapsed_locked()

    # ── Control ───────────────────────────────────────────────────────

    def start(self, total_seconds: float, on_expire: Callable[[], None] | None = None) -> None:
        """Start a fresh countdown, discarding any previous run.

        ``on_expire`` overrides the constructor callback for this run only.
        """
        if total_seconds <= 0:
            raise ValueError(f"total_seconds must be positive, got {total_seconds}")
        with self._lock:
            self._cancel_locked()
            self._on_expire = on_expire or self._default_on_expire
            self._total = float(total_seconds)
            self._elapsed = 0.0
            self._reference_start = self._clock.now()
            self._running = True
            self._started = True
            self._expired = False
            self._last_persisted = None
            self._schedule_locked()
        logger.debug("Timer started: %.0fs", total_seconds)

    def load(self, total_seconds: float, remaining_seconds: float) -> None:
        """Restore a paused countdown from a persisted snapshot."""
        remaining = max(0.0, min(float(remaining_seconds), float(total_seconds)))
        with self._lock:
            self._cancel_locked()
            self._total = float(total_seconds)
            self._elapsed = self._total - remaining
            self._reference_start = None
            self._running = False
            self._started = True
            self._expired = False
            self._last_persisted = None

    def pause(self) -> bool:
        """Freeze the countdown. Idempotent; returns False if nothing changed."""
        with self._lock:
            if not self._running:
                return False
            self._elapsed = self._elapsed_locked()
            self._running = False
            self._cancel_locked()
        return True

    def resume(self, on_expire: Callable[[], None] | None = None) -> bool:
        """Continue a paused countdown from where it stopped."""
        with self._lock:
            if self._running or not self._started or self._expired:
                return False
            if on_expire is not None:
                self._on_expire = on_expire
            self._reference_start = self._clock.now() - self._elapsed
            self._running = True
            self._schedule_locked()
        return True

    def stop(self) -> None:
        """Cancel the countdown; the timer is inert until ``start``."""
        with self._lock:
            self._cancel_locked()
            self._running = False
            self._started = False

    def tick(self) -> float:
        """Re-evaluate the countdown now and return the remaining seconds.

        Fires the expiry callback if the deadline has passed.
        """
        with self._lock:
            remaining, expire_cb, persist_state = self._advance_locked()
        self._notify(remaining, expire_cb, persist_state)
        return remaining

    def state(self) -> TimerState:
        with self._lock:
            return TimerState(
                remaining_seconds=round(self._remaining_locked(), 3),
                total_seconds=self._total,
                running=self._running,
                reference_start=self._reference_start,
            )

    # ── Internals ─────────────────────────────────────────────────────

    def _elapsed_locked(self) -> float:
        if self._running and self._reference_start is not None:
            return min(self._total, self._clock.now() - self._reference_start)
        return self._elapsed

    def _remaining_locked(self) -> float:
        return max(0.0, self._total - self._elapsed_locked())

    def _cancel_locked(self) -> None:
        self._generation += 1
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule_locked(self) -> None:
        generation = self._generation
        delay = min(self._tick_interval, self._remaining_locked())
        self._handle = self._clock.after(delay, lambda: self._on_scheduled_tick(generation))

    def _on_scheduled_tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self._running:
                return
            remaining, expire_cb, persist_state = self._advance_locked()
            if self._running:
                self._schedule_locked()
        self._notify(remaining, expire_cb, persist_state)

    def _advance_locked(
        self,
    ) -> tuple[float, Callable[[], None] | None, TimerState | None]:
        """Compute remaining time and decide which callbacks are due."""
        remaining = self._remaining_locked()
        if not self._running:
            return remaining, None, None

        expire_cb = None
        if remaining <= _EPSILON:
            remaining = 0.0
            self._elapsed = self._total
            self._running = False
            self._expired = True
            self._cancel_locked()
            expire_cb = self._on_expire or (lambda: None)

        persist_state = None
        whole = math.ceil(remaining - _EPSILON)
        interval = int(self._persist_interval or 0)
        if (
            self._on_persist is not None
            and interval > 0
            and whole % interval == 0
            and whole != self._last_persisted
        ):
            self._last_persisted = whole
            persist_state = TimerState(
                remaining_seconds=round(remaining, 3),
                total_seconds=self._total,
                running=self._running,
                reference_start=self._reference_start,
            )
        return remaining, expire_cb, persist_state

    def _notify(
        self,
        remaining: float,
        expire_cb: Callable[[], None] | None,
        persist_state: TimerState | None,
    ) -> None:
        if self._on_tick is not None:
            self._on_tick(remaining)
        if persist_state is not None and self._on_persist is not None:
            self._on_persist(persist_state)
        if expire_cb is not None:
            logger.debug("Timer expired after %.0fs", self._total)
            expire_cb()
