"""Rate Limiter: minimum interval + per-minute ceiling for one provider.

State (guarded by one lock):
  last_call_time, calls_in_current_minute, minute_window_start

``can_proceed()`` is a pure check. ``record_call()`` is invoked right after a
call is dispatched and opens a new minute window when the old one expired.
``try_acquire()`` performs both under the same lock for callers that want
check-and-record in one step.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MINUTE = 60.0


@dataclass
class RateLimiterState:
    """Mutable limiter state; only touched under the limiter's lock."""

    last_call_time: float | None = None
    calls_in_current_minute: int = 0
    minute_window_start: float = 0.0


class RateLimiter:
    """Process-wide limiter for a single running provider.

    Usage:
        limiter = RateLimiter(min_interval=2.0, max_calls_per_minute=10)

        if limiter.try_acquire():
            response = await provider.query(prompt)
        else:
            wait = limiter.time_until_next_allowed()
    """

    def __init__(
        self,
        min_interval: float = 2.0,
        max_calls_per_minute: int = 10,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_calls_per_minute < 1:
            raise ValueError("max_calls_per_minute must be at least 1")
        self.min_interval = min_interval
        self.max_calls_per_minute = max_calls_per_minute
        self._clock = clock
        self._lock = threading.Lock()
        self._state = RateLimiterState(minute_window_start=clock())

    # -- internal helpers (caller holds the lock) --------------------------

    def _window_expired(self, now: float) -> bool:
        return now - self._state.minute_window_start >= MINUTE

    def _calls_in_window(self, now: float) -> int:
        return 0 if self._window_expired(now) else self._state.calls_in_current_minute

    def _interval_remaining(self, now: float) -> float:
        if self._state.last_call_time is None:
            return 0.0
        return max(0.0, self._state.last_call_time + self.min_interval - now)

    def _can_proceed(self, now: float) -> bool:
        if self._calls_in_window(now) >= self.max_calls_per_minute:
            return False
        return self._interval_remaining(now) <= 0

    def _record(self, now: float) -> None:
        state = self._state
        state.last_call_time = now
        if self._window_expired(now):
            state.calls_in_current_minute = 1
            state.minute_window_start = now
        else:
            state.calls_in_current_minute += 1

    # -- public API ---------------------------------------------------------

    def can_proceed(self) -> bool:
        """Whether a call may be dispatched now. Does not change state."""
        with self._lock:
            return self._can_proceed(self._clock())

    def record_call(self) -> None:
        """Record that a call was just dispatched."""
        with self._lock:
            self._record(self._clock())

    def try_acquire(self) -> bool:
        """Check and record atomically. True when the call may go out."""
        with self._lock:
            now = self._clock()
            if not self._can_proceed(now):
                return False
            self._record(now)
            return True

    def time_until_next_allowed(self) -> float:
        """Seconds until ``can_proceed()`` turns true (0 when it already is)."""
        with self._lock:
            now = self._clock()
            if self._calls_in_window(now) >= self.max_calls_per_minute:
                window_wait = self._state.minute_window_start + MINUTE - now
                return max(window_wait, self._interval_remaining(now), 0.0)
            return self._interval_remaining(now)

    def get_status(self) -> dict:
        """Current limiter state for status endpoints."""
        with self._lock:
            now = self._clock()
            if self._window_expired(now):
                seconds_until_reset = 0
            else:
                seconds_until_reset = int(self._state.minute_window_start + MINUTE - now)
            return {
                "calls_this_minute": self._calls_in_window(now),
                "max_calls_per_minute": self.max_calls_per_minute,
                "seconds_until_reset": seconds_until_reset,
                "can_proceed": self._can_proceed(now),
            }
