"""In-Flight Registry: at most one running analysis per brand.

Maps brand id → start time of its running analysis. An entry older than
the timeout (5 minutes by default) is considered abandoned and can be taken
over by a new run.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from visibility_tracker.gateway.errors import AlreadyInFlightError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0


class InFlightRegistry:
    """Tracks which brands currently have an analysis running.

    Usage:
        registry = InFlightRegistry()

        with registry.slot(brand_id):
            await run()  # released on success, error and cancellation
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._in_flight: dict[int, float] = {}

    def _is_live(self, started_at: float, now: float) -> bool:
        return now - started_at < self.timeout

    def _acquire(self, brand_id: int) -> float | None:
        """Insert a fresh entry unless a live one exists. Returns its start time."""
        with self._lock:
            now = self._clock()
            started_at = self._in_flight.get(brand_id)
            if started_at is not None:
                if self._is_live(started_at, now):
                    return None
                logger.warning(
                    "Taking over stale in-flight slot for brand %d (held %.0fs)",
                    brand_id,
                    now - started_at,
                )
            self._in_flight[brand_id] = now
            return now

    def try_acquire(self, brand_id: int) -> bool:
        """Claim the brand's slot. False if a non-stale run already holds it."""
        return self._acquire(brand_id) is not None

    def release(self, brand_id: int, started_at: float | None = None) -> None:
        """Free the brand's slot.

        With ``started_at`` the entry is only removed if it is still the one
        that acquisition created; a slot taken over after going stale stays.
        """
        with self._lock:
            current = self._in_flight.get(brand_id)
            if current is None:
                return
            if started_at is not None and current != started_at:
                logger.warning("Slot for brand %d was taken over; leaving it in place", brand_id)
                return
            del self._in_flight[brand_id]

    def is_in_flight(self, brand_id: int) -> bool:
        """Whether a non-stale run holds the brand's slot. Prunes a stale entry."""
        with self._lock:
            started_at = self._in_flight.get(brand_id)
            if started_at is None:
                return False
            if self._is_live(started_at, self._clock()):
                return True
            del self._in_flight[brand_id]
            return False

    def active(self) -> list[int]:
        """Brand ids with a live slot."""
        with self._lock:
            now = self._clock()
            return sorted(b for b, started in self._in_flight.items() if self._is_live(started, now))

    @contextmanager
    def slot(self, brand_id: int) -> Iterator[None]:
        """Hold the brand's slot for the duration of the block.

        Raises:
            AlreadyInFlightError: a live run already holds the slot.
        """
        started_at = self._acquire(brand_id)
        if started_at is None:
            raise AlreadyInFlightError(brand_id)
        try:
            yield
        finally:
            self.release(brand_id, started_at)
