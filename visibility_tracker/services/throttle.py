"""Waiting on a RateLimiter from async code.

The limiter itself never blocks; services that prefer to wait briefly rather
than reject use this helper.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

from visibility_tracker.gateway.rate_limiter import RateLimiter

MIN_POLL = 0.05


async def wait_for_call_slot(
    limiter: RateLimiter,
    max_wait: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Record a call on ``limiter`` as soon as it allows one.

    Returns False without recording when the next slot is further away than
    ``max_wait`` seconds from now.
    """
    deadline = clock() + max_wait
    while not limiter.try_acquire():
        wait = limiter.time_until_next_allowed()
        if clock() + wait > deadline:
            return False
        await sleep(max(wait, MIN_POLL))
    return True
