"""Tests for waiting on the rate limiter."""

import pytest

from visibility_tracker.services.throttle import wait_for_call_slot


class TestWaitForCallSlot:
    @pytest.mark.asyncio
    async def test_immediate(self, rate_limiter, fake_sleep, clock):
        assert await wait_for_call_slot(rate_limiter, 5.0, sleep=fake_sleep, clock=clock) is True
        assert fake_sleep.calls == []

    @pytest.mark.asyncio
    async def test_waits_for_interval(self, rate_limiter, fake_sleep, clock):
        rate_limiter.record_call()
        clock.advance(0.5)
        assert await wait_for_call_slot(rate_limiter, 5.0, sleep=fake_sleep, clock=clock) is True
        assert fake_sleep.calls == [pytest.approx(1.5)]

    @pytest.mark.asyncio
    async def test_gives_up_beyond_max_wait(self, rate_limiter, fake_sleep, clock):
        rate_limiter.record_call()
        assert await wait_for_call_slot(rate_limiter, 1.0, sleep=fake_sleep, clock=clock) is False
        assert fake_sleep.calls == []
        assert rate_limiter.get_status()["calls_this_minute"] == 1
