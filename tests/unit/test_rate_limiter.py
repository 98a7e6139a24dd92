"""Unit tests for the per-service RateLimiter.

Tests cover:
- SERVICE_MIN_INTERVALS holds the expected gaps; unknown services get the default
- first call for a service never waits
- a second call inside the gap waits exactly the remainder
- a call after the gap has elapsed does not wait
- consecutive calls never start closer together than the gap
- services have independent lanes
- the post-wait time is recorded as the last request
- concurrent callers on one service are serialised
- reset() forgets one service or all of them
- one limiter keeps working across separate asyncio.run() loops

All waits go through an injected clock and sleeper.  Nothing actually sleeps.
"""

from __future__ import annotations

import asyncio

import pytest

from link_archiver.core.rate_limiter import (
    DEFAULT_MIN_INTERVAL_SECONDS,
    SERVICE_MIN_INTERVALS,
    RateLimiter,
)

WAYBACK = "web.archive.org"
GHOST = "ghostarchive.org"


class TestIntervals:
    def test_known_service_gaps(self) -> None:
        assert SERVICE_MIN_INTERVALS[WAYBACK] == 1.0
        assert SERVICE_MIN_INTERVALS[GHOST] == 2.0
        for host in ("archive.ph", "archive.today", "archive.is"):
            assert SERVICE_MIN_INTERVALS[host] == 2.0

    def test_unknown_service_uses_default(self) -> None:
        limiter = RateLimiter()
        assert limiter.min_interval("archive.example") == DEFAULT_MIN_INTERVAL_SECONDS

    def test_intervals_override(self) -> None:
        limiter = RateLimiter(intervals={WAYBACK: 5.0})
        assert limiter.min_interval(WAYBACK) == 5.0


@pytest.mark.asyncio
class TestWaitIfNeeded:
    async def test_first_call_does_not_wait(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        waited = await limiter.wait_if_needed(WAYBACK)

        assert waited == 0.0
        assert sleeper.calls == []
        assert limiter.last_request_at(WAYBACK) == clock.now

    async def test_second_call_waits_remaining_gap(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        await limiter.wait_if_needed(GHOST)
        clock.advance(0.5)

        waited = await limiter.wait_if_needed(GHOST)

        assert waited == pytest.approx(1.5)
        assert sleeper.calls == [pytest.approx(1.5)]

    async def test_call_after_gap_does_not_wait(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        await limiter.wait_if_needed(WAYBACK)
        clock.advance(1.2)

        assert await limiter.wait_if_needed(WAYBACK) == 0.0
        assert sleeper.calls == []

    async def test_consecutive_calls_respect_gap(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        starts: list[float] = []
        for _ in range(5):
            await limiter.wait_if_needed(GHOST)
            starts.append(clock.now)
            clock.advance(0.3)

        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= SERVICE_MIN_INTERVALS[GHOST] - 1e-9 for gap in gaps)

    async def test_services_have_independent_lanes(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        await limiter.wait_if_needed(WAYBACK)

        assert await limiter.wait_if_needed(GHOST) == 0.0
        assert sleeper.calls == []

    async def test_records_post_wait_time(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        await limiter.wait_if_needed(WAYBACK)
        first = clock.now

        await limiter.wait_if_needed(WAYBACK)

        assert limiter.last_request_at(WAYBACK) == pytest.approx(first + 1.0)

    async def test_get_wait_time(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        assert limiter.get_wait_time(WAYBACK) == 0.0

        await limiter.wait_if_needed(WAYBACK)
        clock.advance(0.25)

        assert limiter.get_wait_time(WAYBACK) == pytest.approx(0.75)

    async def test_concurrent_callers_are_serialised(self, clock) -> None:
        active = 0
        max_active = 0

        async def slow_sleep(seconds: float) -> None:
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await asyncio.sleep(0)
            clock.advance(seconds)
            active -= 1

        limiter = RateLimiter(clock=clock, sleep=slow_sleep)
        await asyncio.gather(*(limiter.wait_if_needed(GHOST) for _ in range(4)))

        assert max_active == 1
        # Four calls, three waits of one full gap each.
        assert clock.now == pytest.approx(1000.0 + 3 * SERVICE_MIN_INTERVALS[GHOST])


class TestReset:
    @pytest.mark.asyncio
    async def test_reset_one_service(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        await limiter.wait_if_needed(WAYBACK)
        await limiter.wait_if_needed(GHOST)

        limiter.reset(WAYBACK)

        assert limiter.last_request_at(WAYBACK) is None
        assert limiter.last_request_at(GHOST) is not None

    @pytest.mark.asyncio
    async def test_reset_all(self, clock, sleeper) -> None:
        limiter = RateLimiter(clock=clock, sleep=sleeper)
        await limiter.wait_if_needed(WAYBACK)
        await limiter.wait_if_needed(GHOST)

        limiter.reset()

        assert limiter.get_wait_time(WAYBACK) == 0.0
        assert limiter.get_wait_time(GHOST) == 0.0


class TestEventLoops:
    def test_limiter_reused_across_asyncio_run(self, clock) -> None:
        delays: list[float] = []

        async def yielding_sleep(seconds: float) -> None:
            delays.append(seconds)
            clock.advance(seconds)
            await asyncio.sleep(0)

        limiter = RateLimiter(clock=clock, sleep=yielding_sleep)

        async def contended_lane() -> None:
            await limiter.wait_if_needed(WAYBACK)
            await asyncio.gather(
                limiter.wait_if_needed(WAYBACK),
                limiter.wait_if_needed(WAYBACK),
            )

        asyncio.run(contended_lane())
        asyncio.run(contended_lane())

        assert delays == [pytest.approx(1.0)] * 5
