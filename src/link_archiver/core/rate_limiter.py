"""Per-service minimum-interval rate limiter for archive lookups.

Archive services throttle by client IP, so the gate is keyed by service and
is single-lane: each call waits until the service's minimum gap has elapsed
since the previous call *started*, then records its own start time.

Typical usage::

    limiter = RateLimiter()
    await limiter.wait_if_needed("web.archive.org")
    response = await client.get(url)

The window state lives for the lifetime of the limiter instance; there is
no persistence and no cross-process coordination.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_MIN_INTERVAL_SECONDS: float = 1.0
"""Gap applied to services missing from :data:`SERVICE_MIN_INTERVALS`."""

SERVICE_MIN_INTERVALS: dict[str, float] = {
    "web.archive.org": 1.0,
    "ghostarchive.org": 2.0,
    "archive.ph": 2.0,
    "archive.li": 2.0,
    "archive.is": 2.0,
    "archive.vn": 2.0,
    "archive.md": 2.0,
    "archive.today": 2.0,
}
"""Minimum seconds between consecutive requests to each service.

The CDX API tolerates roughly one request per second; scrape-based services
get a wider gap.
"""

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Single-lane minimum-interval gate, one lane per service.

    Args:
        intervals: Override of the per-service gap table.
        clock: Monotonic clock in seconds.
        sleep: Coroutine function used to wait.  Injected in tests.
    """

    def __init__(
        self,
        intervals: dict[str, float] | None = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._intervals = dict(SERVICE_MIN_INTERVALS if intervals is None else intervals)
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: dict[str, float] = {}
        self._locks: dict[str, tuple[asyncio.AbstractEventLoop, asyncio.Lock]] = {}

    def min_interval(self, service: str) -> float:
        return self._intervals.get(service, DEFAULT_MIN_INTERVAL_SECONDS)

    def last_request_at(self, service: str) -> float | None:
        return self._last_request_at.get(service)

    def get_wait_time(self, service: str) -> float:
        """Return seconds a call made now would wait (``0.0`` if none)."""
        last = self._last_request_at.get(service)
        if last is None:
            return 0.0
        return max(0.0, self.min_interval(service) - (self._clock() - last))

    async def wait_if_needed(self, service: str) -> float:
        """Suspend until ``service``'s gap has elapsed, then claim the slot.

        Always records the post-wait time as the service's last request,
        whether or not a wait occurred.

        Returns:
            Seconds actually waited.
        """
        async with self._lane_lock(service):
            wait = self.get_wait_time(service)
            if wait > 0:
                logger.debug("rate_limiter: waiting %.2fs before %s", wait, service)
                await self._sleep(wait)
            self._last_request_at[service] = self._clock()
            return wait

    def _lane_lock(self, service: str) -> asyncio.Lock:
        """Return the lane lock for ``service`` on the running event loop.

        A lock that waited under one loop cannot be awaited from another, so
        a limiter reused across ``asyncio.run`` calls gets a fresh lock per
        loop.  Lanes on different loops do not exclude each other.
        """
        loop = asyncio.get_running_loop()
        entry = self._locks.get(service)
        if entry is None or entry[0] is not loop:
            entry = self._locks[service] = (loop, asyncio.Lock())
        return entry[1]

    def reset(self, service: str | None = None) -> None:
        """Forget the last request time for one service, or all of them."""
        if service is None:
            self._last_request_at.clear()
        else:
            self._last_request_at.pop(service, None)
