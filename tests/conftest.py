"""Shared pytest fixtures for Link Archiver tests.

Fixture summary
---------------
settings        - Settings built from defaults only (no .env, no env vars).
clock           - Manually advanced monotonic clock.
sleeper         - Async sleep stand-in that records delays and advances ``clock``.
state           - Fresh ResolverState wired to ``clock`` and ``sleeper``.
fixtures_dir    - Path to ``tests/fixtures``.

No test in this suite touches the network: HTTP is mocked with respx and
every wait goes through an injected clock and sleeper.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Drop any LINK_ARCHIVER_* variables from the developer's shell so Settings()
# sees defaults during collection.

for _key in [k for k in os.environ if k.startswith("LINK_ARCHIVER_")]:
    del os.environ[_key]

from link_archiver.config.settings import Settings, get_settings  # noqa: E402
from link_archiver.core.cache import ResultCache, TitleCache  # noqa: E402
from link_archiver.core.rate_limiter import RateLimiter  # noqa: E402
from link_archiver.resolver import ResolverState, get_default_state  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleeper:
    """Async ``sleep`` replacement that records each delay.

    When bound to a :class:`FakeClock` it advances the clock by the delay,
    so code that sleeps and then reads the clock sees time pass.
    """

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> Iterator[None]:
    """Clear cached settings and the process-wide resolver state around each test."""
    get_settings.cache_clear()
    default_state = get_default_state()
    default_state.result_cache.clear()
    default_state.title_cache.clear()
    default_state.rate_limiter.reset()
    yield
    get_settings.cache_clear()
    default_state.result_cache.clear()
    default_state.title_cache.clear()
    default_state.rate_limiter.reset()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleeper(clock: FakeClock) -> RecordingSleeper:
    return RecordingSleeper(clock)


@pytest.fixture
def state(clock: FakeClock, sleeper: RecordingSleeper) -> ResolverState:
    return ResolverState(
        result_cache=ResultCache(clock=clock),
        title_cache=TitleCache(clock=clock),
        rate_limiter=RateLimiter(clock=clock, sleep=sleeper),
    )


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
