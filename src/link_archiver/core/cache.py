"""In-process TTL caches for resolution results and page titles.

Both caches expire lazily: an entry older than its TTL is treated as a miss
and deleted on the read that finds it; nothing sweeps proactively.  Time
comes from an injectable clock (``time.monotonic`` by default) so tests can
age entries without sleeping.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from link_archiver.core.models import ResolutionResult

T = TypeVar("T")

RESULT_CACHE_TTL_SECONDS: float = 5 * 60
TITLE_CACHE_TTL_SECONDS: float = 24 * 60 * 60
TITLE_CACHE_MAX_ENTRIES: int = 500

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the clock reading at which it was stored."""

    value: T
    stored_at: float

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.stored_at > ttl


class TTLCache(Generic[T]):
    """Dictionary with per-entry lazy TTL expiry.

    Args:
        ttl: Entry lifetime in seconds.
        clock: Zero-argument callable returning seconds (monotonic).
    """

    def __init__(self, ttl: float, clock: Clock = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()

    def get(self, key: str) -> T | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock(), self.ttl):
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: T) -> None:
        self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        # Membership does not touch recency or expire anything.
        return key in self._entries


class ResultCache(TTLCache[ResolutionResult]):
    """Short-lived memo of full resolution outcomes, negative ones included."""

    def __init__(
        self, ttl: float = RESULT_CACHE_TTL_SECONDS, clock: Clock = time.monotonic
    ) -> None:
        super().__init__(ttl=ttl, clock=clock)


class TitleCache(TTLCache[str]):
    """Size-bounded LRU memo of scraped page titles.

    A successful :meth:`get` moves the entry to the most-recently-used end.
    Inserting a new key while at capacity evicts exactly the
    least-recently-used key; overwriting an existing key evicts nothing.
    """

    def __init__(
        self,
        ttl: float = TITLE_CACHE_TTL_SECONDS,
        max_entries: int = TITLE_CACHE_MAX_ENTRIES,
        clock: Clock = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        super().__init__(ttl=ttl, clock=clock)
        self.max_entries = max_entries

    def get(self, key: str) -> str | None:
        value = super().get(key)
        if value is not None:
            self._entries.move_to_end(key)
        return value

    def set(self, key: str, value: str) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.max_entries:
            self._entries.popitem(last=False)
        super().set(key, value)
