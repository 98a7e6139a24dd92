"""Archive snapshot resolution.

:class:`Resolver` turns one original URL into a ranked
:class:`~link_archiver.core.models.ResolutionResult`:

1. serve a fresh cached result when there is one (first attempt only);
2. wait for the configured service's rate-limit lane;
3. ask the registered provider for candidates;
4. drop invalid and duplicate candidates, rank the rest, truncate to
   ``max_snapshots`` and cache the outcome, negative ones included;
5. on failure, classify the error: rate limiting stops immediately,
   transient failures are retried twice with exponential backoff, and
   everything else is reported as not found.  Failures are never cached
   and never raised.

Batch callers resolve URLs one at a time and stop when a result comes back
with ``rate_limited=True``.

Usage::

    from link_archiver.resolver import resolve_archive

    result = await resolve_archive("https://example.com")
    if result.found:
        print(result.best_url)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable

import httpx
import structlog

from link_archiver.config.settings import Settings, get_settings
from link_archiver.core.cache import ResultCache, TitleCache
from link_archiver.core.error_classifier import classify_error
from link_archiver.core.exceptions import ArchiveServiceError
from link_archiver.core.logging_config import lookup_context
from link_archiver.core.metrics import (
    archive_lookups_total,
    archive_provider_duration_seconds,
    archive_provider_errors_total,
)
from link_archiver.core.models import (
    ArchiveError,
    ArchiveErrorKind,
    ResolutionResult,
    Snapshot,
)
from link_archiver.core.rate_limiter import RateLimiter
from link_archiver.core.scoring import RelevanceScorer
from link_archiver.core.url_utils import (
    is_archive_url,
    is_valid_archive_snapshot,
    normalize_url,
)
from link_archiver.providers.base import SnapshotProvider
from link_archiver.providers.registry import autodiscover, get_provider

logger = structlog.get_logger(__name__)

MAX_RETRIES: int = 2
"""Retries after the first attempt for transient failures."""

RETRY_BASE_DELAY_SECONDS: float = 1.0
"""Backoff before retry ``n`` (0-based) is ``RETRY_BASE_DELAY_SECONDS * 2 ** n``."""

Sleeper = Callable[[float], Awaitable[None]]


@dataclass
class ResolverState:
    """Stores shared by every lookup made through one resolver context.

    Attributes:
        result_cache: Memo of resolution outcomes.
        title_cache: Memo of scraped page titles.
        rate_limiter: Per-service request gate.
    """

    result_cache: ResultCache = field(default_factory=ResultCache)
    title_cache: TitleCache = field(default_factory=TitleCache)
    rate_limiter: RateLimiter = field(default_factory=RateLimiter)


_default_state = ResolverState()


def get_default_state() -> ResolverState:
    """Return the process-wide state used by the module-level helpers."""
    return _default_state


class Resolver:
    """Resolve original URLs to their best archived snapshot.

    Args:
        settings: Optional settings override; defaults to :func:`get_settings`.
        state: Caches and rate limiter to use; a fresh set when omitted.
        provider: Snapshot provider; by default the one registered for
            ``settings.archive_service``.
        scorer: Candidate ranker.
        http_client: Shared client handed to the default provider.
        sleep: Coroutine function used for retry backoff.  Injected in tests.

    Raises:
        UnknownServiceError: If no provider is registered for the configured
            service.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        state: ResolverState | None = None,
        provider: SnapshotProvider | None = None,
        scorer: RelevanceScorer | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.state = state or ResolverState()
        if provider is None:
            autodiscover()
            provider_cls = get_provider(self.settings.archive_service)
            provider = provider_cls(settings=self.settings, http_client=http_client)
        self.provider = provider
        self.scorer = scorer or RelevanceScorer()
        self._sleep = sleep

    @property
    def service(self) -> str:
        return self.provider.service_name

    async def resolve_archive(self, original_url: str, retry_count: int = 0) -> ResolutionResult:
        """Resolve ``original_url`` to a ranked :class:`ResolutionResult`.

        Args:
            original_url: Absolute http(s) URL to look up.
            retry_count: Attempt number; callers leave this at ``0``.

        Returns:
            The resolution outcome.  Provider failures are reported through
            ``found=False`` (and ``rate_limited=True`` for rate limiting),
            never raised.

        Raises:
            InvalidUrlError: If ``original_url`` is not an absolute http(s) URL.
        """
        cache_key = normalize_url(original_url)
        with lookup_context(service=self.service, url=original_url, attempt=retry_count):
            return await self._resolve(original_url, cache_key, retry_count)

    async def _resolve(
        self, original_url: str, cache_key: str, retry_count: int
    ) -> ResolutionResult:
        if is_archive_url(original_url):
            logger.info("archive_lookup_skipped", reason="already an archive URL")
            return ResolutionResult.not_found(service=self.service)

        if retry_count == 0:
            cached = self.state.result_cache.get(cache_key)
            if cached is not None:
                logger.debug("archive_lookup_cache_hit", found=cached.found)
                archive_lookups_total.labels(service=self.service, outcome="cache_hit").inc()
                return replace(cached, from_cache=True)

        await self.state.rate_limiter.wait_if_needed(self.service)

        started = time.perf_counter()
        try:
            candidates = await self.provider.fetch_candidates(original_url)
        except ArchiveServiceError as exc:
            error = classify_error(exc, self.provider.display_name)
        except Exception as exc:  # noqa: BLE001
            logger.exception("archive_provider_crashed")
            error = ArchiveError(
                kind=ArchiveErrorKind.UNKNOWN,
                message=f"Error accessing {self.provider.display_name}: {exc}",
                service_name=self.provider.display_name,
            )
        else:
            error = None
        finally:
            archive_provider_duration_seconds.labels(service=self.service).observe(
                time.perf_counter() - started
            )

        if error is not None:
            return await self._handle_failure(original_url, error, retry_count)

        ranked = self._rank(candidates, original_url)
        result = ResolutionResult.from_snapshots(ranked, service=self.service)
        self.state.result_cache.set(cache_key, result)

        outcome = "found" if result.found else "not_found"
        archive_lookups_total.labels(service=self.service, outcome=outcome).inc()
        logger.info(
            "archive_lookup_complete",
            found=result.found,
            best_url=result.best_url,
            candidates=len(candidates),
            kept=len(result.snapshots),
        )
        return result

    def _rank(self, candidates: list[Snapshot], original_url: str) -> list[Snapshot]:
        unique: list[Snapshot] = []
        seen: set[str] = set()
        for candidate in candidates:
            if candidate.url in seen:
                continue
            if not is_valid_archive_snapshot(candidate.url, original_url):
                logger.debug("archive_candidate_rejected", candidate=candidate.url)
                continue
            seen.add(candidate.url)
            unique.append(candidate)
        return self.scorer.rank(unique, original_url)[: self.settings.max_snapshots]

    async def _handle_failure(
        self, original_url: str, error: ArchiveError, retry_count: int
    ) -> ResolutionResult:
        archive_provider_errors_total.labels(service=self.service, kind=error.kind.value).inc()
        details = {"kind": error.kind.value, "status_code": error.status_code}

        if error.kind is ArchiveErrorKind.RATE_LIMITED:
            logger.warning("archive_lookup_rate_limited", message=error.message, **details)
            archive_lookups_total.labels(service=self.service, outcome="rate_limited").inc()
            return ResolutionResult.not_found(service=self.service, rate_limited=True)

        if error.retryable and retry_count < MAX_RETRIES:
            delay = RETRY_BASE_DELAY_SECONDS * 2**retry_count
            logger.warning(
                "archive_lookup_retrying", delay=delay, message=error.message, **details
            )
            await self._sleep(delay)
            return await self.resolve_archive(original_url, retry_count + 1)

        logger.warning("archive_lookup_failed", message=error.message, **details)
        archive_lookups_total.labels(service=self.service, outcome="error").inc()
        return ResolutionResult.not_found(service=self.service)

    def submission_url(self, original_url: str) -> str:
        """Return the URL a human can open to archive ``original_url`` by hand."""
        return self.provider.submission_url(original_url)

    def clear_cache(self) -> None:
        """Forget every cached resolution result."""
        self.state.result_cache.clear()
        logger.info("archive_result_cache_cleared", service=self.service)


_default_resolver: Resolver | None = None


def get_default_resolver(settings: Settings | None = None) -> Resolver:
    """Return the resolver the module-level helpers share.

    Built once on the process-wide :class:`ResolverState` and reused, so
    batch callers do not rediscover providers for every link.  It is rebuilt
    when ``settings`` is a different object from the one it was built with.
    """
    global _default_resolver  # noqa: PLW0603
    settings = settings or get_settings()
    if _default_resolver is None or _default_resolver.settings is not settings:
        _default_resolver = Resolver(settings=settings, state=_default_state)
    return _default_resolver


async def resolve_archive(
    original_url: str,
    settings: Settings | None = None,
    state: ResolverState | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ResolutionResult:
    """Resolve ``original_url``, by default through :func:`get_default_resolver`.

    Passing ``state`` or ``http_client`` builds a one-off :class:`Resolver`
    around them instead.
    """
    if state is None and http_client is None:
        resolver = get_default_resolver(settings)
    else:
        resolver = Resolver(
            settings=settings, state=state or _default_state, http_client=http_client
        )
    return await resolver.resolve_archive(original_url)
