"""Prometheus metrics for Link Archiver.

All metrics are module-level singletons registered on the default
``REGISTRY``; prometheus_client deduplicates by metric name, so importing
this module from several places is safe.

Metrics defined here:

  archive_lookups_total{service, outcome}
      Counter - resolver outcomes: cache_hit, found, not_found,
      rate_limited, error.

  archive_provider_errors_total{service, kind}
      Counter - classified provider failures, one per failed attempt.

  archive_provider_duration_seconds{service}
      Histogram - wall-clock duration of a single provider call.

  title_lookups_total{source}
      Counter - title lookups by where the answer came from: cache, page,
      fallback.

Usage::

    from link_archiver.core.metrics import archive_lookups_total
    archive_lookups_total.labels(service="web.archive.org", outcome="found").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

archive_lookups_total: Counter = Counter(
    "archive_lookups_total",
    "Archive resolutions by service and outcome.",
    labelnames=["service", "outcome"],
)

archive_provider_errors_total: Counter = Counter(
    "archive_provider_errors_total",
    "Classified archive provider failures by service and error kind.",
    labelnames=["service", "kind"],
)

archive_provider_duration_seconds: Histogram = Histogram(
    "archive_provider_duration_seconds",
    "Duration of a single archive provider call in seconds.",
    labelnames=["service"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

title_lookups_total: Counter = Counter(
    "title_lookups_total",
    "Page title lookups by answer source.",
    labelnames=["source"],
)


def get_metrics_response() -> tuple[bytes, str]:
    """Generate a Prometheus text-format metrics response.

    Returns:
        A tuple of (body_bytes, content_type_string) suitable for constructing
        a FastAPI ``Response`` object.
    """
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
