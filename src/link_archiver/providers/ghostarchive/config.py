"""Configuration for the GhostArchive provider.

GhostArchive has no API.  Video captures live at a predictable
``/varchive/<video id>`` path that can be requested directly; everything else
is found by scraping the HTML search page.
"""

from __future__ import annotations

GA_SERVICE_NAME: str = "ghostarchive.org"
"""Registry key and rate-limiter lane."""

GA_DISPLAY_NAME: str = "GhostArchive"
"""Name shown in user-facing error messages."""

GA_BASE_URL: str = "https://ghostarchive.org"
"""Origin used to absolutise relative result links."""

GA_SEARCH_URL: str = f"{GA_BASE_URL}/search"
"""Search page; the query goes in the ``term`` parameter."""

GA_VIDEO_URL_TEMPLATE: str = f"{GA_BASE_URL}/varchive/{{video_id}}"
"""Direct URL of an archived YouTube video."""

GA_PAGE_URL_PREFIX: str = f"{GA_BASE_URL}/archive/"
GA_VIDEO_URL_PREFIX: str = f"{GA_BASE_URL}/varchive/"

GA_SUBMISSION_URL_TEMPLATE: str = f"{GA_BASE_URL}/archive/{{url}}"
"""Archive-request URL; ``url`` must be percent-encoded."""

GA_UNKNOWN_TIMESTAMP: str = "unknown"
"""Timestamp recorded when a page exposes no capture date."""

GA_ERROR_BODY_LIMIT: int = 2000
"""Characters of an error response body kept for CAPTCHA detection."""

GA_FATAL_SEARCH_STATUSES: frozenset[int] = frozenset({403, 429, 503, 504})
"""Search statuses surfaced as errors; other non-200 statuses mean no results."""

GA_TIMESTAMP_SELECTORS: tuple[str, ...] = (
    ".archive-timestamp",
    ".timestamp",
    ".date",
    "time[datetime]",
    'meta[property="article:published_time"]',
)
"""CSS selectors tried in order when scraping a capture date from a page."""

GA_REQUEST_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": f"{GA_BASE_URL}/",
}
"""Extra headers sent with every request; the User-Agent comes from settings."""
