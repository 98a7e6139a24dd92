"""Configuration for the Wayback Machine provider.

Defines the CDX API endpoint, default query parameters and URL templates
used by :class:`~link_archiver.providers.wayback.provider.WaybackProvider`.

The CDX API is free, unauthenticated and IP-rate-limited at roughly one
request per second; the per-service gap lives in
:data:`link_archiver.core.rate_limiter.SERVICE_MIN_INTERVALS`.

Reference: https://github.com/internetarchive/wayback/tree/master/wayback-cdx-server
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API constants
# ---------------------------------------------------------------------------

WB_SERVICE_NAME: str = "web.archive.org"
"""Registry key and rate-limiter lane."""

WB_DISPLAY_NAME: str = "Wayback Machine"
"""Name shown in user-facing error messages."""

WB_CDX_BASE_URL: str = "https://web.archive.org/cdx/search/cdx"
"""Base URL for the Wayback Machine CDX API."""

WB_DEFAULT_OUTPUT: str = "json"
"""CDX output format.

``json`` returns a 2D array: first row is field names, subsequent rows are
capture records.
"""

WB_DEFAULT_STATUS_FILTER: str = "statuscode:200"
"""Only return captures that recorded a successful HTTP 200 response."""

WB_TIMESTAMP_FIELD: str = "timestamp"
"""Header name of the capture timestamp column."""

WB_TIMESTAMP_FALLBACK_INDEX: int = 1
"""Column used when the header row does not name a timestamp column."""

WB_SNAPSHOT_URL_TEMPLATE: str = "https://web.archive.org/web/{timestamp}/{url}"
"""Playback URL of a single capture."""

WB_SUBMISSION_URL_TEMPLATE: str = "https://web.archive.org/save/{url}"
"""Save Page Now URL a human can open to request a fresh capture."""

WB_ERROR_BODY_LIMIT: int = 2000
"""Characters of an error response body kept for error classification."""
