"""Low-level Wayback Machine CDX API fetching and parsing helpers.

Internal module used by
:class:`~link_archiver.providers.wayback.provider.WaybackProvider`.
Not part of the public provider API.

Provides:
- :func:`fetch_cdx_table`: fetch the CDX JSON table for one URL.
- :func:`extract_timestamps`: pull valid 14-digit capture stamps out of it.
- :func:`build_snapshot_url`: playback URL for one capture.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from link_archiver.core.exceptions import ArchiveServiceError
from link_archiver.providers.wayback.config import (
    WB_CDX_BASE_URL,
    WB_DEFAULT_OUTPUT,
    WB_DEFAULT_STATUS_FILTER,
    WB_ERROR_BODY_LIMIT,
    WB_SERVICE_NAME,
    WB_SNAPSHOT_URL_TEMPLATE,
    WB_TIMESTAMP_FALLBACK_INDEX,
    WB_TIMESTAMP_FIELD,
)

logger = logging.getLogger(__name__)

_CDX_TIMESTAMP_RE = re.compile(r"^\d{14}$")


async def fetch_cdx_table(client: httpx.AsyncClient, url: str, limit: int) -> list[Any]:
    """Fetch the CDX capture table for ``url``.

    Args:
        client: Async HTTP client.
        url: Original URL to look up.
        limit: CDX ``limit`` parameter.

    Returns:
        The decoded JSON table (header row first), or an empty list when
        the response is a 404, another non-fatal 4xx, empty, or not JSON.

    Raises:
        ArchiveServiceError: On transport errors, HTTP 429, HTTP 403 and any
            5xx.
    """
    params: dict[str, Any] = {
        "url": url,
        "output": WB_DEFAULT_OUTPUT,
        "limit": limit,
        "filter": WB_DEFAULT_STATUS_FILTER,
    }

    try:
        response = await client.get(WB_CDX_BASE_URL, params=params)
    except httpx.TransportError as exc:
        raise ArchiveServiceError(
            f"wayback: request error: {exc}",
            service=WB_SERVICE_NAME,
        ) from exc

    status = response.status_code
    if status == 429:
        raise ArchiveServiceError(
            "wayback: HTTP 429 rate limited",
            service=WB_SERVICE_NAME,
            status_code=status,
        )

    if status == 403 or status >= 500:
        raise ArchiveServiceError(
            f"wayback: HTTP {status}",
            service=WB_SERVICE_NAME,
            status_code=status,
            body=response.text[:WB_ERROR_BODY_LIMIT],
        )

    if status >= 400:
        logger.warning("wayback: HTTP %d for url=%s, treating as no captures", status, url)
        return []

    if not response.text.strip():
        return []

    try:
        data = response.json()
    except ValueError as exc:
        logger.warning("wayback: JSON parse error: %s, treating as no captures", exc)
        return []

    if not isinstance(data, list):
        return []
    return data


def extract_timestamps(table: list[Any]) -> list[str]:
    """Return the valid 14-digit capture timestamps in a CDX table.

    The timestamp column is located via the header row, falling back to
    index 1.  Rows that are not lists, are too short, or carry a malformed
    timestamp are skipped.  Duplicate stamps are kept once, in table order.
    """
    if len(table) < 2 or not isinstance(table[0], list):
        return []

    header = table[0]
    try:
        column = header.index(WB_TIMESTAMP_FIELD)
    except ValueError:
        column = WB_TIMESTAMP_FALLBACK_INDEX

    timestamps: list[str] = []
    seen: set[str] = set()
    for row in table[1:]:
        if not isinstance(row, list) or len(row) <= column:
            continue
        value = str(row[column])
        if not _CDX_TIMESTAMP_RE.match(value):
            logger.debug("wayback: skipping row with timestamp %r", value)
            continue
        if value in seen:
            continue
        seen.add(value)
        timestamps.append(value)
    return timestamps


def build_snapshot_url(timestamp: str, url: str) -> str:
    """Return the playback URL of the capture of ``url`` at ``timestamp``."""
    return WB_SNAPSHOT_URL_TEMPLATE.format(timestamp=timestamp, url=url)
