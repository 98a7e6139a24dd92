"""HTML parsing helpers for GhostArchive pages.

Internal module used by
:class:`~link_archiver.providers.ghostarchive.provider.GhostArchiveProvider`.

Provides:
- :func:`parse_search_results`: snapshots listed on a search results page.
- :func:`extract_capture_timestamp`: capture date shown on an archive page.
- :func:`absolutize_result_href`: full URL for a result link.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from link_archiver.core.models import Snapshot
from link_archiver.providers.ghostarchive.config import (
    GA_BASE_URL,
    GA_PAGE_URL_PREFIX,
    GA_TIMESTAMP_SELECTORS,
    GA_UNKNOWN_TIMESTAMP,
    GA_VIDEO_URL_PREFIX,
)

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^/*(archive|varchive)/")
_RFC_DATE_RE = re.compile(r"\w{3},\s+\d{2}\s+\w{3}\s+\d{4}\s+\d{2}:\d{2}:\d{2}\s+GMT")
_ISO_DATETIME_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}")


def _collapse(text: str) -> str:
    return " ".join(text.replace("\xa0", " ").split())


def absolutize_result_href(href: str, video_id: str | None = None) -> str:
    """Turn a search-result ``href`` into an absolute GhostArchive URL.

    Absolute hrefs pass through, root-relative ones get the GhostArchive
    origin, and bare IDs are expanded under ``/varchive/`` (video results)
    or ``/archive/`` (everything else).
    """
    if href.startswith("http"):
        return href
    if href.startswith("/"):
        return f"{GA_BASE_URL}{href}"
    is_video = "varchive/" in href or (video_id is not None and href == video_id)
    prefix = GA_VIDEO_URL_PREFIX if is_video else GA_PAGE_URL_PREFIX
    return prefix + _PREFIX_RE.sub("", href)


def parse_search_results(html: str, video_id: str | None = None) -> list[Snapshot]:
    """Parse the ``.result-row`` table of a GhostArchive search page.

    Args:
        html: Search page markup.
        video_id: When set, rows whose URL does not contain it are dropped.

    Returns:
        Snapshots in page order.  Rows without a link, or whose link does not
        resolve to an archive URL, are skipped.
    """
    soup = BeautifulSoup(html, "html.parser")
    rows = soup.select(".result-row")
    logger.debug("ghostarchive: %d result rows", len(rows))

    snapshots: list[Snapshot] = []
    for row in rows:
        link = row.select_one("td:first-child a")
        if not isinstance(link, Tag):
            continue
        href = str(link.get("href") or "").strip()
        if not href:
            continue

        url = absolutize_result_href(href, video_id)
        if video_id and video_id not in url:
            logger.debug("ghostarchive: skipping %s, does not match video %s", url, video_id)
            continue

        cell = row.select_one("td:nth-child(2)")
        timestamp = _collapse(cell.get_text()) if isinstance(cell, Tag) else ""
        link_text = link.get_text(strip=True)
        title = link_text if link_text and not link_text.startswith("http") else None

        try:
            snapshots.append(
                Snapshot(url=url, timestamp=timestamp or GA_UNKNOWN_TIMESTAMP, title=title)
            )
        except ValueError:
            logger.debug("ghostarchive: skipping non-archive result link %s", url)
    return snapshots


def extract_capture_timestamp(html: str) -> str:
    """Return the capture date shown on an archive page, or ``"unknown"``.

    Tries :data:`GA_TIMESTAMP_SELECTORS` in order (``datetime`` and
    ``content`` attributes before text), then an RFC 2822 or ISO date in the
    body text.
    """
    soup = BeautifulSoup(html, "html.parser")
    for selector in GA_TIMESTAMP_SELECTORS:
        element = soup.select_one(selector)
        if not isinstance(element, Tag):
            continue
        value = element.get("datetime") or element.get("content") or element.get_text()
        value = _collapse(str(value))
        if value:
            return value

    body = soup.body or soup
    text = body.get_text(" ")
    match = _RFC_DATE_RE.search(text) or _ISO_DATETIME_RE.search(text)
    if match:
        return _collapse(match.group(0))
    return GA_UNKNOWN_TIMESTAMP
