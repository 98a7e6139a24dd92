"""GhostArchive snapshot provider.

Lookup strategy:

1. YouTube links: request ``/varchive/<video id>`` directly.  A 200 is one
   candidate; a 404, any other status or a transport error means no
   candidate and the search below still runs.  YouTube links without an
   extractable video ID yield nothing at all.
2. Search ``/search?term=<video id or bare URL>`` and scrape the results
   table, keeping only rows that mention the video ID when there is one.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import quote

import httpx

from link_archiver.core.exceptions import ArchiveServiceError
from link_archiver.core.models import Snapshot
from link_archiver.core.url_utils import extract_video_id, is_youtube_url
from link_archiver.providers.base import SnapshotProvider
from link_archiver.providers.ghostarchive._parser import (
    extract_capture_timestamp,
    parse_search_results,
)
from link_archiver.providers.ghostarchive.config import (
    GA_DISPLAY_NAME,
    GA_ERROR_BODY_LIMIT,
    GA_FATAL_SEARCH_STATUSES,
    GA_REQUEST_HEADERS,
    GA_SEARCH_URL,
    GA_SERVICE_NAME,
    GA_SUBMISSION_URL_TEMPLATE,
    GA_VIDEO_URL_TEMPLATE,
)
from link_archiver.providers.registry import register

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def search_term_for(url: str, video_id: str | None = None) -> str:
    """Return the search query for ``url``: the video ID, or the URL without scheme."""
    if video_id:
        return video_id
    term = _SCHEME_RE.sub("", url)
    return term[:-1] if term.endswith("/") else term


@register
class GhostArchiveProvider(SnapshotProvider):
    """Snapshot provider that queries and scrapes ghostarchive.org."""

    service_name = GA_SERVICE_NAME
    display_name = GA_DISPLAY_NAME

    async def fetch_candidates(self, url: str) -> list[Snapshot]:
        """Return candidates from the direct video page or the search page.

        Raises:
            ArchiveServiceError: On search-page transport errors and on
                search HTTP 403, 429, 503 and 504.
        """
        video_id: str | None = None
        if is_youtube_url(url):
            video_id = extract_video_id(url)
            if video_id is None:
                logger.info("ghostarchive: no video id in YouTube link %s", url)
                return []

        async with self._client() as client:
            if video_id is not None:
                direct = await self._fetch_video_page(client, video_id)
                if direct:
                    return direct
                logger.debug("ghostarchive: no direct capture for %s, searching", video_id)
            return await self._search(client, search_term_for(url, video_id), video_id)

    def submission_url(self, url: str) -> str:
        return GA_SUBMISSION_URL_TEMPLATE.format(url=quote(url, safe=""))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _fetch_video_page(self, client: httpx.AsyncClient, video_id: str) -> list[Snapshot]:
        archive_url = GA_VIDEO_URL_TEMPLATE.format(video_id=video_id)
        try:
            response = await client.get(archive_url, headers=GA_REQUEST_HEADERS)
        except httpx.TransportError as exc:
            logger.warning("ghostarchive: direct fetch of %s failed: %s", archive_url, exc)
            return []

        if response.status_code == 200:
            timestamp = extract_capture_timestamp(response.text)
            return [Snapshot(url=archive_url, timestamp=timestamp)]
        if response.status_code != 404:
            logger.info(
                "ghostarchive: direct fetch of %s returned HTTP %d, treating as no capture",
                archive_url,
                response.status_code,
            )
        return []

    async def _search(
        self, client: httpx.AsyncClient, term: str, video_id: str | None
    ) -> list[Snapshot]:
        try:
            response = await client.get(
                GA_SEARCH_URL, params={"term": term}, headers=GA_REQUEST_HEADERS
            )
        except httpx.TransportError as exc:
            raise ArchiveServiceError(
                f"ghostarchive: request error: {exc}",
                service=GA_SERVICE_NAME,
            ) from exc

        status = response.status_code
        if status in GA_FATAL_SEARCH_STATUSES:
            raise ArchiveServiceError(
                f"ghostarchive: search returned HTTP {status}",
                service=GA_SERVICE_NAME,
                status_code=status,
                body=response.text[:GA_ERROR_BODY_LIMIT],
            )
        if status != 200:
            logger.info("ghostarchive: search returned HTTP %d for %r", status, term)
            return []

        return parse_search_results(response.text, video_id)
