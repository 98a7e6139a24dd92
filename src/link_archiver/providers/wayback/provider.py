"""Wayback Machine snapshot provider.

Queries the CDX API for HTTP-200 captures of the original URL and turns
each capture row into a ``/web/<timestamp>/<url>`` playback snapshot.  Row
order is not trusted; the resolver ranks the candidates.
"""

from __future__ import annotations

import logging

from link_archiver.core.models import Snapshot
from link_archiver.providers.base import SnapshotProvider
from link_archiver.providers.registry import register
from link_archiver.providers.wayback._fetcher import (
    build_snapshot_url,
    extract_timestamps,
    fetch_cdx_table,
)
from link_archiver.providers.wayback.config import (
    WB_DISPLAY_NAME,
    WB_SERVICE_NAME,
    WB_SUBMISSION_URL_TEMPLATE,
)

logger = logging.getLogger(__name__)


@register
class WaybackProvider(SnapshotProvider):
    """Snapshot provider backed by the Wayback Machine CDX API."""

    service_name = WB_SERVICE_NAME
    display_name = WB_DISPLAY_NAME

    async def fetch_candidates(self, url: str) -> list[Snapshot]:
        """Return one candidate per distinct valid capture timestamp.

        Args:
            url: Original URL to look up.

        Returns:
            Unranked candidates; empty when the service has no captures or
            answers with something unparseable.

        Raises:
            ArchiveServiceError: See :func:`fetch_cdx_table`.
        """
        async with self._client() as client:
            table = await fetch_cdx_table(client, url, limit=self.settings.max_snapshots)

        snapshots = [
            Snapshot(url=build_snapshot_url(timestamp, url), timestamp=timestamp)
            for timestamp in extract_timestamps(table)
        ]
        logger.debug("wayback: %d captures for %s", len(snapshots), url)
        return snapshots

    def submission_url(self, url: str) -> str:
        return WB_SUBMISSION_URL_TEMPLATE.format(url=url)
