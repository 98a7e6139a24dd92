"""Abstract base class for all snapshot providers.

Every archive service integration must subclass ``SnapshotProvider`` and
implement :meth:`~SnapshotProvider.fetch_candidates` and
:meth:`~SnapshotProvider.submission_url`.  Ranking, caching, rate limiting
and retries are the resolver's job; a provider only turns one original URL
into a list of unranked :class:`~link_archiver.core.models.Snapshot`
candidates.

Example usage::

    from link_archiver.providers.base import SnapshotProvider
    from link_archiver.providers.registry import register

    @register
    class MyProvider(SnapshotProvider):
        service_name = "archive.example"
        display_name = "Example Archive"

        async def fetch_candidates(self, url): ...
        def submission_url(self, url): ...
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator

import httpx

from link_archiver.config.settings import get_settings

if TYPE_CHECKING:
    from link_archiver.config.settings import Settings
    from link_archiver.core.models import Snapshot

logger = logging.getLogger(__name__)


class SnapshotProvider(ABC):
    """Abstract base class for archive snapshot providers.

    Subclasses must define the class-level attributes ``service_name`` and
    ``display_name``.

    Class Attributes:
        service_name: Host of the archive service (e.g. ``"web.archive.org"``).
            Used as the registry key and as the rate-limiter lane.
        display_name: Human-readable name used in user-facing error messages.

    Args:
        settings: Optional settings override; defaults to :func:`get_settings`.
        http_client: Optional shared ``httpx.AsyncClient``.  When given it is
            used as-is and never closed by the provider; otherwise a
            short-lived client is built per lookup.
    """

    service_name: str
    display_name: str

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._http_client = http_client

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abstractmethod
    async def fetch_candidates(self, url: str) -> list[Snapshot]:
        """Return unranked snapshot candidates for ``url``.

        Args:
            url: Original (non-archive) URL to look up.

        Returns:
            Zero or more candidates.  Malformed or unexpected responses
            yield an empty list.

        Raises:
            ArchiveServiceError: On transport failures and on HTTP statuses
                the error classifier needs to see (rate limiting, blocks,
                outages).
        """

    @abstractmethod
    def submission_url(self, url: str) -> str:
        """Return the URL a human can open to ask the service to archive ``url``.

        The engine never requests this URL itself.
        """

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a fresh one closed on exit."""
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(
            timeout=self.settings.request_timeout,
            headers={"User-Agent": self.settings.user_agent},
            follow_redirects=True,
        ) as client:
            yield client

    def __repr__(self) -> str:
        return f"<{type(self).__name__} service={self.service_name!r}>"
