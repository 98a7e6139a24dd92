"""Best-effort page title extraction for link display text.

:func:`extract_title` fetches a page and picks the first usable title from a
page-kind specific chain of candidates, falling back to the bare hostname
and finally to ``"Link"``.  It never raises.

Candidate chains:

- generic pages: ``<title>``, ``og:title``, ``twitter:title``;
- GhostArchive pages: ``og:title``, ``meta[name=title]``, ``<h1>``,
  title-class elements, ``<title>``, with GhostArchive branding stripped;
- YouTube pages: ``og:title``, ``twitter:title``, ``meta[name=title]``,
  ``<title>`` without `` - YouTube``.  Generic YouTube titles are rejected
  and the GhostArchive copy of the video is consulted instead.

Every chain then continues with the meta description (truncated), the
first ``<h1>`` and the hostname.  Results, fallbacks included, are kept in
the :class:`~link_archiver.core.cache.TitleCache` when caching is enabled.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable

import httpx
from bs4 import BeautifulSoup, Tag

from link_archiver.config.settings import Settings, get_settings
from link_archiver.core.cache import TitleCache
from link_archiver.core.exceptions import InvalidUrlError
from link_archiver.core.metrics import title_lookups_total
from link_archiver.core.url_utils import (
    extract_video_id,
    hostname_without_www,
    is_youtube_url,
    normalize_url,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE: str = "Link"
DESCRIPTION_MAX_CHARS: int = 100
MAX_RETRIES: int = 2
RETRY_BASE_DELAY_SECONDS: float = 1.0

GHOST_VIDEO_URL_TEMPLATE: str = "https://ghostarchive.org/varchive/{video_id}"

BAD_YOUTUBE_TITLES: frozenset[str] = frozenset(
    {
        "",
        "youtube",
        "youtube.com",
        "www.youtube.com",
        "- youtube",
        "youtu.be",
        "enjoy the videos and music you love, upload original content, "
        "and share it all with friends, family, and the world on youtube.",
    }
)
"""Lowercased titles YouTube serves instead of the real video title."""

_GHOST_BRANDING_RE = (
    re.compile(r"\s*[-|]\s*GhostArchive\s*$", re.IGNORECASE),
    re.compile(r"^GhostArchive\s*[-:]\s*", re.IGNORECASE),
)
_YOUTUBE_SUFFIX_RE = re.compile(r"\s*-\s*YouTube\s*$")
_GHOST_TITLE_SELECTORS: tuple[str, ...] = (
    "h1",
    ".video-title",
    ".page-title",
    ".title",
    '[class*="title"]',
)

Sleeper = Callable[[float], Awaitable[None]]


def _clean(text: str | None) -> str:
    return " ".join((text or "").split())


def _meta(soup: BeautifulSoup, attr: str, name: str) -> str:
    tag = soup.find("meta", attrs={attr: name})
    if isinstance(tag, Tag):
        return _clean(str(tag.get("content") or ""))
    return ""


def _first_text(soup: BeautifulSoup, selector: str) -> str:
    tag = soup.select_one(selector)
    return _clean(tag.get_text()) if isinstance(tag, Tag) else ""


def _title_tag(soup: BeautifulSoup) -> str:
    return _clean(soup.title.get_text()) if soup.title else ""


def strip_ghost_branding(title: str) -> str:
    """Remove GhostArchive prefixes and suffixes from a page title."""
    for pattern in _GHOST_BRANDING_RE:
        title = pattern.sub("", title)
    return title.strip()


def is_bad_youtube_title(title: str, url: str) -> bool:
    """Return ``True`` for generic YouTube titles that name no video."""
    return title.lower() in BAD_YOUTUBE_TITLES or title == url


def _generic_title(soup: BeautifulSoup) -> str:
    return (
        _title_tag(soup)
        or _meta(soup, "property", "og:title")
        or _meta(soup, "name", "twitter:title")
    )


def _ghost_title(soup: BeautifulSoup) -> str:
    title = _meta(soup, "property", "og:title") or _meta(soup, "name", "title")
    if not title:
        for selector in _GHOST_TITLE_SELECTORS:
            title = _first_text(soup, selector)
            if title:
                break
    return strip_ghost_branding(title or _title_tag(soup))


def _youtube_title(soup: BeautifulSoup) -> str:
    title = (
        _meta(soup, "property", "og:title")
        or _meta(soup, "name", "twitter:title")
        or _meta(soup, "name", "title")
    )
    if not title:
        title = _YOUTUBE_SUFFIX_RE.sub("", _title_tag(soup))
    return title


def _is_ghost_page(url: str) -> bool:
    return "ghostarchive.org/archive/" in url or "ghostarchive.org/varchive/" in url


def parse_page_title(html: str, url: str) -> str:
    """Pick the primary title for ``url`` from its HTML, or ``""``.

    Only the page-kind specific chain is applied here; description, heading
    and hostname fallbacks are applied by :func:`fallback_title`.
    """
    soup = BeautifulSoup(html, "html.parser")
    if _is_ghost_page(url):
        return _ghost_title(soup)
    if is_youtube_url(url):
        return _youtube_title(soup)
    return _generic_title(soup)


def fallback_title(html: str, url: str) -> str:
    """Return the meta description, first heading, hostname or ``"Link"``."""
    soup = BeautifulSoup(html, "html.parser")
    description = _meta(soup, "name", "description")
    if description:
        if len(description) > DESCRIPTION_MAX_CHARS:
            description = description[:DESCRIPTION_MAX_CHARS] + "..."
        return description
    return _first_text(soup, "h1") or hostname_without_www(url) or DEFAULT_TITLE


class TitleExtractor:
    """Fetch and cache page titles.

    Args:
        settings: Optional settings override; defaults to :func:`get_settings`.
        title_cache: Cache to consult and fill; a fresh one when omitted.
        http_client: Optional shared ``httpx.AsyncClient``.  When omitted a
            client is built per fetch using ``title_fetch_timeout``.
        sleep: Coroutine function used for retry backoff.  Injected in tests.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        title_cache: TitleCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.settings = settings or get_settings()
        self.title_cache = title_cache if title_cache is not None else TitleCache()
        self._http_client = http_client
        self._sleep = sleep

    async def extract_title(self, url: str, retry_count: int = 0) -> str:
        """Return a display title for ``url``.  Never raises."""
        try:
            cache_key = normalize_url(url)
        except InvalidUrlError:
            logger.debug("titles: not an http(s) URL: %r", url)
            return DEFAULT_TITLE

        if self.settings.enable_title_cache and retry_count == 0:
            cached = self.title_cache.get(cache_key)
            if cached:
                title_lookups_total.labels(source="cache").inc()
                return cached

        try:
            response = await self._get(url)
        except httpx.TimeoutException as exc:
            logger.info("titles: timeout fetching %s: %s", url, exc)
            return self._remember_fallback(cache_key, url)
        except httpx.HTTPError as exc:
            logger.info("titles: error fetching %s (attempt %d): %s", url, retry_count, exc)
            if is_youtube_url(url) and retry_count == 0:
                ghost_title = await self._ghost_video_title(url)
                if ghost_title:
                    return self._remember(cache_key, ghost_title, source="page")
            if retry_count < MAX_RETRIES:
                await self._sleep(RETRY_BASE_DELAY_SECONDS * 2**retry_count)
                return await self.extract_title(url, retry_count + 1)
            return self._remember_fallback(cache_key, url)

        if response.status_code != 200:
            logger.info("titles: HTTP %d fetching %s", response.status_code, url)
            return self._remember_fallback(cache_key, url)

        html = response.text
        title = parse_page_title(html, url)

        if is_youtube_url(url) and is_bad_youtube_title(title, url):
            logger.debug("titles: generic YouTube title %r for %s", title, url)
            title = await self._ghost_video_title(url) or ""

        if title and title != url:
            return self._remember(cache_key, title, source="page")
        return self._remember(cache_key, fallback_title(html, url), source="fallback")

    async def _get(self, url: str) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(
                url, timeout=self.settings.title_fetch_timeout, follow_redirects=True
            )
        async with httpx.AsyncClient(
            timeout=self.settings.title_fetch_timeout,
            headers={"User-Agent": self.settings.user_agent},
            follow_redirects=True,
        ) as client:
            return await client.get(url)

    async def _ghost_video_title(self, youtube_url: str) -> str | None:
        """Return the title of the GhostArchive copy of a YouTube video, if usable."""
        video_id = extract_video_id(youtube_url)
        if video_id is None:
            return None
        ghost_url = GHOST_VIDEO_URL_TEMPLATE.format(video_id=video_id)
        try:
            response = await self._get(ghost_url)
        except httpx.HTTPError as exc:
            logger.info("titles: GhostArchive fallback failed for %s: %s", video_id, exc)
            return None
        if response.status_code != 200:
            return None
        title = _ghost_title(BeautifulSoup(response.text, "html.parser"))
        if not title or is_bad_youtube_title(title, youtube_url) or title == DEFAULT_TITLE:
            return None
        return title

    def _remember(self, cache_key: str, title: str, source: str) -> str:
        title_lookups_total.labels(source=source).inc()
        if self.settings.enable_title_cache and title:
            self.title_cache.set(cache_key, title)
        return title

    def _remember_fallback(self, cache_key: str, url: str) -> str:
        return self._remember(
            cache_key, hostname_without_www(url) or DEFAULT_TITLE, source="fallback"
        )


async def extract_title(
    url: str,
    settings: Settings | None = None,
    title_cache: TitleCache | None = None,
) -> str:
    """Return a display title for ``url`` using the process-wide title cache.

    Convenience wrapper around :meth:`TitleExtractor.extract_title`.
    """
    if title_cache is None:
        from link_archiver.resolver import get_default_state  # noqa: PLC0415

        title_cache = get_default_state().title_cache
    return await TitleExtractor(settings=settings, title_cache=title_cache).extract_title(url)
