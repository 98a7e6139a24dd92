"""URL helpers shared by the resolver, providers and title extractor.

Provides:
- :func:`normalize_url`: cache-key form of an original URL.
- :func:`hostname_without_www`: bare host used by scoring and fallbacks.
- :func:`is_archive_url`: whether a URL points at a recognised archive.
- :func:`is_valid_archive_snapshot`: stricter shape check for candidates.
- :func:`extract_video_id`: YouTube video ID, when the URL is a video link.
"""

from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

from link_archiver.core.exceptions import InvalidUrlError

ARCHIVE_DOMAINS: tuple[str, ...] = (
    "web.archive.org",
    "ghostarchive.org",
    "archive.ph",
    "archive.today",
    "archive.li",
    "archive.md",
    "archive.is",
    "archive.vn",
)
"""Hosts whose URLs are accepted as snapshot URLs."""

_SHORT_CODE_RE = re.compile(r"^[a-zA-Z0-9]{3,10}$")
_DATE_CODE_RE = re.compile(r"^\d{8,14}$")

#: Leading path segments used by services whose snapshot URLs are not
#: short codes (``/web/<ts>/...``, ``/archive/<id>``, ``/varchive/<id>``).
_SNAPSHOT_PREFIXES: frozenset[str] = frozenset({"web", "archive", "varchive"})

_VIDEO_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[?&]v=([^&#]+)"),
    re.compile(r"youtu\.be/([^?&#/]+)"),
    re.compile(r"youtube\.com/embed/([^?&#/]+)"),
    re.compile(r"youtube\.com/v/([^?&#/]+)"),
)


def normalize_url(url: str) -> str:
    """Return the cache-key form of an absolute http(s) URL.

    Lowercases scheme and host, strips a trailing slash from non-root paths,
    keeps the query string and drops the fragment.

    Raises:
        InvalidUrlError: If ``url`` is not an absolute http(s) URL.
    """
    parts = urlsplit((url or "").strip())
    scheme = parts.scheme.lower()
    if scheme not in {"http", "https"} or not parts.netloc:
        raise InvalidUrlError(url)
    path = parts.path
    if len(path) > 1 and path.endswith("/"):
        path = path.rstrip("/") or "/"
    return urlunsplit((scheme, parts.netloc.lower(), path, parts.query, ""))


def hostname_without_www(url: str) -> str:
    """Return the lowercased hostname of ``url`` without a leading ``www.``.

    Returns an empty string when the URL has no parseable host.
    """
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""
    return host[4:] if host.startswith("www.") else host


def is_archive_url(url: str) -> bool:
    """Return ``True`` when ``url`` is hosted on a recognised archive domain."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return False
    if not host:
        return False
    return any(host == domain or host.endswith("." + domain) for domain in ARCHIVE_DOMAINS)


def path_segments(url: str) -> list[str]:
    """Return the non-empty path segments of ``url``."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return []
    return [segment for segment in path.split("/") if segment]


def is_valid_archive_snapshot(url: str, original_url: str) -> bool:
    """Return ``True`` if ``url`` looks like a real snapshot of ``original_url``.

    Rejects non-archive hosts, search/listing URLs that merely embed the
    original (``archive.ph/https://example.com/*``), and paths whose first
    segment is neither a short code, a date stamp, nor a known snapshot
    prefix.
    """
    if not is_archive_url(url):
        return False

    segments = path_segments(url)
    if not segments:
        return False
    first = segments[0]

    original_host = hostname_without_www(original_url)
    is_wayback_capture = first == "web" and len(segments) > 1 and segments[1].isdigit()
    if "/http" in url and original_host and original_host in url and not is_wayback_capture:
        return False

    return bool(
        _SHORT_CODE_RE.match(first)
        or _DATE_CODE_RE.match(first)
        or first in _SNAPSHOT_PREFIXES
    )


def is_youtube_url(url: str) -> bool:
    """Return ``True`` for youtube.com / youtu.be links."""
    return "youtube.com" in url or "youtu.be" in url


def extract_video_id(url: str) -> str | None:
    """Extract a YouTube video ID from ``url``, or ``None``.

    Only YouTube links are considered; the query-string ``v=`` pattern would
    otherwise match unrelated sites.
    """
    if not is_youtube_url(url):
        return None
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match and match.group(1):
            return match.group(1)
    return None
