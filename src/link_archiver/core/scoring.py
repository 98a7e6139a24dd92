"""Relevance scoring and ranking of snapshot candidates.

Scores are additive and independent:

- ``SCORE_VALID_TIMESTAMP`` when the timestamp parses to a year between
  1990 and next calendar year inclusive;
- ``SCORE_RECENT_TIMESTAMP`` more when it is within the last two years;
- ``SCORE_SHORT_CODE`` when the snapshot path is one 3–10 character
  alphanumeric segment (``archive.ph/abcd1234``);
- ``SCORE_DATE_PATH`` when the first path segment is an 8–14 digit date
  followed by another segment (``archive.ph/20220101/example.com``), plus
  ``SCORE_DATE_PATH_HOST`` when that next segment contains the original
  hostname without ``www.``.

The constants were chosen empirically and are kept as named values so they
can be recalibrated in one place.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Callable, Iterable

from link_archiver.core.models import Snapshot
from link_archiver.core.url_utils import hostname_without_www, path_segments

logger = logging.getLogger(__name__)

SCORE_VALID_TIMESTAMP: int = 30
SCORE_RECENT_TIMESTAMP: int = 20
SCORE_SHORT_CODE: int = 25
SCORE_DATE_PATH: int = 20
SCORE_DATE_PATH_HOST: int = 15

MIN_TIMESTAMP_YEAR: int = 1990
RECENT_YEARS: int = 2

_SHORT_CODE_RE = re.compile(r"^[a-zA-Z0-9]{3,10}$")
_DATE_SEGMENT_RE = re.compile(r"^\d{8,14}$")
_DAY_MONTH_YEAR_RE = re.compile(
    r"\b(\d{1,2})\s+(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+(\d{4})\b",
    re.IGNORECASE,
)
_SLASH_DATE_RE = re.compile(r"\b(\d{2})/(\d{2})/(\d{4})\b")
_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}(?::\d{2})?)?")

Now = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp(timestamp: str | None) -> datetime | None:
    """Parse a service timestamp into an aware UTC datetime.

    Understands CDX stamps (``YYYYMMDDhhmmss`` and 8–13 digit prefixes),
    ISO 8601, RFC 2822 (``Mon, 02 Jun 2025 03:11:50 GMT``), ``DD Mon YYYY``
    and ``MM/DD/YYYY`` (``DD/MM/YYYY`` when the month is out of range).

    Returns:
        The parsed datetime, or ``None`` when nothing parses.
    """
    if not timestamp:
        return None
    text = " ".join(timestamp.split())
    if not text or text.lower() in {"unknown", "unknown date"}:
        return None

    if _DATE_SEGMENT_RE.match(text):
        try:
            return datetime.strptime(text.ljust(14, "0"), "%Y%m%d%H%M%S").replace(
                tzinfo=timezone.utc
            )
        except ValueError:
            return None

    # Offsets that push a date past year 1 or 9999 overflow on conversion.
    try:
        return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    except OverflowError:
        return None

    try:
        return _as_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        pass
    except OverflowError:
        return None

    match = _ISO_DATE_RE.search(text)
    if match:
        try:
            return _as_utc(datetime.fromisoformat(match.group(0)))
        except ValueError:
            pass
        except OverflowError:
            return None

    match = _DAY_MONTH_YEAR_RE.search(text)
    if match:
        day, month, year = match.groups()
        try:
            return datetime.strptime(
                f"{int(day):02d} {month[:3].title()} {year}", "%d %b %Y"
            ).replace(tzinfo=timezone.utc)
        except ValueError:
            pass

    match = _SLASH_DATE_RE.search(text)
    if match:
        for fmt in ("%m/%d/%Y", "%d/%m/%Y"):
            try:
                return datetime.strptime(match.group(0), fmt).replace(tzinfo=timezone.utc)
            except ValueError:
                continue

    logger.debug("scoring: unparseable timestamp %r", timestamp)
    return None


def _years_before(moment: datetime, years: int) -> datetime:
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        # 29 February in a non-leap target year.
        return moment.replace(year=moment.year - years, day=28)


class RelevanceScorer:
    """Rank snapshot candidates for an original URL.

    Args:
        now: Callable returning the current aware datetime.  Scoring is a
            pure function of its inputs and this reading.
    """

    def __init__(self, now: Now = _utc_now) -> None:
        self._now = now

    def is_valid_timestamp(self, timestamp: str | None, now: datetime | None = None) -> bool:
        parsed = parse_timestamp(timestamp)
        if parsed is None:
            return False
        current = now or self._now()
        return MIN_TIMESTAMP_YEAR <= parsed.year <= current.year + 1

    def score(self, snapshot: Snapshot, original_url: str, now: datetime | None = None) -> int:
        """Return the non-negative relevance score of ``snapshot``."""
        current = now or self._now()
        score = 0

        parsed = parse_timestamp(snapshot.timestamp)
        if parsed is not None and MIN_TIMESTAMP_YEAR <= parsed.year <= current.year + 1:
            score += SCORE_VALID_TIMESTAMP
            if parsed > _years_before(current, RECENT_YEARS):
                score += SCORE_RECENT_TIMESTAMP

        segments = path_segments(snapshot.url)
        if len(segments) == 1 and _SHORT_CODE_RE.match(segments[0]):
            score += SCORE_SHORT_CODE
        elif len(segments) >= 2 and _DATE_SEGMENT_RE.match(segments[0]):
            score += SCORE_DATE_PATH
            original_host = hostname_without_www(original_url)
            if original_host and original_host in segments[1]:
                score += SCORE_DATE_PATH_HOST

        return score

    def rank(self, snapshots: Iterable[Snapshot], original_url: str) -> list[Snapshot]:
        """Sort ``snapshots`` best first.

        Order: score descending, then parsed timestamp descending, with
        unparseable timestamps after every parseable one.  The sort is
        stable, so fully tied candidates keep their input order.
        """
        current = self._now()

        def sort_key(snapshot: Snapshot) -> tuple[int, int, float]:
            parsed = parse_timestamp(snapshot.timestamp)
            return (
                -self.score(snapshot, original_url, now=current),
                0 if parsed is not None else 1,
                -parsed.timestamp() if parsed is not None else 0.0,
            )

        return sorted(snapshots, key=sort_key)
