"""Tests for the GhostArchive snapshot provider.

Covers:
- search term: bare URL without scheme and trailing slash, or the video ID
- search results page → snapshots (relative, absolute and bare-ID hrefs)
- link text kept as title unless it is itself a URL
- empty timestamp cell → "unknown", whitespace collapsed
- video search keeps only rows mentioning the video ID
- direct /varchive/ fetch: 200 → one candidate with scraped timestamp
- direct fetch 404 / 503 / transport error → search fallback still runs
- YouTube link without an extractable ID → [] and no request at all
- search 403 (body kept), 429, 503, 504 → ArchiveServiceError
- other non-200 search statuses → []
- submission_url() percent-encodes the original URL

These tests run without a network connection.
"""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest
import respx

from link_archiver.core.exceptions import ArchiveServiceError
from link_archiver.providers.ghostarchive._parser import (
    absolutize_result_href,
    extract_capture_timestamp,
    parse_search_results,
)
from link_archiver.providers.ghostarchive.config import GA_SEARCH_URL
from link_archiver.providers.ghostarchive.provider import (
    GhostArchiveProvider,
    search_term_for,
)

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures" / "ghostarchive"

VIDEO_ID = "dQw4w9WgXcQ"
VIDEO_URL = f"https://www.youtube.com/watch?v={VIDEO_ID}"
VARCHIVE_URL = f"https://ghostarchive.org/varchive/{VIDEO_ID}"


def _fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def provider(settings) -> GhostArchiveProvider:
    return GhostArchiveProvider(settings=settings)


class TestSearchTerm:
    def test_strips_scheme_and_trailing_slash(self) -> None:
        assert search_term_for("https://example.com/news/") == "example.com/news"
        assert search_term_for("http://example.com") == "example.com"

    def test_video_id_wins(self) -> None:
        assert search_term_for(VIDEO_URL, VIDEO_ID) == VIDEO_ID


class TestAbsolutizeHref:
    @pytest.mark.parametrize(
        ("href", "video_id", "expected"),
        [
            ("/archive/AbC12", None, "https://ghostarchive.org/archive/AbC12"),
            ("https://ghostarchive.org/archive/AbC12", None, "https://ghostarchive.org/archive/AbC12"),
            ("AbC12", None, "https://ghostarchive.org/archive/AbC12"),
            ("archive/AbC12", None, "https://ghostarchive.org/archive/AbC12"),
            ("varchive/xyz", None, "https://ghostarchive.org/varchive/xyz"),
            (VIDEO_ID, VIDEO_ID, VARCHIVE_URL),
        ],
    )
    def test_forms(self, href: str, video_id: str | None, expected: str) -> None:
        assert absolutize_result_href(href, video_id) == expected


class TestParseSearchResults:
    def test_fixture(self) -> None:
        snapshots = parse_search_results(_fixture("search_results.html"))

        assert [s.url for s in snapshots] == [
            "https://ghostarchive.org/archive/AbC12",
            "https://ghostarchive.org/archive/XyZ98",
            "https://ghostarchive.org/archive/Qw3rT",
        ]
        assert snapshots[0].timestamp == "Mon, 02 Jun 2025 03:11:50 GMT"
        assert snapshots[0].title == "Example Domain"
        assert snapshots[1].title is None
        assert snapshots[2].timestamp == "unknown"

    def test_video_filter(self) -> None:
        snapshots = parse_search_results(_fixture("video_search_results.html"), VIDEO_ID)
        assert [s.url for s in snapshots] == [VARCHIVE_URL]

    def test_no_rows(self) -> None:
        assert parse_search_results("<html><body>No results</body></html>") == []

    def test_foreign_links_skipped(self) -> None:
        html = (
            '<table><tr class="result-row"><td><a href="https://evil.example/x">x</a></td>'
            "<td>Mon, 02 Jun 2025 03:11:50 GMT</td></tr></table>"
        )
        assert parse_search_results(html) == []


class TestExtractCaptureTimestamp:
    def test_selector(self) -> None:
        assert extract_capture_timestamp(_fixture("video_page.html")) == (
            "Sat, 10 Aug 2024 12:30:00 GMT"
        )

    def test_datetime_attribute(self) -> None:
        html = '<body><time datetime="2024-08-10T12:30:00Z">10 August</time></body>'
        assert extract_capture_timestamp(html) == "2024-08-10T12:30:00Z"

    def test_meta_content(self) -> None:
        html = (
            '<head><meta property="article:published_time" '
            'content="2023-02-01T00:00:00Z"></head><body></body>'
        )
        assert extract_capture_timestamp(html) == "2023-02-01T00:00:00Z"

    def test_body_text_regex(self) -> None:
        html = "<body><p>Saved Tue, 14 Feb 2023 18:00:00 GMT by a user</p></body>"
        assert extract_capture_timestamp(html) == "Tue, 14 Feb 2023 18:00:00 GMT"

    def test_unknown(self) -> None:
        assert extract_capture_timestamp("<body><p>nothing</p></body>") == "unknown"


@pytest.mark.asyncio
class TestFetchCandidatesPages:
    async def test_search_for_plain_url(self, provider: GhostArchiveProvider) -> None:
        with respx.mock:
            route = respx.get(GA_SEARCH_URL).mock(
                return_value=httpx.Response(200, text=_fixture("search_results.html"))
            )
            snapshots = await provider.fetch_candidates("https://example.com/")

        assert route.calls.last.request.url.params["term"] == "example.com"
        assert len(snapshots) == 3

    @pytest.mark.parametrize("status", [403, 429, 503, 504])
    async def test_fatal_search_statuses(self, provider: GhostArchiveProvider, status: int) -> None:
        with respx.mock:
            respx.get(GA_SEARCH_URL).mock(
                return_value=httpx.Response(status, text=_fixture("captcha.html"))
            )
            with pytest.raises(ArchiveServiceError) as exc_info:
                await provider.fetch_candidates("https://example.com")

        assert exc_info.value.status_code == status
        assert exc_info.value.service == "ghostarchive.org"
        assert "cf-chl" in (exc_info.value.body or "")

    @pytest.mark.parametrize("status", [301, 404, 500])
    async def test_other_statuses_yield_nothing(
        self, provider: GhostArchiveProvider, status: int
    ) -> None:
        with respx.mock:
            respx.get(GA_SEARCH_URL).mock(return_value=httpx.Response(status))
            assert await provider.fetch_candidates("https://example.com") == []

    async def test_search_transport_error(self, provider: GhostArchiveProvider) -> None:
        with respx.mock:
            respx.get(GA_SEARCH_URL).mock(side_effect=httpx.ReadTimeout("slow"))
            with pytest.raises(ArchiveServiceError) as exc_info:
                await provider.fetch_candidates("https://example.com")

        assert isinstance(exc_info.value.__cause__, httpx.ReadTimeout)


@pytest.mark.asyncio
class TestFetchCandidatesVideos:
    async def test_direct_capture_hit(self, provider: GhostArchiveProvider) -> None:
        with respx.mock(assert_all_called=False) as mock:
            mock.get(VARCHIVE_URL).mock(
                return_value=httpx.Response(200, text=_fixture("video_page.html"))
            )
            search = mock.get(GA_SEARCH_URL)
            snapshots = await provider.fetch_candidates(VIDEO_URL)

        assert len(snapshots) == 1
        assert snapshots[0].url == VARCHIVE_URL
        assert snapshots[0].timestamp == "Sat, 10 Aug 2024 12:30:00 GMT"
        assert search.called is False

    @pytest.mark.parametrize(
        "direct_response",
        [
            httpx.Response(404),
            httpx.Response(503),
            httpx.ConnectError("refused"),
        ],
    )
    async def test_direct_miss_falls_back_to_search(
        self, provider: GhostArchiveProvider, direct_response
    ) -> None:
        with respx.mock:
            if isinstance(direct_response, Exception):
                respx.get(VARCHIVE_URL).mock(side_effect=direct_response)
            else:
                respx.get(VARCHIVE_URL).mock(return_value=direct_response)
            search = respx.get(GA_SEARCH_URL).mock(
                return_value=httpx.Response(200, text=_fixture("video_search_results.html"))
            )
            snapshots = await provider.fetch_candidates(VIDEO_URL)

        assert search.calls.last.request.url.params["term"] == VIDEO_ID
        assert [s.url for s in snapshots] == [VARCHIVE_URL]

    async def test_youtube_link_without_id(self, provider: GhostArchiveProvider) -> None:
        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(GA_SEARCH_URL)
            assert await provider.fetch_candidates("https://www.youtube.com/@channel") == []
        assert route.called is False


class TestSubmissionUrl:
    def test_percent_encodes(self, provider: GhostArchiveProvider) -> None:
        assert (
            provider.submission_url("https://example.com/a?b=1")
            == "https://ghostarchive.org/archive/https%3A%2F%2Fexample.com%2Fa%3Fb%3D1"
        )
