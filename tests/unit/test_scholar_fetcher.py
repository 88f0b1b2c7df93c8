"""ScholarFetcher / 검색 URL 단위 테스트."""

from __future__ import annotations

from datetime import datetime
from urllib.parse import parse_qs, urlparse

import pytest

from scholar_search.core.config import Settings
from scholar_search.core.exceptions import BlockedException, HttpStatusException
from scholar_search.crawlers.http_client import HttpResponse
from scholar_search.crawlers.scholar.fetcher import ScholarFetcher, build_search_url
from scholar_search.schemas.scholar_schema import SearchOptions
from tests.fakes import FakeTransport, html_response
from tests.fixtures import BLOCK_PAGE, RESULTS_PAGE


def _params(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


class TestBuildSearchUrl:
    """검색 URL 파라미터"""

    def test_defaults(self) -> None:
        url = build_search_url("https://scholar.google.com/", "deep learning")

        assert url.startswith("https://scholar.google.com/scholar?")
        assert _params(url) == {"q": "deep learning", "hl": "en", "as_vis": "1", "num": "10"}

    def test_all_options(self) -> None:
        options = SearchOptions(
            max_results=50,
            year_start=2019,
            sort_by="date",
            include_patents=True,
            language="de",
        )

        params = _params(build_search_url("https://scholar.google.com", "graphs", options, now=datetime(2024, 5, 1)))

        assert params == {
            "q": "graphs",
            "hl": "de",
            "as_ylo": "2019",
            "as_yhi": "2024",
            "scisbd": "1",
            "num": "20",
        }

    def test_year_end_only(self) -> None:
        params = _params(build_search_url("https://scholar.google.com", "graphs", SearchOptions(year_end=2010)))

        assert params["as_ylo"] == "1900"
        assert params["as_yhi"] == "2010"


@pytest.mark.asyncio
class TestScholarFetcher:
    """결과 페이지 fetch"""

    async def test_returns_body_on_success(self) -> None:
        transport = FakeTransport([html_response(RESULTS_PAGE)])
        fetcher = ScholarFetcher(transport, Settings(scholar_request_timeout_ms=5000))

        body = await fetcher.fetch_results_page("https://scholar.google.com/scholar?q=x")

        assert body == RESULTS_PAGE
        assert transport.calls[0]["timeout_s"] == 5.0

    async def test_non_2xx_carries_retry_after(self) -> None:
        transport = FakeTransport([html_response("", status_code=429, headers={"retry-after": "30"})])
        fetcher = ScholarFetcher(transport)

        with pytest.raises(HttpStatusException) as exc_info:
            await fetcher.fetch_results_page("https://scholar.google.com/scholar?q=x")

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == "30"

    async def test_block_page_raises(self) -> None:
        fetcher = ScholarFetcher(FakeTransport([html_response(BLOCK_PAGE)]))

        with pytest.raises(BlockedException) as exc_info:
            await fetcher.fetch_results_page("https://scholar.google.com/scholar?q=x")

        assert exc_info.value.details["keyword"] == "unusual traffic"

    async def test_probe_sends_head(self) -> None:
        transport = FakeTransport(head=HttpResponse(200))
        fetcher = ScholarFetcher(transport, Settings(scholar_probe_timeout_ms=2000))

        resp = await fetcher.probe()

        assert resp.status_code == 200
        assert transport.calls == [{"method": "HEAD", "url": "https://scholar.google.com", "timeout_s": 2.0}]
