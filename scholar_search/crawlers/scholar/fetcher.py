"""Google Scholar - 검색 URL 생성 및 페이지 fetch.

fetch 는 예외를 삼키지 않습니다:
- 2xx 가 아니면 HttpStatusException (Retry-After 원문 포함)
- 결과 지문 없이 차단 문구만 있으면 BlockedException
- 전송 실패는 http_client 가 올린 NetworkTimeout/NetworkConnection 예외 그대로
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from urllib.parse import urlencode

from scholar_search.core.config import Settings, settings as default_settings
from scholar_search.core.exceptions import BlockedException, HttpStatusException
from scholar_search.core.logging import logger
from scholar_search.crawlers.http_client import HttpResponse, HttpTransport
from scholar_search.crawlers.scholar.parsing import get_blocked_keyword, has_result_fingerprint
from scholar_search.schemas.scholar_schema import SearchOptions

SCHOLAR_PAGE_SIZE_CAP = 20


def build_search_url(
    base_url: str,
    query: str,
    options: Optional[SearchOptions] = None,
    *,
    now: Optional[datetime] = None,
) -> str:
    """검색 URL 생성

    Args:
        base_url: https://scholar.google.com
        query: 검색어 (trim 완료)
        options: 검색 옵션

    Returns:
        str: /scholar?q=... URL
    """
    options = options or SearchOptions()
    params: dict[str, str] = {"q": query, "hl": options.language}

    if options.year_start or options.year_end:
        params["as_ylo"] = str(options.year_start or 1900)
        params["as_yhi"] = str(options.year_end or (now or datetime.now()).year)

    if options.sort_by == "date":
        params["scisbd"] = "1"

    if not options.include_patents:
        params["as_vis"] = "1"

    params["num"] = str(min(options.max_results, SCHOLAR_PAGE_SIZE_CAP))

    return f"{base_url.rstrip('/')}/scholar?{urlencode(params)}"


class ScholarFetcher:
    """Google Scholar 페이지 fetch"""

    SOURCE = "google_scholar"

    def __init__(self, transport: HttpTransport, settings: Optional[Settings] = None) -> None:
        self.transport = transport
        self.settings = settings or default_settings

    @property
    def request_timeout_s(self) -> float:
        return self.settings.scholar_request_timeout_ms / 1000.0

    @property
    def probe_timeout_s(self) -> float:
        return self.settings.scholar_probe_timeout_ms / 1000.0

    def build_search_url(self, query: str, options: Optional[SearchOptions] = None) -> str:
        return build_search_url(self.settings.scholar_base_url, query, options)

    async def fetch_results_page(self, url: str) -> str:
        """검색 결과 HTML 반환

        Raises:
            HttpStatusException: 2xx 가 아닌 응답
            BlockedException: 봇 확인/캡차 페이지
            NetworkTimeoutException / NetworkConnectionException: 전송 실패
        """
        resp = await self.transport.get(url, timeout_s=self.request_timeout_s)
        self._raise_for_status(resp, url)

        body = resp.text or ""
        if body.strip() and not has_result_fingerprint(body):
            keyword = get_blocked_keyword(body)
            if keyword:
                logger.warning(f"[SCHOLAR] Block page detected (keyword='{keyword}')")
                raise BlockedException(self.SOURCE, {"keyword": keyword, "url": url})

        logger.debug(f"[SCHOLAR] Fetched {len(body)} chars from {url}")
        return body

    async def probe(self) -> HttpResponse:
        """HEAD 요청 한 번 (연결 확인용)"""
        return await self.transport.head(self.settings.scholar_base_url, timeout_s=self.probe_timeout_s)

    @staticmethod
    def _raise_for_status(resp: HttpResponse, url: str) -> None:
        if resp.ok:
            return
        logger.info(f"[SCHOLAR] HTTP {resp.status_code} for {url}")
        raise HttpStatusException(resp.status_code, url, resp.header("Retry-After"))
