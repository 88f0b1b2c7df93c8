"""Semantic Scholar Graph API 대체 소스."""

from __future__ import annotations

from typing import Any, Optional

from scholar_search.crawlers.http_client import HttpTransport
from scholar_search.crawlers.sources.base import AlternateSource
from scholar_search.engine.result import ResultSource, ScholarResult

_FIELDS = "title,authors,venue,journal,year,abstract,citationCount,url,externalIds"


class SemanticScholarSource(AlternateSource):
    name = ResultSource.SEMANTIC_SCHOLAR.value

    def __init__(
        self,
        transport: HttpTransport,
        base_url: str = "https://api.semanticscholar.org/graph/v1",
        api_key: Optional[str] = None,
    ) -> None:
        super().__init__(transport, base_url)
        self.api_key = api_key

    async def search(self, query: str, *, max_results: int, timeout_s: float) -> list[ScholarResult]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key

        data = await self._get_json(
            "/paper/search",
            params={"query": query, "limit": min(max_results, 100), "fields": _FIELDS},
            timeout_s=timeout_s,
            headers=headers,
        )
        papers = (data.get("data") or []) if isinstance(data, dict) else []
        return [r for r in (self._to_result(p) for p in papers) if r is not None]

    def _to_result(self, paper: dict[str, Any]) -> Optional[ScholarResult]:
        title = (paper.get("title") or "").strip()
        if not title:
            return None

        journal = paper.get("journal") or {}
        venue = (journal.get("name") if isinstance(journal, dict) else None) or paper.get("venue") or None
        external_ids = paper.get("externalIds") or {}

        return ScholarResult(
            title=title,
            authors=[a["name"] for a in paper.get("authors") or [] if a.get("name")][:10],
            venue=venue,
            year=paper.get("year"),
            citation_count=paper.get("citationCount"),
            url=paper.get("url"),
            doi=external_ids.get("DOI"),
            abstract=paper.get("abstract"),
            source=self.name,
        )
