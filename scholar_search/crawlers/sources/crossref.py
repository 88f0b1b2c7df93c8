"""CrossRef REST API 대체 소스."""

from __future__ import annotations

from typing import Any, Optional

from selectolax.parser import HTMLParser

from scholar_search.crawlers.http_client import HttpTransport
from scholar_search.crawlers.scholar.parsing import clean_text
from scholar_search.crawlers.sources.base import AlternateSource
from scholar_search.engine.result import ResultSource, ScholarResult

_SELECT = "DOI,title,author,container-title,issued,URL,is-referenced-by-count,abstract"


def _first(values: Any) -> Optional[str]:
    if isinstance(values, list) and values:
        return str(values[0]).strip() or None
    return None


def _issued_year(item: dict[str, Any]) -> Optional[int]:
    for key in ("issued", "published-print", "published-online"):
        parts = (item.get(key) or {}).get("date-parts") or []
        if parts and parts[0] and parts[0][0]:
            return int(parts[0][0])
    return None


def _author_name(author: dict[str, Any]) -> str:
    if author.get("name"):
        return author["name"]
    return " ".join(p for p in (author.get("given"), author.get("family")) if p)


class CrossRefSource(AlternateSource):
    name = ResultSource.CROSSREF.value

    def __init__(
        self,
        transport: HttpTransport,
        base_url: str = "https://api.crossref.org",
        mailto: Optional[str] = None,
    ) -> None:
        super().__init__(transport, base_url)
        self.mailto = mailto

    async def search(self, query: str, *, max_results: int, timeout_s: float) -> list[ScholarResult]:
        params: dict[str, Any] = {"query": query, "rows": min(max_results, 100), "select": _SELECT}
        if self.mailto:
            # polite pool
            params["mailto"] = self.mailto

        data = await self._get_json(
            "/works", params=params, timeout_s=timeout_s, headers={"Accept": "application/json"}
        )
        message = (data.get("message") or {}) if isinstance(data, dict) else {}
        items = message.get("items") or []
        return [r for r in (self._to_result(i) for i in items) if r is not None]

    def _to_result(self, item: dict[str, Any]) -> Optional[ScholarResult]:
        title = clean_text(_first(item.get("title")))
        if not title:
            return None

        abstract = item.get("abstract")
        if abstract:
            # JATS 태그 제거
            abstract = clean_text(HTMLParser(abstract).text(separator=" ")) or None

        doi = item.get("DOI")
        return ScholarResult(
            title=title,
            authors=[n for n in (_author_name(a) for a in item.get("author") or []) if n][:10],
            venue=_first(item.get("container-title")),
            year=_issued_year(item),
            citation_count=item.get("is-referenced-by-count"),
            url=item.get("URL") or (f"https://doi.org/{doi}" if doi else None),
            doi=doi,
            abstract=abstract,
            source=self.name,
        )
