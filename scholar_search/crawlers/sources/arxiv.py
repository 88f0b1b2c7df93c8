"""arXiv Atom API 대체 소스."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from scholar_search.core.exceptions import ParsingException
from scholar_search.crawlers.http_client import HttpTransport
from scholar_search.crawlers.scholar.parsing import clean_text
from scholar_search.crawlers.sources.base import AlternateSource
from scholar_search.engine.result import ResultSource, ScholarResult

_NS = {
    "atom": "http://www.w3.org/2005/Atom",
    "arxiv": "http://arxiv.org/schemas/atom",
}


class ArxivSource(AlternateSource):
    name = ResultSource.ARXIV.value

    def __init__(self, transport: HttpTransport, base_url: str = "http://export.arxiv.org/api") -> None:
        super().__init__(transport, base_url)

    async def search(self, query: str, *, max_results: int, timeout_s: float) -> list[ScholarResult]:
        resp = await self._get(
            "/query",
            params={
                "search_query": f"all:{query}",
                "start": 0,
                "max_results": min(max_results, 100),
                "sortBy": "relevance",
            },
            timeout_s=timeout_s,
        )
        return self.parse_feed(resp.text)

    def parse_feed(self, xml_text: str) -> list[ScholarResult]:
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise ParsingException("arxiv returned malformed Atom feed", {"source": self.name}) from e

        results = []
        for entry in root.findall("atom:entry", _NS):
            result = self._to_result(entry)
            if result is not None:
                results.append(result)
        return results

    def _to_result(self, entry: ET.Element) -> Optional[ScholarResult]:
        title = clean_text(entry.findtext("atom:title", default="", namespaces=_NS))
        if not title:
            return None

        published = entry.findtext("atom:published", default="", namespaces=_NS)
        year = int(published[:4]) if published[:4].isdigit() else None

        return ScholarResult(
            title=title,
            authors=[
                clean_text(a.findtext("atom:name", default="", namespaces=_NS))
                for a in entry.findall("atom:author", _NS)
            ][:10],
            venue=clean_text(entry.findtext("arxiv:journal_ref", default="", namespaces=_NS)) or "arXiv",
            year=year,
            url=entry.findtext("atom:id", default="", namespaces=_NS).strip() or None,
            doi=(entry.findtext("arxiv:doi", default="", namespaces=_NS).strip() or None),
            abstract=clean_text(entry.findtext("atom:summary", default="", namespaces=_NS)) or None,
            source=self.name,
        )
