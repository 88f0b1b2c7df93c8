"""Alternate scholarly sources used when Google Scholar cannot answer.

공개 API는 이 파일에서만 export합니다.
"""

from typing import Optional

from scholar_search.core.config import Settings, settings as default_settings
from scholar_search.crawlers.http_client import HttpTransport

from .arxiv import ArxivSource
from .base import AlternateSource
from .crossref import CrossRefSource
from .semantic_scholar import SemanticScholarSource


def build_default_sources(
    transport: HttpTransport,
    settings: Optional[Settings] = None,
) -> dict[str, AlternateSource]:
    """소스 ID → 구현 레지스트리"""
    settings = settings or default_settings
    sources: list[AlternateSource] = [
        SemanticScholarSource(
            transport,
            base_url=settings.semantic_scholar_base_url,
            api_key=settings.semantic_scholar_api_key,
        ),
        CrossRefSource(transport, base_url=settings.crossref_base_url, mailto=settings.crossref_mailto),
        ArxivSource(transport, base_url=settings.arxiv_base_url),
    ]
    return {s.name: s for s in sources}


__all__ = [
    "AlternateSource",
    "ArxivSource",
    "CrossRefSource",
    "SemanticScholarSource",
    "build_default_sources",
]
