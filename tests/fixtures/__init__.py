"""테스트 자산(데이터) 레이어

규칙:
- 로직 없음 (단순 str/dict)
- 엔진/네트워크 의존 없음
"""

from .scholar_pages import (
    BLOCK_PAGE,
    HEURISTIC_PAGE,
    NO_RESULTS_PAGE,
    PARTIAL_PAGE,
    RESULTS_PAGE,
    UNPARSEABLE_PAGE,
)
from .source_payloads import ARXIV_FEED, CROSSREF_PAYLOAD, SEMANTIC_SCHOLAR_PAYLOAD

__all__ = [
    "RESULTS_PAGE",
    "PARTIAL_PAGE",
    "HEURISTIC_PAGE",
    "NO_RESULTS_PAGE",
    "BLOCK_PAGE",
    "UNPARSEABLE_PAGE",
    "SEMANTIC_SCHOLAR_PAYLOAD",
    "CROSSREF_PAYLOAD",
    "ARXIV_FEED",
]
