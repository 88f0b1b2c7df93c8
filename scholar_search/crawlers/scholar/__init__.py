"""Google Scholar 결과 페이지 요청 / 파싱.

공개 API는 이 파일에서만 export합니다.
"""

from .fetcher import ScholarFetcher, build_search_url
from .parsing import (
    HeuristicLinkParser,
    ParseResult,
    ParserChain,
    ParseStatus,
    PrimaryBlockParser,
)

__all__ = [
    "ScholarFetcher",
    "build_search_url",
    "ParserChain",
    "ParseResult",
    "ParseStatus",
    "PrimaryBlockParser",
    "HeuristicLinkParser",
]
