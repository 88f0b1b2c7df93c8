"""Scholar Result - Standardized Result Format

Provides the result record shared by every extraction path (primary parser,
heuristic parser, alternate sources) and the tagged attempt outcome consumed
by the retry engine.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from scholar_search.engine.errors import ClassifiedError


class ResultSource(str, Enum):
    """결과 출처

    confidence 와 함께 결과가 어떤 경로에서 왔는지 나타냅니다.
    """

    GOOGLE_SCHOLAR = "google_scholar"  # 1차 구조화 파서
    GOOGLE_SCHOLAR_HEURISTIC = "google_scholar_heuristic"  # 링크 텍스트 휴리스틱
    SEMANTIC_SCHOLAR = "semantic-scholar"
    CROSSREF = "crossref"
    ARXIV = "arxiv"


PRIMARY_CONFIDENCE = 1.0
HEURISTIC_CONFIDENCE = 0.2
FALLBACK_CONFIDENCE = 0.3


@dataclass
class ScholarResult:
    """검색 결과 표준 포맷

    Attributes:
        title: 논문 제목
        authors: 저자 목록 (최대 10명)
        venue: 저널/학회명
        year: 출판 연도
        citation_count: 피인용 수
        url: 원문 URL
        doi: DOI (10.xxxx/...)
        abstract: 초록 스니펫
        confidence: 추출 신뢰도 (0.0~1.0)
        source: 결과 출처
    """

    title: str
    authors: list[str] = field(default_factory=list)
    venue: Optional[str] = None
    year: Optional[int] = None
    citation_count: Optional[int] = None
    url: Optional[str] = None
    doi: Optional[str] = None
    abstract: Optional[str] = None
    confidence: float = PRIMARY_CONFIDENCE
    source: str = ResultSource.GOOGLE_SCHOLAR.value

    def __post_init__(self) -> None:
        # 범위를 벗어난 신뢰도는 잘라냅니다.
        self.confidence = min(1.0, max(0.0, float(self.confidence)))

    @property
    def metadata(self) -> str:
        """저자/저널/연도 요약 문자열 ("A, B - Venue, 2020")"""
        parts: list[str] = []
        if self.authors:
            parts.append(", ".join(self.authors))
        tail = ", ".join(str(p) for p in (self.venue, self.year) if p)
        if tail:
            parts.append(tail)
        return " - ".join(parts)

    def with_source(self, source: str, confidence: float) -> "ScholarResult":
        """출처와 신뢰도를 바꾼 사본 반환"""
        return replace(self, source=source, confidence=confidence)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["metadata"] = self.metadata
        return data


@dataclass(frozen=True)
class Ok:
    """시도 성공 - 결과 목록 (빈 목록도 성공)"""

    results: list[ScholarResult]

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """시도 실패 - 분류된 에러"""

    error: "ClassifiedError"

    @property
    def is_ok(self) -> bool:
        return False


AttemptOutcome = Union[Ok, Err]
