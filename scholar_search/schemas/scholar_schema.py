"""Pydantic 스키마 정의 (검색 옵션 + API 요청/응답)"""
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class SearchOptions(BaseModel):
    """검색 옵션 (호출 단위)"""
    max_results: int = Field(10, ge=1, le=100, description="최대 결과 수 (Scholar 요청은 20개 상한)")
    year_start: Optional[int] = Field(None, ge=1900, le=2100, description="출판 연도 하한 (as_ylo)")
    year_end: Optional[int] = Field(None, ge=1900, le=2100, description="출판 연도 상한 (as_yhi)")
    sort_by: Literal["relevance", "date"] = Field("relevance", description="정렬 기준")
    include_patents: bool = Field(False, description="특허 포함 여부 (False면 as_vis=1)")
    language: str = Field("en", min_length=2, max_length=10, description="인터페이스 언어 (hl)")
    max_retries: Optional[int] = Field(None, ge=1, le=10, description="총 시도 횟수 재정의")
    enable_fallback: Optional[bool] = Field(None, description="대체 소스 사용 여부 재정의")

    @field_validator("language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        v = v.strip()
        if not v.replace("-", "").replace("_", "").isalpha():
            raise ValueError("language must be a locale code such as 'en' or 'pt-BR'")
        return v

    @model_validator(mode="after")
    def validate_year_range(self) -> "SearchOptions":
        if self.year_start and self.year_end and self.year_start > self.year_end:
            raise ValueError(f"year_start ({self.year_start}) must be <= year_end ({self.year_end})")
        return self


class ScholarSearchRequest(BaseModel):
    """검색 요청"""
    query: str = Field(..., max_length=500, description="검색어")
    options: Optional[SearchOptions] = Field(None, description="검색 옵션")


class ScholarResultData(BaseModel):
    """논문 결과"""
    title: str
    authors: list[str] = Field(default_factory=list)
    metadata: str = Field("", description="저자/저널/연도 요약")
    venue: Optional[str] = None
    year: Optional[int] = None
    citation_count: Optional[int] = None
    url: Optional[str] = None
    doi: Optional[str] = None
    abstract: Optional[str] = None
    confidence: float = Field(..., ge=0.0, le=1.0)
    source: str = Field(..., description="google_scholar | google_scholar_heuristic | semantic-scholar | crossref | arxiv")


class ScholarSearchResponse(BaseModel):
    """검색 응답"""
    status: str = Field(..., description="success or fail")
    data: list[ScholarResultData] = Field(default_factory=list)
    message: str = Field(..., description="응답 메시지")
    error_code: Optional[str] = Field(None, description="에러 코드 (fail 시)")
    error_type: Optional[str] = Field(None, description="ClassifiedError.type (fail 시)")
    retry_after: Optional[int] = Field(None, description="권장 대기 시간 (초)")
    attempts: Optional[int] = Field(None, description="1차 소스 시도 횟수")
    fallback_attempted: Optional[bool] = Field(None, description="대체 소스 시도 여부")
    elapsed_ms: Optional[float] = Field(None, ge=0)


class RateLimitStatusResponse(BaseModel):
    """요청 속도 제한 상태"""
    requests_in_last_minute: int
    remaining_minute_requests: int
    requests_in_last_hour: int
    remaining_hourly_requests: int
    is_blocked: bool
    block_until: Optional[float] = None


class ClientStatusResponse(BaseModel):
    """클라이언트 상태"""
    rate_limit_status: RateLimitStatusResponse
    service_status: dict[str, Any]
    error_handling: dict[str, Any]


class ConnectionProbeResponse(BaseModel):
    """연결 확인 결과"""
    success: bool
    response_time_ms: float
    status_code: Optional[int] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str
    scholar: Optional[ConnectionProbeResponse] = None
