"""설정 관리 - 환경 변수 로드 및 검증"""
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Google Scholar 전송 계층
    scholar_base_url: str = "https://scholar.google.com"
    scholar_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    scholar_accept_language: str = "en-US,en;q=0.9"
    scholar_http_impersonate: str = "chrome110"
    scholar_http_max_clients: int = 10
    scholar_request_timeout_ms: int = 30000
    scholar_probe_timeout_ms: int = 10000

    # 요청 속도 제한 (슬라이딩 윈도우)
    rate_limit_requests_per_minute: int = 10
    rate_limit_requests_per_hour: int = 100
    # 0이면 한도 초과 시 즉시 rate_limit 에러
    rate_limit_max_admission_wait_ms: int = 0

    # 재시도 / 백오프
    # NOTE: retry_max_retries는 "총 시도 횟수"입니다 (첫 시도 포함).
    retry_max_retries: int = 3
    retry_base_delay_ms: int = 1000
    retry_max_delay_ms: int = 30000
    retry_backoff_multiplier: float = 2.0
    retry_jitter_enabled: bool = True
    retry_jitter_ratio: float = 0.3
    # 429/503도 retry_after만큼 기다렸다가 재시도할지 여부
    retry_throttled_errors: bool = False

    # 서버 힌트가 없을 때 기본 retry-after (초)
    rate_limit_default_retry_after_s: int = 60
    service_unavailable_retry_after_s: int = 300
    # 403 / 봇 확인 페이지 이후 로컬 차단 시간 (초)
    blocked_retry_after_s: int = 3600

    # 회로 차단기
    circuit_fail_threshold: int = 5
    circuit_cooldown_ms: int = 300000

    # 대체 소스 (Google Scholar 실패 시)
    fallback_enabled: bool = True
    fallback_sources: list[str] = ["semantic-scholar", "crossref", "arxiv"]
    fallback_timeout_ms: int = 10000
    fallback_max_attempts: int = 2
    fallback_total_budget_ms: Optional[int] = None

    semantic_scholar_base_url: str = "https://api.semanticscholar.org/graph/v1"
    semantic_scholar_api_key: Optional[str] = None
    crossref_base_url: str = "https://api.crossref.org"
    crossref_mailto: Optional[str] = None
    arxiv_base_url: str = "http://export.arxiv.org/api"

    # 에러 처리
    error_detailed_logging: bool = True

    # API
    api_title: str = "Scholar Search Service"
    api_version: str = "1.0.0"
    api_description: str = "Rate-limited, fault-tolerant Google Scholar search with alternate sources."

    # 로깅
    log_level: str = "INFO"

    @field_validator(
        "scholar_request_timeout_ms",
        "scholar_probe_timeout_ms",
        "fallback_timeout_ms",
    )
    @classmethod
    def validate_timeouts(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("rate_limit_requests_per_minute", "rate_limit_requests_per_hour")
    @classmethod
    def validate_rate_limits(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("rate limits must be positive")
        return v

    @field_validator("retry_max_retries", "circuit_fail_threshold")
    @classmethod
    def validate_at_least_one(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("retry_backoff_multiplier")
    @classmethod
    def validate_backoff_multiplier(cls, v: float) -> float:
        if v < 1.0:
            raise ValueError("retry_backoff_multiplier must be >= 1.0")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log_level: {v}")
        return v


settings = Settings()
