"""Error Classification - Typed, severity-tagged failure records

Maps raw failures (exceptions raised by the transport, HTTP status codes,
bot-check pages, unparseable bodies) onto a closed taxonomy that drives the
retry, circuit-breaker and fallback decisions.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Any, Callable, Optional

from scholar_search.core.config import Settings
from scholar_search.core.exceptions import (
    BlockedException,
    HttpStatusException,
    NetworkConnectionException,
    NetworkTimeoutException,
    ParsingException,
    ScholarClientException,
    ServiceUnavailableException,
)
from scholar_search.core.logging import logger


class ErrorType(str, Enum):
    """에러 유형"""

    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    BLOCKED = "blocked"
    SERVICE_UNAVAILABLE = "service_unavailable"
    PARSING = "parsing"
    UNKNOWN = "unknown"


class ErrorSeverity(str, Enum):
    """에러 심각도"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_SEVERITY = {
    ErrorType.NETWORK: ErrorSeverity.MEDIUM,
    ErrorType.TIMEOUT: ErrorSeverity.MEDIUM,
    ErrorType.RATE_LIMIT: ErrorSeverity.HIGH,
    ErrorType.BLOCKED: ErrorSeverity.CRITICAL,
    ErrorType.SERVICE_UNAVAILABLE: ErrorSeverity.HIGH,
    ErrorType.PARSING: ErrorSeverity.LOW,
    ErrorType.UNKNOWN: ErrorSeverity.MEDIUM,
}

_RETRYABLE = frozenset({ErrorType.NETWORK, ErrorType.TIMEOUT})

# 서버가 재시도 시점을 알려주는 유형 (기본적으로 1회 시도 후 중단)
THROTTLE_TYPES = frozenset({ErrorType.RATE_LIMIT, ErrorType.SERVICE_UNAVAILABLE})

DEFAULT_ERROR_MESSAGES: dict[ErrorType, str] = {
    ErrorType.RATE_LIMIT: "Search rate limit exceeded. Please wait before trying again.",
    ErrorType.NETWORK: "Network connection error. Please check your internet connection.",
    ErrorType.PARSING: "Unable to parse search results. The service format may have changed.",
    ErrorType.BLOCKED: "Access to Google Scholar is currently blocked. Please try again later.",
    ErrorType.TIMEOUT: "Search request timed out. Please try again.",
    ErrorType.SERVICE_UNAVAILABLE: "Google Scholar is temporarily unavailable. Please try again later.",
    ErrorType.UNKNOWN: "An unexpected error occurred while searching.",
}

_SERVICE_UNAVAILABLE_STATUSES = frozenset({500, 502, 503, 504})


@dataclass(frozen=True)
class ClassifiedError:
    """분류된 에러 (불변)

    Attributes:
        type: 에러 유형
        severity: 심각도
        message: 사용자용 메시지 (설정으로 재정의 가능)
        is_retryable: 로컬 재시도 대상 여부
        retry_after: 서버가 제안한 대기 시간 (초)
        status_code: HTTP 상태 코드 (있는 경우)
        detail: 원인 예외의 기술적 설명
    """

    type: ErrorType
    severity: ErrorSeverity
    message: str
    is_retryable: bool
    retry_after: Optional[int] = None
    status_code: Optional[int] = None
    detail: str = ""
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    @property
    def is_throttle(self) -> bool:
        """rate_limit / service_unavailable 여부"""
        return self.type in THROTTLE_TYPES

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "is_retryable": self.is_retryable,
            "retry_after": self.retry_after,
            "status_code": self.status_code,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class ErrorHandlingConfig:
    """에러 처리 설정

    Attributes:
        enable_detailed_logging: 분류 결과를 상세히 로깅할지 여부
        custom_error_messages: 에러 유형별 사용자 메시지 재정의 ({"rate_limit": "..."})
        error_reporting_callback: 분류 때마다 호출되는 외부 보고 훅
    """

    enable_detailed_logging: bool = True
    custom_error_messages: dict[str, str] = field(default_factory=dict)
    error_reporting_callback: Optional[Callable[[ClassifiedError], None]] = None

    def __post_init__(self) -> None:
        valid = {t.value for t in ErrorType}
        unknown = set(self.custom_error_messages) - valid
        if unknown:
            raise ValueError(f"Unknown error types in custom_error_messages: {sorted(unknown)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ErrorHandlingConfig":
        return cls(enable_detailed_logging=settings.error_detailed_logging)


def parse_retry_after(value: Optional[str], default: int, now: Optional[datetime] = None) -> int:
    """Retry-After 헤더 해석 (초)

    정수 초 또는 HTTP-date 형식을 지원합니다. 형식이 잘못되었거나 없으면 default.

    Args:
        value: 헤더 원문
        default: 기본값 (초)
        now: 기준 시각 (HTTP-date 계산용)

    Returns:
        int: 대기 시간 (초, 0 이상)
    """
    if value is None:
        return default
    text = str(value).strip()
    if not text:
        return default

    if text.isdigit():
        return int(text)

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return default
    if when is None:
        return default
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)

    reference = now or datetime.now(timezone.utc)
    return max(0, math.ceil((when - reference).total_seconds()))


class ErrorClassifier:
    """원시 실패 → ClassifiedError

    규칙 (우선순위 순):
    1. HTTP 429 → rate_limit (retry_after 기본 60초)
    2. HTTP 403 / 봇 차단 페이지 → blocked
    3. HTTP 5xx / 서비스 불가 → service_unavailable (retry_after 기본 300초)
    4. 타임아웃 → timeout (재시도 가능)
    5. 연결 실패 → network (재시도 가능)
    6. 빈/해석 불가 응답 → parsing
    7. 그 외 → unknown
    """

    def __init__(
        self,
        config: Optional[ErrorHandlingConfig] = None,
        *,
        default_rate_limit_retry_after_s: int = 60,
        default_unavailable_retry_after_s: int = 300,
    ) -> None:
        self.config = config or ErrorHandlingConfig()
        self.default_rate_limit_retry_after_s = default_rate_limit_retry_after_s
        self.default_unavailable_retry_after_s = default_unavailable_retry_after_s

    def classify(self, raw: BaseException) -> ClassifiedError:
        """예외를 분류합니다.

        Args:
            raw: 시도 중 발생한 예외

        Returns:
            ClassifiedError: 분류 결과 (사용자 메시지 재정의 반영)
        """
        if isinstance(raw, ScholarSearchError):
            return raw.error

        error_type, retry_after, status_code = self._match(raw)
        return self.create(
            error_type,
            detail=f"{type(raw).__name__}: {raw}",
            retry_after=retry_after,
            status_code=status_code,
            cause=raw,
        )

    def create(
        self,
        error_type: ErrorType,
        *,
        detail: str = "",
        message: Optional[str] = None,
        retry_after: Optional[int] = None,
        status_code: Optional[int] = None,
        cause: Optional[BaseException] = None,
    ) -> ClassifiedError:
        """예외 없이 직접 ClassifiedError 생성 (게이트 거절 등)

        Args:
            error_type: 에러 유형
            detail: 기술적 설명
            message: 사용자 메시지 (없으면 유형별 기본/재정의 메시지)
            retry_after: 권장 대기 시간 (초)
            status_code: HTTP 상태 코드
            cause: 원인 예외
        """
        classified = ClassifiedError(
            type=error_type,
            severity=_SEVERITY[error_type],
            message=message or self.message_for(error_type),
            is_retryable=error_type in _RETRYABLE,
            retry_after=retry_after,
            status_code=status_code,
            detail=detail,
            cause=cause,
        )
        self._report(classified)
        return classified

    def message_for(self, error_type: ErrorType) -> str:
        custom = self.config.custom_error_messages.get(error_type.value)
        return custom or DEFAULT_ERROR_MESSAGES[error_type]

    def _match(self, raw: BaseException) -> tuple[ErrorType, Optional[int], Optional[int]]:
        if isinstance(raw, HttpStatusException):
            status = raw.status_code
            if status == 429:
                retry_after = parse_retry_after(raw.retry_after, self.default_rate_limit_retry_after_s)
                return ErrorType.RATE_LIMIT, retry_after, status
            if status == 403:
                return ErrorType.BLOCKED, None, status
            if status in _SERVICE_UNAVAILABLE_STATUSES:
                retry_after = parse_retry_after(raw.retry_after, self.default_unavailable_retry_after_s)
                return ErrorType.SERVICE_UNAVAILABLE, retry_after, status
            return ErrorType.UNKNOWN, None, status

        if isinstance(raw, BlockedException):
            return ErrorType.BLOCKED, None, None

        if isinstance(raw, ServiceUnavailableException):
            return ErrorType.SERVICE_UNAVAILABLE, self.default_unavailable_retry_after_s, None

        # TimeoutError 는 OSError 하위 클래스이므로 network 보다 먼저 검사
        if isinstance(raw, (NetworkTimeoutException, asyncio.TimeoutError, TimeoutError)):
            return ErrorType.TIMEOUT, None, None

        if isinstance(raw, (NetworkConnectionException, ConnectionError, OSError)):
            return ErrorType.NETWORK, None, None

        if isinstance(raw, ParsingException):
            return ErrorType.PARSING, None, None

        return ErrorType.UNKNOWN, None, None

    def _report(self, classified: ClassifiedError) -> None:
        if self.config.enable_detailed_logging:
            logger.warning(
                f"[ERROR_CLASSIFIER] type={classified.type.value} "
                f"severity={classified.severity.value} retryable={classified.is_retryable} "
                f"retry_after={classified.retry_after} detail={classified.detail}"
            )

        callback = self.config.error_reporting_callback
        if callback is None:
            return
        try:
            callback(classified)
        except Exception as e:
            logger.error(f"[ERROR_CLASSIFIER] reporting callback failed: {type(e).__name__}: {e}")


class ScholarSearchError(ScholarClientException):
    """검색 최종 실패 (재시도/대체 소스 모두 소진)

    Attributes:
        error: 마지막 ClassifiedError
        attempts: 1차 소스에 대한 시도 횟수
        fallback_attempted: 대체 소스 시도 여부
    """

    def __init__(
        self,
        error: ClassifiedError,
        attempts: int,
        fallback_attempted: bool = False,
        details: Optional[dict[str, Any]] = None,
    ):
        self.error = error
        self.attempts = attempts
        self.fallback_attempted = fallback_attempted
        message = compose_failure_message(error, attempts, fallback_attempted)
        super().__init__(
            message,
            error.type.value.upper(),
            details or {
                "error": error.to_dict(),
                "attempts": attempts,
                "fallback_attempted": fallback_attempted,
            },
        )

    @property
    def type(self) -> ErrorType:
        return self.error.type

    @property
    def retry_after(self) -> Optional[int]:
        return self.error.retry_after

    @property
    def is_retryable(self) -> bool:
        return self.error.is_retryable


def compose_failure_message(error: ClassifiedError, attempts: int, fallback_attempted: bool) -> str:
    """사용자에게 노출할 최종 실패 메시지 조립"""
    if attempts == 0:
        # 게이트(요청 제한/회로 차단)에서 거절되어 네트워크 호출이 없었음
        message = f"Search was not attempted. {error.message}"
    else:
        noun = "attempt" if attempts == 1 else "attempts"
        message = f"Search failed after {attempts} {noun}. {error.message}"
    if error.retry_after:
        message += f" Please wait {error.retry_after} seconds before retrying."
    if fallback_attempted:
        message += " Alternative search sources were also attempted."
    return message
