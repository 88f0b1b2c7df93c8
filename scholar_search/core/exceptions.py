"""커스텀 예외 정의 (Structured Exception Hierarchy)"""
from typing import Any, Optional


class ScholarClientException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 크롤러(전송/파싱) 관련 예외
class CrawlerException(ScholarClientException):
    """크롤러 관련 예외의 기본 클래스"""
    def __init__(self, message: str, error_code: str = "CRAWLER_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CRAWLER_ERROR", details)


class HttpStatusException(CrawlerException):
    """2xx가 아닌 HTTP 응답

    Retry-After 헤더 원문을 그대로 보관합니다. 해석은 ErrorClassifier 몫입니다.
    """
    def __init__(
        self,
        status_code: int,
        url: str = "",
        retry_after: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.url = url
        self.retry_after = retry_after
        message = f"HTTP {status_code} from {url or 'upstream'}"
        super().__init__(message, "HTTP_STATUS",
                        details or {"status_code": status_code, "url": url, "retry_after": retry_after})


class NetworkTimeoutException(CrawlerException):
    """네트워크 타임아웃 예외"""
    def __init__(self, operation: str, timeout_ms: int, details: Optional[dict[str, Any]] = None):
        message = f"Network timeout during '{operation}' after {timeout_ms}ms"
        super().__init__(message, "NETWORK_TIMEOUT",
                        details or {"operation": operation, "timeout_ms": timeout_ms})


class NetworkConnectionException(CrawlerException):
    """연결 실패 (DNS, TLS, 연결 거부 등)"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Connection failed: {reason}"
        super().__init__(message, "NETWORK_ERROR", details or {"reason": reason})


class ServiceUnavailableException(CrawlerException):
    """전송 계층에서 서비스를 사용할 수 없다고 판단한 경우"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Service unavailable: {reason}"
        super().__init__(message, "SERVICE_UNAVAILABLE", details or {"reason": reason})


class ParsingException(CrawlerException):
    """HTML/데이터 파싱 오류"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Failed to parse response: {reason}"
        super().__init__(message, "PARSING_ERROR", details or {"reason": reason})


class BlockedException(CrawlerException):
    """봇 감지/차단 예외"""
    def __init__(self, source: str, details: Optional[dict[str, Any]] = None):
        message = f"Request blocked by {source} (possible bot detection)"
        super().__init__(message, "BLOCKED", details or {"source": source})


class FallbackExhaustedException(ScholarClientException):
    """모든 대체 소스가 실패했거나 대체 검색이 비활성화된 경우"""
    def __init__(self, tried_sources: list[str], errors: Optional[dict[str, str]] = None):
        self.tried_sources = list(tried_sources)
        self.errors = dict(errors or {})
        if self.tried_sources:
            message = f"All alternate sources failed: {', '.join(self.tried_sources)}"
        else:
            message = "No alternate sources were attempted"
        super().__init__(message, "FALLBACK_EXHAUSTED",
                        {"tried_sources": self.tried_sources, "errors": self.errors})


# 유효성 검증 관련 예외
class ValidationException(ScholarClientException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                        details or {"field": field, "reason": reason})


class InvalidQueryException(ValidationException):
    """유효하지 않은 검색어"""
    def __init__(self, reason: str, details: Optional[dict[str, Any]] = None):
        super().__init__("query", reason, details)
