"""Engine Layer - resilience pipeline for the primary search source

This module provides:
- RateLimiter: sliding-window admission (per minute / per hour)
- ErrorClassifier: raw failure → ClassifiedError
- RetryEngine: bounded exponential backoff, then fallback
- CircuitBreaker: primary source health tracking
- FallbackOrchestrator: ordered alternate sources
- ScholarResult: standardized result format
"""

from .circuit_breaker import CircuitBreaker, CircuitBreakerMetrics, ServiceHealthState
from .errors import (
    ClassifiedError,
    ErrorClassifier,
    ErrorHandlingConfig,
    ErrorSeverity,
    ErrorType,
    ScholarSearchError,
)
from .fallback import FallbackConfig, FallbackOrchestrator, FallbackOutcome
from .rate_limiter import Admission, RateLimitConfig, RateLimiter, RateLimitStatus
from .result import Err, Ok, ResultSource, ScholarResult
from .retry import RetryDecision, RetryEngine, RetryOutcome

__all__ = [
    "RateLimiter",
    "RateLimitConfig",
    "RateLimitStatus",
    "Admission",
    "ErrorClassifier",
    "ErrorHandlingConfig",
    "ClassifiedError",
    "ErrorType",
    "ErrorSeverity",
    "RetryEngine",
    "RetryDecision",
    "RetryOutcome",
    "CircuitBreaker",
    "CircuitBreakerMetrics",
    "ServiceHealthState",
    "FallbackOrchestrator",
    "FallbackConfig",
    "FallbackOutcome",
    "ScholarResult",
    "ResultSource",
    "Ok",
    "Err",
    # Exceptions
    "ScholarSearchError",
]
