"""Circuit Breaker + Service health tracking for the primary source."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from scholar_search.core.logging import logger


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


@dataclass
class CircuitBreakerMetrics:
    """1차 소스 / 대체 소스 메트릭 추적."""

    primary_hits: int = 0
    primary_misses: int = 0
    fallback_hits: int = 0
    fallback_failures: int = 0

    def record_primary_hit(self) -> None:
        self.primary_hits += 1

    def record_primary_miss(self) -> None:
        self.primary_misses += 1

    def record_fallback_hit(self) -> None:
        self.fallback_hits += 1

    def record_fallback_failure(self) -> None:
        self.fallback_failures += 1

    @property
    def primary_success_rate(self) -> float:
        """1차 소스 성공률 (0.0~1.0)."""
        total = self.primary_hits + self.primary_misses
        return self.primary_hits / total if total > 0 else 0.0

    @property
    def fallback_success_rate(self) -> float:
        """대체 소스 성공률 (0.0~1.0)."""
        total = self.fallback_hits + self.fallback_failures
        return self.fallback_hits / total if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "primary_hits": self.primary_hits,
            "primary_misses": self.primary_misses,
            "primary_success_rate": round(self.primary_success_rate, 4),
            "fallback_hits": self.fallback_hits,
            "fallback_failures": self.fallback_failures,
            "fallback_success_rate": round(self.fallback_success_rate, 4),
        }

    def __repr__(self) -> str:
        return (
            f"Metrics(primary: {self.primary_hits}H/{self.primary_misses}M={self.primary_success_rate:.1%}, "
            f"fallback: {self.fallback_hits}H/{self.fallback_failures}F={self.fallback_success_rate:.1%})"
        )


@dataclass(frozen=True)
class ServiceHealthState:
    """서비스 상태 스냅샷"""

    is_available: bool
    consecutive_failures: int
    last_successful_request: float  # epoch ms
    time_since_last_success_ms: float


class CircuitBreaker:
    """1차 소스 Circuit Breaker.

    - 연속 실패가 임계값 이상 **그리고** 마지막 성공 이후 cooldown 경과 → OPEN
    - 성공 직후의 짧은 실패 연속으로는 열리지 않음
    - 다음 성공 시 즉시 CLOSED
    - reset()으로 강제 CLOSED
    """

    def __init__(
        self,
        fail_threshold: int = 5,
        cooldown_ms: float = 300_000,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """초기화.

        Args:
            fail_threshold: 회로 개방 임계값 (연속 실패 횟수)
            cooldown_ms: 마지막 성공 이후 경과해야 하는 시간 (ms)
            clock: 현재 시각(ms) 공급자
        """
        if fail_threshold < 1:
            raise ValueError("fail_threshold must be >= 1")
        if cooldown_ms < 0:
            raise ValueError("cooldown_ms must be >= 0")

        self.fail_threshold = fail_threshold
        self.cooldown_ms = cooldown_ms
        self._clock = clock or _wall_clock_ms

        self._consecutive_failures = 0
        self._last_success: float = self._clock()
        self._was_open = False
        self.metrics = CircuitBreakerMetrics()

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def last_successful_request(self) -> float:
        return self._last_success

    def record_success(self) -> None:
        """성공 기록 → 회로 닫기."""
        if self._was_open:
            logger.info("[CIRCUIT_BREAKER] CLOSED (successful request)")
        self._consecutive_failures = 0
        self._last_success = self._clock()
        self._was_open = False
        self.metrics.record_primary_hit()

    def record_failure(self) -> None:
        """실패 기록."""
        self._consecutive_failures += 1
        self.metrics.record_primary_miss()
        if self._consecutive_failures >= self.fail_threshold:
            logger.warning(
                f"[CIRCUIT_BREAKER] failure streak {self._consecutive_failures} >= {self.fail_threshold} "
                f"(last success {self.time_since_last_success_ms():.0f}ms ago)"
            )

    def is_open(self) -> bool:
        """회로가 개방되었는가?"""
        is_open = (
            self._consecutive_failures >= self.fail_threshold
            and self.time_since_last_success_ms() > self.cooldown_ms
        )
        if is_open and not self._was_open:
            logger.warning(
                f"[CIRCUIT_BREAKER] OPEN (fail_count={self._consecutive_failures} >= {self.fail_threshold}, "
                f"no success for {self.time_since_last_success_ms():.0f}ms)"
            )
        self._was_open = is_open
        return is_open

    def time_since_last_success_ms(self) -> float:
        return max(0.0, self._clock() - self._last_success)

    def health(self) -> ServiceHealthState:
        return ServiceHealthState(
            is_available=not self.is_open(),
            consecutive_failures=self._consecutive_failures,
            last_successful_request=self._last_success,
            time_since_last_success_ms=self.time_since_last_success_ms(),
        )

    def reset(self) -> None:
        """강제 CLOSED (운영/테스트용)."""
        self._consecutive_failures = 0
        self._last_success = self._clock()
        self._was_open = False
        logger.info("[CIRCUIT_BREAKER] reset")

    def __repr__(self) -> str:
        status = "OPEN" if self.is_open() else "CLOSED"
        return (
            f"CircuitBreaker({status}, fail_count={self._consecutive_failures}/{self.fail_threshold}, "
            f"since_success={self.time_since_last_success_ms():.0f}ms)"
        )
