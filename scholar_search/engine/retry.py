"""Retry Engine - Bounded retry loop with exponential backoff

Drives one logical search through sequential attempts. Each attempt returns a
tagged outcome (Ok | Err); the engine branches on the tag and on the
ClassifiedError it carries, never on raised exceptions. When the primary
source gives up, alternate sources are tried before the failure is surfaced.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Awaitable, Callable, Optional

from scholar_search.core.exceptions import FallbackExhaustedException
from scholar_search.core.logging import logger, sanitize_for_log
from scholar_search.engine.errors import ClassifiedError, ScholarSearchError
from scholar_search.engine.fallback import FallbackOrchestrator
from scholar_search.engine.rate_limiter import RateLimitConfig
from scholar_search.engine.result import AttemptOutcome, ScholarResult

AttemptFn = Callable[[int], Awaitable[AttemptOutcome]]


class RetryAction(str, Enum):
    """재시도 판단"""

    RETRY = "retry"
    STOP = "stop"


@dataclass(frozen=True)
class RetryDecision:
    """decide() 결과"""

    action: RetryAction
    delay_ms: float = 0.0
    reason: str = ""

    @property
    def should_retry(self) -> bool:
        return self.action is RetryAction.RETRY


@dataclass
class RetryOutcome:
    """execute() 성공 결과

    Attributes:
        results: 최종 결과
        attempts: 1차 소스 시도 횟수
        source: 결과를 준 소스 ("google_scholar" 또는 대체 소스 ID)
        fallback_used: 대체 소스 결과 여부
    """

    results: list[ScholarResult]
    attempts: int
    source: str = "google_scholar"
    fallback_used: bool = False


class RetryEngine:
    """재시도 엔진

    정책:
    - network/timeout: max_retries 까지 지수 백오프로 재시도
    - rate_limit/service_unavailable: 기본 1회 시도 후 중단.
      retry_throttled=True 이면 서버가 준 retry_after 만큼 기다린 뒤 재시도
    - blocked/parsing/unknown: 즉시 중단
    - 중단 시 대체 검색이 켜져 있으면 FallbackOrchestrator 로 위임
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        fallback: Optional[FallbackOrchestrator] = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        random_fn: Callable[[], float] = random.random,
    ) -> None:
        self.config = config or RateLimitConfig()
        self.fallback = fallback
        self._sleep = sleep
        self._random = random_fn

    def update_options(self, **changes) -> RateLimitConfig:
        """재시도 설정 일부 교체 (검증 포함)

        Raises:
            ValueError: 잘못된 값
            TypeError: 알 수 없는 필드
        """
        self.config = replace(self.config, **changes)
        logger.info(f"[RETRY] options updated: {changes}")
        return self.config

    def compute_delay_ms(self, attempt: int) -> float:
        """attempt(0부터)번째 실패 후 대기 시간

        delay = min(base * multiplier^attempt, max), 지터 적용 후 다시 상한 적용
        """
        cfg = self.config
        delay = min(cfg.base_delay_ms * (cfg.backoff_multiplier ** attempt), cfg.max_delay_ms)
        if cfg.jitter_enabled and cfg.jitter_ratio > 0:
            delay = min(delay * (1 + self._random() * cfg.jitter_ratio), cfg.max_delay_ms)
        return float(delay)

    def decide(
        self,
        error: ClassifiedError,
        attempt: int,
        max_attempts: int,
        retry_throttled: bool = False,
    ) -> RetryDecision:
        """실패 후 다음 행동 결정 (순수 함수)

        Args:
            error: 이번 시도의 분류된 에러
            attempt: 이번 시도 번호 (0부터)
            max_attempts: 총 시도 한도
            retry_throttled: rate_limit/service_unavailable 도 재시도할지 여부

        Returns:
            RetryDecision
        """
        has_next = attempt + 1 < max_attempts

        if error.is_throttle:
            if not retry_throttled:
                return RetryDecision(RetryAction.STOP, reason=f"{error.type.value}: fail fast")
            if not has_next:
                return RetryDecision(RetryAction.STOP, reason="retries exhausted")
            # 서버가 준 대기 시간은 max_delay 로 자르지 않음
            if error.retry_after is not None:
                return RetryDecision(RetryAction.RETRY, delay_ms=error.retry_after * 1000.0,
                                     reason=f"{error.type.value}: honoring retry-after")
            return RetryDecision(RetryAction.RETRY, delay_ms=self.compute_delay_ms(attempt),
                                 reason=f"{error.type.value}: backoff")

        if not error.is_retryable:
            return RetryDecision(RetryAction.STOP, reason=f"{error.type.value}: not retryable")

        if not has_next:
            return RetryDecision(RetryAction.STOP, reason="retries exhausted")

        return RetryDecision(RetryAction.RETRY, delay_ms=self.compute_delay_ms(attempt),
                             reason=f"{error.type.value}: backoff")

    async def execute(
        self,
        attempt_fn: AttemptFn,
        *,
        query: str = "",
        max_retries: Optional[int] = None,
        fallback_enabled: Optional[bool] = None,
        max_results: int = 10,
    ) -> RetryOutcome:
        """시도 함수를 재시도 정책에 따라 실행

        Args:
            attempt_fn: attempt 번호를 받아 Ok/Err 를 돌려주는 코루틴 함수
            query: 대체 검색에 넘길 검색어
            max_retries: 호출 단위 총 시도 횟수 재정의 (명시하면 429/503도 재시도)
            fallback_enabled: 호출 단위 대체 검색 사용 여부 재정의
            max_results: 대체 검색 결과 수

        Returns:
            RetryOutcome

        Raises:
            ScholarSearchError: 재시도와 대체 검색이 모두 실패
        """
        if max_retries is not None and max_retries < 1:
            raise ValueError("max_retries must be >= 1")

        max_attempts = max_retries if max_retries is not None else self.config.max_retries
        retry_throttled = self.config.retry_throttled_errors or max_retries is not None

        attempt = 0
        while True:
            outcome = await attempt_fn(attempt)
            if outcome.is_ok:
                if attempt > 0:
                    logger.info(f"[RETRY] Succeeded on attempt {attempt + 1}")
                return RetryOutcome(results=outcome.results, attempts=attempt + 1)

            error = outcome.error
            decision = self.decide(error, attempt, max_attempts, retry_throttled)
            if not decision.should_retry:
                logger.warning(
                    f"[RETRY] Stop after attempt {attempt + 1}/{max_attempts}: {decision.reason}"
                )
                break

            logger.info(
                f"[RETRY] Attempt {attempt + 1}/{max_attempts} failed ({error.type.value}), "
                f"retrying in {decision.delay_ms:.0f}ms"
            )
            await self._sleep(decision.delay_ms / 1000.0)
            attempt += 1

        attempts = attempt + 1
        if self.fallback is None or not self.fallback.is_enabled(fallback_enabled):
            raise ScholarSearchError(error, attempts, fallback_attempted=False)

        logger.info(
            f"[RETRY] Primary source gave up ({error.type.value}), "
            f"trying alternates for query='{sanitize_for_log(query)}'"
        )
        try:
            fb = await self.fallback.try_fallbacks(
                query, max_results=max_results, enabled=fallback_enabled
            )
        except FallbackExhaustedException as e:
            logger.warning(f"[RETRY] Alternates exhausted: {e.message}")
            raise ScholarSearchError(
                error,
                attempts,
                fallback_attempted=True,
                details={
                    "error": error.to_dict(),
                    "attempts": attempts,
                    "fallback_attempted": True,
                    "fallback_errors": e.errors,
                },
            ) from e

        return RetryOutcome(
            results=fb.results,
            attempts=attempts,
            source=fb.source,
            fallback_used=True,
        )
