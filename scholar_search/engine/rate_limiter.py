"""Rate Limiter - Sliding-window request admission

Tracks the request history of one client instance and decides whether the
next search may go out now or must wait. Two windows are enforced: the
trailing minute and the trailing hour. A block (429 with Retry-After, or a
detected bot check) holds every admission until it expires.
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from scholar_search.core.config import Settings
from scholar_search.core.logging import logger

MINUTE_MS = 60_000
HOUR_MS = 3_600_000


def _wall_clock_ms() -> float:
    return time.time() * 1000.0


@dataclass(frozen=True)
class RateLimitConfig:
    """요청 속도 / 재시도 설정 (클라이언트 생명주기 동안 불변)

    Attributes:
        requests_per_minute: 분당 최대 요청 수
        requests_per_hour: 시간당 최대 요청 수
        max_retries: 1차 소스 총 시도 횟수 (첫 시도 포함)
        base_delay_ms: 백오프 기본 지연
        max_delay_ms: 백오프 상한
        backoff_multiplier: 지수 배수
        jitter_enabled: 지터 적용 여부
        jitter_ratio: 지터 최대 비율 (delay * (1 + rand * ratio))
        retry_throttled_errors: 429/503 도 retry_after 만큼 기다린 뒤 재시도할지 여부
        max_admission_wait_ms: 한도 초과 시 기다려 줄 최대 시간 (0 = 즉시 거절)
    """

    requests_per_minute: int = 10
    requests_per_hour: int = 100
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30000
    backoff_multiplier: float = 2.0
    jitter_enabled: bool = True
    jitter_ratio: float = 0.3
    retry_throttled_errors: bool = False
    max_admission_wait_ms: int = 0

    def __post_init__(self):
        """설정 검증"""
        if self.requests_per_minute <= 0 or self.requests_per_hour <= 0:
            raise ValueError("Rate limits must be positive")
        if self.requests_per_minute > self.requests_per_hour:
            raise ValueError(
                f"requests_per_minute ({self.requests_per_minute}) exceeds "
                f"requests_per_hour ({self.requests_per_hour})"
            )
        if self.max_retries < 1:
            raise ValueError("max_retries counts total attempts and must be >= 1")
        if self.base_delay_ms < 0 or self.max_delay_ms < self.base_delay_ms:
            raise ValueError(
                f"Invalid backoff bounds: base={self.base_delay_ms}ms max={self.max_delay_ms}ms"
            )
        if self.backoff_multiplier < 1.0:
            raise ValueError("backoff_multiplier must be >= 1.0")
        if not 0.0 <= self.jitter_ratio <= 1.0:
            raise ValueError("jitter_ratio must be within [0, 1]")
        if self.max_admission_wait_ms < 0:
            raise ValueError("max_admission_wait_ms must be >= 0")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimitConfig":
        return cls(
            requests_per_minute=settings.rate_limit_requests_per_minute,
            requests_per_hour=settings.rate_limit_requests_per_hour,
            max_retries=settings.retry_max_retries,
            base_delay_ms=settings.retry_base_delay_ms,
            max_delay_ms=settings.retry_max_delay_ms,
            backoff_multiplier=settings.retry_backoff_multiplier,
            jitter_enabled=settings.retry_jitter_enabled,
            jitter_ratio=settings.retry_jitter_ratio,
            retry_throttled_errors=settings.retry_throttled_errors,
            max_admission_wait_ms=settings.rate_limit_max_admission_wait_ms,
        )


@dataclass(frozen=True)
class Admission:
    """admit() 결과"""

    allowed: bool
    wait_ms: float = 0.0
    reason: str = ""


@dataclass(frozen=True)
class RateLimitStatus:
    """외부 조회용 상태 스냅샷"""

    requests_in_last_minute: int
    remaining_minute_requests: int
    requests_in_last_hour: int
    remaining_hourly_requests: int
    is_blocked: bool
    block_until: Optional[float] = None  # epoch ms

    def to_dict(self) -> dict:
        return asdict(self)


class RateLimiter:
    """슬라이딩 윈도우 요청 제한기

    - 허용된 요청의 타임스탬프만 기록합니다 (거절은 기록하지 않음).
    - 1시간보다 오래된 기록은 조회 시점에 정리합니다.
    - block_for()로 서버가 요구한 대기 시간(또는 봇 차단 시간) 동안 모든 요청을 막습니다.

    Usage:
        limiter = RateLimiter(RateLimitConfig(requests_per_minute=10))
        admission = limiter.admit()
        if not admission.allowed:
            await asyncio.sleep(admission.wait_ms / 1000)
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.config = config or RateLimitConfig()
        self._clock = clock or _wall_clock_ms
        self._history: deque[float] = deque()
        self._block_until: float = 0.0

    def admit(self) -> Admission:
        """요청 허용 여부 결정

        허용되면 현재 시각을 기록합니다.

        Returns:
            Admission: 허용 여부와 대기해야 할 시간 (ms)
        """
        admission = self.check()
        if admission.allowed:
            self.record()
        return admission

    def record(self) -> None:
        """요청 1건을 현재 시각으로 기록"""
        self._history.append(self._clock())

    def check(self) -> Admission:
        """기록 없이 허용 여부만 확인

        Returns:
            Admission: 허용 여부와 대기해야 할 시간 (ms)
        """
        now = self._clock()
        self._prune(now)

        if self._block_until > now:
            wait_ms = self._block_until - now
            logger.info(f"[RATE_LIMIT] Blocked for another {wait_ms:.0f}ms")
            return Admission(allowed=False, wait_ms=wait_ms, reason="blocked")

        in_minute = self._count_since(now - MINUTE_MS)
        if in_minute >= self.config.requests_per_minute:
            oldest = self._history[len(self._history) - in_minute]
            wait_ms = max(0.0, oldest + MINUTE_MS - now)
            logger.info(
                f"[RATE_LIMIT] Minute cap reached ({in_minute}/{self.config.requests_per_minute}), "
                f"wait {wait_ms:.0f}ms"
            )
            return Admission(allowed=False, wait_ms=wait_ms, reason="minute_limit")

        if len(self._history) >= self.config.requests_per_hour:
            wait_ms = max(0.0, self._history[0] + HOUR_MS - now)
            logger.info(
                f"[RATE_LIMIT] Hourly cap reached ({len(self._history)}/{self.config.requests_per_hour}), "
                f"wait {wait_ms:.0f}ms"
            )
            return Admission(allowed=False, wait_ms=wait_ms, reason="hour_limit")

        return Admission(allowed=True)

    def block_for(self, duration_ms: float) -> None:
        """서버 힌트(Retry-After) 또는 봇 차단 감지 후 요청 차단"""
        until = self._clock() + max(0.0, duration_ms)
        if until > self._block_until:
            self._block_until = until
            logger.warning(f"[RATE_LIMIT] Blocking requests for {duration_ms:.0f}ms")

    def status(self) -> RateLimitStatus:
        """현재 상태 스냅샷"""
        now = self._clock()
        self._prune(now)
        in_minute = self._count_since(now - MINUTE_MS)
        in_hour = len(self._history)
        blocked_by_server = self._block_until > now
        return RateLimitStatus(
            requests_in_last_minute=in_minute,
            remaining_minute_requests=max(0, self.config.requests_per_minute - in_minute),
            requests_in_last_hour=in_hour,
            remaining_hourly_requests=max(0, self.config.requests_per_hour - in_hour),
            is_blocked=(
                blocked_by_server
                or in_minute >= self.config.requests_per_minute
                or in_hour >= self.config.requests_per_hour
            ),
            block_until=self._block_until if blocked_by_server else None,
        )

    def reset(self) -> None:
        self._history.clear()
        self._block_until = 0.0

    def _prune(self, now: float) -> None:
        cutoff = now - HOUR_MS
        while self._history and self._history[0] <= cutoff:
            self._history.popleft()

    def _count_since(self, since: float) -> int:
        # 기록은 시간순이므로 뒤에서부터 센다
        count = 0
        for ts in reversed(self._history):
            if ts <= since:
                break
            count += 1
        return count

    def __repr__(self) -> str:
        s = self.status()
        return (
            f"RateLimiter(minute={s.requests_in_last_minute}/{self.config.requests_per_minute}, "
            f"hour={s.requests_in_last_hour}/{self.config.requests_per_hour}, blocked={s.is_blocked})"
        )
