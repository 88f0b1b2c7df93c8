"""Scholar 검색 클라이언트 - 복원력 파이프라인 오케스트레이션

search → RateLimiter 게이트 → CircuitBreaker 게이트
       → RetryEngine(시도 = fetch → ParserChain)
       → (소진 시) FallbackOrchestrator
       → list[ScholarResult] 또는 ScholarSearchError
"""

from __future__ import annotations

import asyncio
import math
import random
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from scholar_search.core.config import Settings, settings as default_settings
from scholar_search.core.exceptions import InvalidQueryException, ParsingException
from scholar_search.core.logging import logger, sanitize_for_log
from scholar_search.crawlers.http_client import HttpTransport, get_shared_http_client
from scholar_search.crawlers.scholar.fetcher import ScholarFetcher
from scholar_search.crawlers.scholar.parsing import ParserChain
from scholar_search.crawlers.sources import build_default_sources
from scholar_search.engine.circuit_breaker import CircuitBreaker
from scholar_search.engine.errors import (
    ClassifiedError,
    ErrorClassifier,
    ErrorHandlingConfig,
    ErrorType,
    ScholarSearchError,
)
from scholar_search.engine.fallback import FallbackConfig, FallbackOrchestrator, FallbackSource
from scholar_search.engine.rate_limiter import RateLimitConfig, RateLimiter, RateLimitStatus
from scholar_search.engine.result import AttemptOutcome, Err, Ok, ScholarResult
from scholar_search.engine.retry import RetryEngine
from scholar_search.schemas.scholar_schema import SearchOptions
from scholar_search.utils.text import dedupe_results

CIRCUIT_OPEN_MESSAGE = (
    "Google Scholar appears to be unavailable due to repeated failures. Please try again later."
)


@dataclass(frozen=True)
class ConnectionProbe:
    """test_connection() 결과"""

    success: bool
    response_time_ms: float
    status_code: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class ScholarSearchClient:
    """
    Google Scholar 검색 클라이언트 (Facade)

    - 요청 제한 / 회로 차단 상태는 인스턴스마다 독립적으로 소유
    - 시도 함수는 예외 대신 Ok/Err 를 돌려주고 RetryEngine 이 태그로 분기

    Usage:
        client = ScholarSearchClient.from_settings()
        results = await client.search("graph neural networks", {"max_results": 5})
    """

    def __init__(
        self,
        rate_limit_config: Optional[RateLimitConfig] = None,
        fallback_config: Optional[FallbackConfig] = None,
        error_handling_config: Optional[ErrorHandlingConfig] = None,
        *,
        transport: Optional[HttpTransport] = None,
        fallback_sources: Optional[Mapping[str, FallbackSource]] = None,
        parser: Optional[ParserChain] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], float]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        random_fn: Callable[[], float] = random.random,
    ) -> None:
        self.settings = settings or default_settings
        self.rate_limit_config = rate_limit_config or RateLimitConfig()
        self.fallback_config = fallback_config or FallbackConfig()
        self.error_handling_config = error_handling_config or ErrorHandlingConfig()

        self.transport = transport or get_shared_http_client()
        self.fetcher = ScholarFetcher(self.transport, self.settings)
        self.parser = parser or ParserChain()

        self.rate_limiter = RateLimiter(self.rate_limit_config, clock=clock)
        self.circuit_breaker = CircuitBreaker(
            fail_threshold=self.settings.circuit_fail_threshold,
            cooldown_ms=self.settings.circuit_cooldown_ms,
            clock=clock,
        )
        self.classifier = ErrorClassifier(
            self.error_handling_config,
            default_rate_limit_retry_after_s=self.settings.rate_limit_default_retry_after_s,
            default_unavailable_retry_after_s=self.settings.service_unavailable_retry_after_s,
        )

        if fallback_sources is None:
            fallback_sources = build_default_sources(self.transport, self.settings)
        self.fallback = FallbackOrchestrator(self.fallback_config, fallback_sources)
        self.retry_engine = RetryEngine(
            self.rate_limit_config,
            self.fallback,
            sleep=sleep,
            random_fn=random_fn,
        )
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[HttpTransport] = None,
    ) -> "ScholarSearchClient":
        """환경 설정으로 클라이언트 생성"""
        settings = settings or default_settings
        return cls(
            RateLimitConfig.from_settings(settings),
            FallbackConfig.from_settings(settings),
            ErrorHandlingConfig.from_settings(settings),
            transport=transport,
            settings=settings,
        )

    # ------------------------------------------------------------------
    # search
    # ------------------------------------------------------------------

    async def search(
        self,
        query: str,
        options: Union[SearchOptions, Mapping[str, Any], None] = None,
    ) -> list[ScholarResult]:
        """
        논문 검색

        Args:
            query: 검색어 (공백만 있으면 거절)
            options: SearchOptions 또는 같은 키의 dict

        Returns:
            list[ScholarResult]: 결과 (결과 없음은 빈 목록)

        Raises:
            InvalidQueryException: 빈 검색어
            pydantic.ValidationError: 잘못된 옵션
            ScholarSearchError: 재시도/대체 검색 모두 실패 또는 게이트 거절
        """
        if query is None or not str(query).strip():
            raise InvalidQueryException("Search query cannot be empty")
        query = str(query).strip()
        opts = self._coerce_options(options)

        logger.info(f"[SCHOLAR] search query='{sanitize_for_log(query)}' max_results={opts.max_results}")

        # 두 게이트를 모두 통과한 요청만 분당/시간당 한도에 기록
        await self._wait_for_admission()
        self._check_circuit()
        self.rate_limiter.record()

        url = self.fetcher.build_search_url(query, opts)

        async def attempt(index: int) -> AttemptOutcome:
            return await self._attempt(url, index)

        try:
            outcome = await self.retry_engine.execute(
                attempt,
                query=query,
                max_retries=opts.max_retries,
                fallback_enabled=opts.enable_fallback,
                max_results=opts.max_results,
            )
        except ScholarSearchError as e:
            if e.fallback_attempted:
                self.circuit_breaker.metrics.record_fallback_failure()
            logger.error(f"[SCHOLAR] search failed: {e}")
            raise

        if outcome.fallback_used:
            self.circuit_breaker.metrics.record_fallback_hit()

        results = dedupe_results(outcome.results)[: opts.max_results]
        logger.info(
            f"[SCHOLAR] search done: {len(results)} results from {outcome.source} "
            f"(attempts={outcome.attempts})"
        )
        return results

    async def _attempt(self, url: str, index: int) -> AttemptOutcome:
        """네트워크 + 파싱 1회 (예외 대신 Ok/Err 반환)"""
        try:
            body = await asyncio.wait_for(
                self.fetcher.fetch_results_page(url),
                timeout=self.fetcher.request_timeout_s,
            )
            parsed = self.parser.parse(body)
            if parsed.is_unparseable:
                raise ParsingException(parsed.reason, {"url": url, "html_len": len(body)})
        except Exception as e:
            error = self.classifier.classify(e)
            self._record_failure(error)
            logger.info(f"[SCHOLAR] attempt {index + 1} failed: {error.type.value}")
            return Err(error)

        self.circuit_breaker.record_success()
        return Ok(parsed.results)

    def _record_failure(self, error: ClassifiedError) -> None:
        self.circuit_breaker.record_failure()
        if error.type is ErrorType.RATE_LIMIT and error.retry_after:
            self.rate_limiter.block_for(error.retry_after * 1000)
        elif error.type is ErrorType.BLOCKED:
            # 봇 차단: 서버 힌트가 없으면 blocked_retry_after_s 동안 차단
            block_s = error.retry_after or self.settings.blocked_retry_after_s
            self.rate_limiter.block_for(block_s * 1000)

    async def _wait_for_admission(self) -> None:
        admission = self.rate_limiter.check()
        if admission.allowed:
            return

        max_wait = self.rate_limit_config.max_admission_wait_ms
        if 0 < admission.wait_ms <= max_wait:
            logger.info(f"[SCHOLAR] waiting {admission.wait_ms:.0f}ms for rate limit window")
            await self._sleep(admission.wait_ms / 1000.0)
            admission = self.rate_limiter.check()
            if admission.allowed:
                return

        error = self.classifier.create(
            ErrorType.RATE_LIMIT,
            detail=f"local rate limit ({admission.reason})",
            retry_after=max(1, math.ceil(admission.wait_ms / 1000.0)),
        )
        raise ScholarSearchError(error, attempts=0)

    def _check_circuit(self) -> None:
        if not self.circuit_breaker.is_open():
            return
        error = self.classifier.create(
            ErrorType.SERVICE_UNAVAILABLE,
            detail=(
                f"circuit open: {self.circuit_breaker.consecutive_failures} consecutive failures, "
                f"last success {self.circuit_breaker.time_since_last_success_ms():.0f}ms ago"
            ),
            message=CIRCUIT_OPEN_MESSAGE,
        )
        raise ScholarSearchError(error, attempts=0)

    @staticmethod
    def _coerce_options(options: Union[SearchOptions, Mapping[str, Any], None]) -> SearchOptions:
        if options is None:
            return SearchOptions()
        if isinstance(options, SearchOptions):
            return options
        return SearchOptions.model_validate(dict(options))

    # ------------------------------------------------------------------
    # status / health
    # ------------------------------------------------------------------

    def get_rate_limit_status(self) -> RateLimitStatus:
        return self.rate_limiter.status()

    def get_client_status(self) -> dict[str, Any]:
        """요청 제한 + 서비스 상태 + 에러 처리 설정 요약"""
        health = self.circuit_breaker.health()
        return {
            "rate_limit_status": self.get_rate_limit_status().to_dict(),
            "service_status": {
                "is_available": health.is_available,
                "consecutive_failures": health.consecutive_failures,
                "last_successful_request": health.last_successful_request,
                "time_since_last_success_ms": health.time_since_last_success_ms,
                "metrics": self.circuit_breaker.metrics.to_dict(),
            },
            "error_handling": {
                "fallback_enabled": self.fallback.enabled,
                "fallback_sources": list(self.fallback_config.sources),
                "max_retries": self.retry_engine.config.max_retries,
                "backoff_multiplier": self.retry_engine.config.backoff_multiplier,
                "detailed_logging": self.error_handling_config.enable_detailed_logging,
            },
        }

    async def test_connection(self) -> ConnectionProbe:
        """HEAD 요청 한 번으로 연결 확인 (회로 차단 / 요청 제한 상태는 바꾸지 않음)"""
        loop = asyncio.get_running_loop()
        started = loop.time()
        try:
            resp = await asyncio.wait_for(self.fetcher.probe(), timeout=self.fetcher.probe_timeout_s)
        except Exception as e:
            elapsed = (loop.time() - started) * 1000
            logger.warning(f"[SCHOLAR] connection test failed: {type(e).__name__}: {e}")
            return ConnectionProbe(False, round(elapsed, 2), error=f"{type(e).__name__}: {e}")

        elapsed = (loop.time() - started) * 1000
        success = 200 <= resp.status_code < 400
        logger.info(f"[SCHOLAR] connection test status={resp.status_code} elapsed={elapsed:.0f}ms")
        return ConnectionProbe(
            success=success,
            response_time_ms=round(elapsed, 2),
            status_code=resp.status_code,
            error=None if success else f"HTTP {resp.status_code}",
        )

    def reset_client_state(self) -> None:
        """요청 기록 / 회로 차단 상태 초기화"""
        self.rate_limiter.reset()
        self.circuit_breaker.reset()
        logger.info("[SCHOLAR] client state reset")

    async def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "ScholarSearchClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
