"""Fallback Orchestrator - Alternate scholarly sources

When the primary source cannot answer, queries a bounded number of alternate
sources in configured order. Each source gets its own timeout and the whole
pass is optionally capped by a total budget. Results from alternates are
re-tagged with a fixed low confidence.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol

from scholar_search.core.config import Settings
from scholar_search.core.exceptions import FallbackExhaustedException
from scholar_search.core.logging import logger, sanitize_for_log
from scholar_search.engine.result import FALLBACK_CONFIDENCE, ScholarResult

KNOWN_SOURCES = ("semantic-scholar", "crossref", "arxiv")


class FallbackSource(Protocol):
    """대체 검색 소스 인터페이스"""

    name: str

    async def search(self, query: str, *, max_results: int, timeout_s: float) -> list[ScholarResult]:
        """검색 실행

        Raises:
            HttpStatusException / NetworkTimeoutException / ParsingException 등
        """
        ...


@dataclass(frozen=True)
class FallbackConfig:
    """대체 소스 설정

    Attributes:
        enabled: 대체 검색 사용 여부
        sources: 시도 순서대로의 소스 ID 목록
        timeout_ms: 소스별 타임아웃
        max_attempts: 최대 시도 소스 수
        total_budget_ms: 전체 대체 검색 예산 (None = timeout_ms * max_attempts)
    """

    enabled: bool = True
    sources: tuple[str, ...] = KNOWN_SOURCES
    timeout_ms: int = 10000
    max_attempts: int = 2
    total_budget_ms: Optional[int] = None

    def __post_init__(self):
        """설정 검증"""
        object.__setattr__(self, "sources", tuple(self.sources))
        unknown = [s for s in self.sources if s not in KNOWN_SOURCES]
        if unknown:
            raise ValueError(f"Unknown fallback sources: {unknown} (known: {list(KNOWN_SOURCES)})")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be >= 0")
        if self.total_budget_ms is not None and self.total_budget_ms <= 0:
            raise ValueError("total_budget_ms must be positive")

    @classmethod
    def from_settings(cls, settings: Settings) -> "FallbackConfig":
        return cls(
            enabled=settings.fallback_enabled,
            sources=tuple(settings.fallback_sources),
            timeout_ms=settings.fallback_timeout_ms,
            max_attempts=settings.fallback_max_attempts,
            total_budget_ms=settings.fallback_total_budget_ms,
        )


@dataclass
class FallbackOutcome:
    """대체 검색 성공 결과"""

    results: list[ScholarResult]
    source: str
    tried_sources: list[str] = field(default_factory=list)


class FallbackOrchestrator:
    """대체 소스 순차 시도

    Usage:
        orchestrator = FallbackOrchestrator(FallbackConfig(), build_default_sources(http))
        outcome = await orchestrator.try_fallbacks("graph neural networks")
    """

    def __init__(
        self,
        config: Optional[FallbackConfig] = None,
        sources: Optional[Mapping[str, FallbackSource]] = None,
        *,
        confidence: float = FALLBACK_CONFIDENCE,
    ) -> None:
        self.config = config or FallbackConfig()
        self.sources: dict[str, FallbackSource] = dict(sources or {})
        self.confidence = confidence

        missing = [s for s in self.config.sources if s not in self.sources]
        if missing:
            raise ValueError(f"No implementation registered for fallback sources: {missing}")

    @property
    def enabled(self) -> bool:
        return self.is_enabled()

    def is_enabled(self, override: Optional[bool] = None) -> bool:
        """호출 단위 재정의를 반영한 사용 여부"""
        wanted = self.config.enabled if override is None else override
        return bool(wanted) and self.config.max_attempts > 0 and bool(self.config.sources)

    async def try_fallbacks(
        self,
        query: str,
        *,
        max_results: int = 10,
        enabled: Optional[bool] = None,
    ) -> FallbackOutcome:
        """대체 소스 순차 시도

        Args:
            query: 검색어
            max_results: 소스별 최대 결과 수
            enabled: 호출 단위 사용 여부 재정의

        Returns:
            FallbackOutcome: 첫 번째로 비어 있지 않은 결과를 준 소스의 결과

        Raises:
            FallbackExhaustedException: 비활성화되었거나 모든 소스 실패
        """
        if not self.is_enabled(enabled):
            raise FallbackExhaustedException([], {"fallback": "disabled"})

        loop = asyncio.get_running_loop()
        per_source_s = self.config.timeout_ms / 1000.0
        budget_ms = self.config.total_budget_ms or self.config.timeout_ms * self.config.max_attempts
        deadline = loop.time() + budget_ms / 1000.0

        tried: list[str] = []
        errors: dict[str, str] = {}

        for name in self.config.sources[: self.config.max_attempts]:
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.warning(f"[FALLBACK] Budget exhausted before '{name}'")
                errors[name] = "budget exhausted"
                break

            timeout_s = min(per_source_s, remaining)
            source = self.sources[name]
            tried.append(name)
            logger.info(f"[FALLBACK] Trying '{name}' query='{sanitize_for_log(query)}' timeout={timeout_s:.1f}s")

            try:
                results = await asyncio.wait_for(
                    source.search(query, max_results=max_results, timeout_s=timeout_s),
                    timeout=timeout_s,
                )
            except asyncio.TimeoutError:
                logger.warning(f"[FALLBACK] '{name}' timed out after {timeout_s:.1f}s")
                errors[name] = "timeout"
                continue
            except Exception as e:
                logger.warning(f"[FALLBACK] '{name}' failed: {type(e).__name__}: {e}")
                errors[name] = f"{type(e).__name__}: {e}"
                continue

            if not results:
                logger.info(f"[FALLBACK] '{name}' returned no results")
                errors[name] = "no results"
                continue

            tagged = [r.with_source(name, self.confidence) for r in results[:max_results]]
            logger.info(f"[FALLBACK] '{name}' succeeded with {len(tagged)} results")
            return FallbackOutcome(results=tagged, source=name, tried_sources=tried)

        raise FallbackExhaustedException(tried, errors)
