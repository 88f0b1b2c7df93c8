"""전역 테스트 설정

역할:
- 테스트 환경 구성
- 공통 Fake 주입 (전송 계층 / 시계 / sleep)
- 실제 네트워크 호출 금지
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import pytest


# 프로젝트 루트를 경로에 추가
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from scholar_search.core.config import Settings  # noqa: E402
from scholar_search.engine.fallback import FallbackConfig  # noqa: E402
from scholar_search.engine.rate_limiter import RateLimitConfig  # noqa: E402
from scholar_search.services.scholar_client import ScholarSearchClient  # noqa: E402
from tests.fakes import FakeClock, FakeSleep, FakeSource, FakeTransport  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def test_env() -> None:
    """테스트 환경 변수 설정 (세션 전역)"""
    os.environ["ENVIRONMENT"] = "test"
    os.environ["LOG_LEVEL"] = "INFO"


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def no_jitter_config() -> RateLimitConfig:
    """지터 없는 재시도 설정 (대기 시간 검증용)"""
    return RateLimitConfig(jitter_enabled=False)


@pytest.fixture
def make_client(fake_clock: FakeClock, fake_sleep: FakeSleep, no_jitter_config: RateLimitConfig):
    """ScholarSearchClient 팩토리 (가짜 전송/시계/sleep 주입)

    기본값은 대체 검색 비활성화. fallback_sources 를 주면 해당 소스만 순서대로 사용.
    """

    def _make(
        transport: FakeTransport,
        *,
        rate_limit_config: Optional[RateLimitConfig] = None,
        fallback_sources: Optional[list[FakeSource]] = None,
        fallback_max_attempts: int = 2,
        settings: Optional[Settings] = None,
    ) -> ScholarSearchClient:
        if fallback_sources:
            fallback_config = FallbackConfig(
                enabled=True,
                sources=tuple(s.name for s in fallback_sources),
                max_attempts=fallback_max_attempts,
            )
            sources = {s.name: s for s in fallback_sources}
        else:
            fallback_config = FallbackConfig(enabled=False, sources=())
            sources = {}

        return ScholarSearchClient(
            rate_limit_config or no_jitter_config,
            fallback_config,
            transport=transport,
            fallback_sources=sources,
            clock=fake_clock,
            sleep=fake_sleep,
            settings=settings,
        )

    return _make
