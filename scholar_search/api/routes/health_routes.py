"""헬스 체크 엔드포인트"""
from datetime import datetime

from fastapi import APIRouter, Depends

from scholar_search import __version__
from scholar_search.api.routes.scholar_routes import get_scholar_client
from scholar_search.core.logging import logger
from scholar_search.schemas.scholar_schema import ConnectionProbeResponse, HealthResponse
from scholar_search.services.scholar_client import ScholarSearchClient

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(client: ScholarSearchClient = Depends(get_scholar_client)):
    """
    헬스 체크 엔드포인트

    - 서버 상태
    - Google Scholar 연결 상태 (HEAD 1회)
    - 회로 차단 상태
    """
    probe = await client.test_connection()
    service_available = client.circuit_breaker.health().is_available

    if probe.success and service_available:
        status = "ok"
    elif probe.success or service_available:
        status = "degraded"
    else:
        status = "error"

    if status != "ok":
        logger.warning(f"Health check {status}: probe={probe.error} circuit_available={service_available}")

    return HealthResponse(
        status=status,
        timestamp=datetime.now(),
        version=__version__,
        scholar=ConnectionProbeResponse(**probe.to_dict()),
    )


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": "Scholar 검색 서비스",
        "version": __version__,
        "docs": "/docs"
    }
