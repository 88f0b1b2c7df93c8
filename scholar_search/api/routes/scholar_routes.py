"""Scholar Routes

HTTP Layer는 ScholarSearchClient로 요청을 위임하고 결과/에러를 응답 스키마로 변환합니다.
"""

import time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from scholar_search.core.exceptions import InvalidQueryException, ValidationException
from scholar_search.core.logging import logger
from scholar_search.engine.errors import ScholarSearchError
from scholar_search.schemas.scholar_schema import (
    ClientStatusResponse,
    RateLimitStatusResponse,
    ScholarResultData,
    ScholarSearchRequest,
    ScholarSearchResponse,
)
from scholar_search.services.scholar_client import ScholarSearchClient

router = APIRouter(prefix="/api/v1", tags=["scholar"])

# 싱글톤 클라이언트
_scholar_client: Optional[ScholarSearchClient] = None


def get_scholar_client() -> ScholarSearchClient:
    """ScholarSearchClient 싱글톤

    요청 제한 / 회로 차단 상태가 요청 사이에 유지되어야 하므로 프로세스당 하나만 둡니다.
    """
    global _scholar_client
    if _scholar_client is None:
        _scholar_client = ScholarSearchClient.from_settings()
    return _scholar_client


@router.post("/scholar/search", response_model=ScholarSearchResponse)
async def search_scholar(
    request: ScholarSearchRequest,
    client: ScholarSearchClient = Depends(get_scholar_client),
):
    """논문 검색 API

    Flow:
        1. 요청 검증 (빈 검색어 → 400)
        2. ScholarSearchClient.search 위임 (게이트 → 재시도 → 대체 소스)
        3. 결과 또는 분류된 실패를 응답으로 변환
    """
    started = time.perf_counter()
    logger.info(f"[API] Scholar search request: query (length: {len(request.query)})")

    try:
        results = await client.search(request.query, request.options)
    except (InvalidQueryException, ValidationException) as e:
        logger.warning(f"[API] Input validation failed: {e}")
        raise HTTPException(status_code=400, detail=e.message)
    except ScholarSearchError as e:
        elapsed_ms = (time.perf_counter() - started) * 1000
        return ScholarSearchResponse(
            status="fail",
            data=[],
            message=e.message,
            error_code=e.error_code,
            error_type=e.type.value,
            retry_after=e.retry_after,
            attempts=e.attempts,
            fallback_attempted=e.fallback_attempted,
            elapsed_ms=round(elapsed_ms, 2),
        )

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"[API] Scholar search done: {len(results)} results in {elapsed_ms:.0f}ms")
    return ScholarSearchResponse(
        status="success",
        data=[ScholarResultData(**r.to_dict()) for r in results],
        message=f"{len(results)} results" if results else "No results found",
        elapsed_ms=round(elapsed_ms, 2),
    )


@router.get("/scholar/status", response_model=ClientStatusResponse)
async def client_status(client: ScholarSearchClient = Depends(get_scholar_client)):
    """요청 제한 + 서비스 상태 + 에러 처리 설정"""
    return ClientStatusResponse(**client.get_client_status())


@router.get("/scholar/rate-limit", response_model=RateLimitStatusResponse)
async def rate_limit_status(client: ScholarSearchClient = Depends(get_scholar_client)):
    return RateLimitStatusResponse(**client.get_rate_limit_status().to_dict())


@router.post("/scholar/reset")
async def reset_client(client: ScholarSearchClient = Depends(get_scholar_client)):
    """요청 기록 / 회로 차단 상태 초기화 (운영용)"""
    client.reset_client_state()
    return {"status": "success", "message": "Client state reset"}
