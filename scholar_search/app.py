"""FastAPI 앱 팩토리"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scholar_search.api import health_router, scholar_router
from scholar_search.core.config import settings
from scholar_search.core.logging import logger
from scholar_search.crawlers.http_client import shutdown_shared_http_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기"""
    logger.info("Starting application...")
    yield
    logger.info("Shutting down application...")
    await shutdown_shared_http_client()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 실패 → 400"""
    logger.warning(f"[API] Request validation failed: {request.url.path}")
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors()), "error_code": "VALIDATION_ERROR"},
    )


def create_app() -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # 라우터 등록
    app.include_router(health_router)
    app.include_router(scholar_router)

    return app

# 앱 인스턴스 생성 (uvicorn이 로드할 수 있도록)
app = create_app()
