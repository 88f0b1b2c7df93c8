"""API 엔드포인트 패키지 - export only."""

from .routes import get_scholar_client, health_router, scholar_router

__all__ = ["health_router", "scholar_router", "get_scholar_client"]
