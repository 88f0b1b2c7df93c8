"""API routes package."""

from .health_routes import router as health_router
from .scholar_routes import get_scholar_client, router as scholar_router

__all__ = ["health_router", "scholar_router", "get_scholar_client"]
