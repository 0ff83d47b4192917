"""API routers."""

from .cache import router as cache_router
from .documents import router as documents_router
from .health import router as health_router
from .query import router as query_router
from .registry import router as registry_router

__all__ = [
    "cache_router",
    "documents_router",
    "health_router",
    "query_router",
    "registry_router",
]
