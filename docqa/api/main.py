"""
FastAPI application with assembled routers.

Initializes the FastAPI app, starts stale-job recovery, the registry
auto-refresh and embedding cache cleanup tasks, and configures the uvicorn
server.

Dependencies: fastapi, docqa.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docqa.api.deps.dependencies import get_service_cache
from docqa.boundary.db import get_async_engine
from docqa.core.exceptions import RegistryError
from docqa.observability import configure_logging
from docqa.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import (
    cache_router,
    documents_router,
    health_router,
    query_router,
    registry_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events.
    """
    cache = get_service_cache()
    settings = cache.settings
    configure_logging(settings.log_level)

    # Startup
    try:
        await cache.registry.load()
    except RegistryError as e:
        logger.error(f"{__name__}:lifespan - Starting with empty registry: {e}")

    cache.runner.start_recovery(cache.processing_admission)

    if settings.registry.auto_refresh:
        cache.registry.start_auto_refresh()
    cache.embedding_cache.start_cleanup()
    logger.info(
        f"{__name__}:lifespan - Background tasks started",
        extra={"environment": settings.environment, "registry_version": cache.registry.version},
    )

    yield

    # Shutdown
    await cache.runner.stop()
    await cache.registry.stop_auto_refresh()
    await cache.embedding_cache.stop_cleanup()
    await cache.notifier.drain()
    cache.clear()
    await get_async_engine().dispose()
    logger.info(f"{__name__}:lifespan - Shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="DocQA Retrieval API",
        description="Multi-tenant document ingestion and hybrid retrieval",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(documents_router, prefix="/api/v1")
    app.include_router(registry_router, prefix="/api/v1")
    app.include_router(query_router, prefix="/api/v1")
    app.include_router(cache_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "docqa.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
