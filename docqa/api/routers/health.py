"""
Health check API endpoints.

Routes: GET /health, GET /health/db

Dependencies: docqa.boundary.db, docqa.core.registry
System role: Health check HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.api.deps import get_registry
from docqa.boundary.db import get_async_db
from docqa.core.registry import DocumentRegistry
from docqa.models.common import CamelModel

logger = logging.getLogger(__name__)


class HealthResponse(CamelModel):
    """Health check response model."""

    status: str
    message: str
    registry_version: int | None = None
    document_count: int | None = None


router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check(registry: DocumentRegistry = Depends(get_registry)) -> HealthResponse:
    """Basic health check with registry state."""
    snapshot = registry.snapshot
    return HealthResponse(
        status="healthy" if registry.is_loaded else "degraded",
        message="Server Healthy" if registry.is_loaded else "Document registry not loaded",
        registry_version=snapshot.version,
        document_count=len(snapshot),
    )


@router.get("/db", response_model=HealthResponse)
async def health_check_db(db: AsyncSession = Depends(get_async_db)) -> HealthResponse:
    """Database health check."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"{__name__}:health_check_db - {type(e).__name__}: {e}")
        raise HTTPException(status_code=503, detail="Database unavailable")
    return HealthResponse(status="healthy", message="Database connection OK")
