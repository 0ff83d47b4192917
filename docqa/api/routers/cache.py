"""
Embedding cache API endpoints.

Routes: GET /cache/stats, POST /cache/clear

Dependencies: docqa.core.embedding_cache, docqa.models
System role: Embedding cache maintenance HTTP API
"""

from fastapi import APIRouter, Depends

from docqa.api.deps import get_embedding_cache
from docqa.core.embedding_cache import EmbeddingCache
from docqa.models.cache import CacheClearResponse, CacheStatsResponse

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(cache: EmbeddingCache = Depends(get_embedding_cache)) -> CacheStatsResponse:
    """Current embedding cache size and hit rate."""
    return CacheStatsResponse(**cache.stats())


@router.post("/clear", response_model=CacheClearResponse)
async def clear_cache(cache: EmbeddingCache = Depends(get_embedding_cache)) -> CacheClearResponse:
    """Drop every cached embedding."""
    return CacheClearResponse(success=True, removed=cache.clear())
