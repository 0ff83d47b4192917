"""
Embedding cache schemas.

Dependencies: pydantic
System role: Cache maintenance API contracts
"""

from docqa.models.common import CamelModel


class CacheStatsResponse(CamelModel):
    size: int
    max_entries: int
    ttl_seconds: int
    hits: int
    misses: int
    hit_rate: float


class CacheClearResponse(CamelModel):
    success: bool
    removed: int
