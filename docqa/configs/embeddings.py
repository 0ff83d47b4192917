"""
Embedding provider and cache configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Embedding model and cache configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docqa.configs.base import BaseSettings


class EmbeddingSettings(BaseSettings):
    """Embedding models per space and embedding cache bounds."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="EMBEDDING_",
        case_sensitive=False,
        extra="ignore",
    )

    provider_model: str = Field(
        default="models/gemini-embedding-001",
        description="Google embedding model for the provider space",
    )
    local_model: str = Field(
        default="sentence-transformers/all-MiniLM-L6-v2",
        description="Sentence-transformers model for the local space",
    )

    cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        description="Lifetime of cached embeddings",
    )
    cache_max_entries: int = Field(
        default=10_000,
        ge=1,
        description="Maximum cached embeddings before oldest are evicted",
    )
    cache_cleanup_interval_seconds: int = Field(
        default=600,
        description="Interval of the background cache cleanup task",
    )
