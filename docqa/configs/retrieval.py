"""
Retrieval configuration settings.

Hybrid ranking weights, similarity thresholds per embedding space,
result limits and query admission limits.

Dependencies: pydantic, pydantic_settings
System role: Retrieval tuning configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docqa.configs.base import BaseSettings


class RetrievalSettings(BaseSettings):
    """Chunk search and multi-document query configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    vector_weight: float = Field(
        default=0.7,
        ge=0.0,
        description="Weight of cosine similarity in the hybrid composite score",
    )
    text_weight: float = Field(
        default=0.3,
        ge=0.0,
        description="Weight of lexical match in the hybrid composite score",
    )

    vector_threshold_provider: float = Field(
        default=0.3,
        description="Minimum similarity for vector search (provider space)",
    )
    vector_threshold_local: float = Field(
        default=0.05,
        description="Minimum similarity for vector search (local space)",
    )
    hybrid_threshold_provider: float = Field(
        default=0.2,
        description="Similarity floor for hybrid search (provider space)",
    )
    hybrid_threshold_local: float = Field(
        default=0.05,
        description="Similarity floor for hybrid search (local space)",
    )

    default_k: int = Field(default=5, ge=1, le=50, description="Chunks returned per document")
    max_documents: int = Field(
        default=5,
        ge=1,
        description="Maximum documents searchable in one query",
    )
    max_concurrent_queries: int = Field(
        default=20,
        ge=1,
        description="Maximum retrieval queries in flight per node",
    )
    overload_retry_after: int = Field(
        default=30,
        description="Retry-After hint (seconds) returned when saturated",
    )

    def threshold_for(self, mode: str, space: str) -> float:
        """
        Resolve the similarity threshold for a search mode and embedding space.

        Args:
            mode: "vector" or "hybrid"
            space: "local" or "provider"

        Returns:
            float: Similarity threshold
        """
        return getattr(self, f"{mode}_threshold_{space}")
