"""
Configuration settings for the document processing pipeline.

Chunk sizing, batch sizes, upload limits, staleness and retry policy.

Dependencies: pydantic, pydantic_settings
System role: Centralized pipeline configuration
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from docqa.configs.base import BaseSettings


class ProcessingSettings(BaseSettings):
    """Settings for document ingestion pipeline."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PROCESSING_",
        case_sensitive=False,
        extra="ignore",
    )

    # Chunking settings (token based, converted with chars_per_token)
    chunk_size_tokens: int = Field(
        default=500,
        ge=100,
        le=5000,
        description="Target chunk size in approximate tokens",
    )
    chunk_overlap_tokens: int = Field(
        default=100,
        ge=0,
        description="Overlap between consecutive chunks in approximate tokens",
    )
    chars_per_token: int = Field(
        default=4,
        ge=1,
        description="Characters per token used to approximate token counts",
    )

    # Batching
    embedding_batch_size: int = Field(
        default=200,
        ge=1,
        description="Chunks embedded per provider call",
    )
    insert_batch_size: int = Field(
        default=200,
        ge=1,
        description="Chunk rows written per flush",
    )

    # Upload validation
    max_file_size_bytes: int = Field(
        default=100 * 1024 * 1024,
        description="Maximum accepted upload size in bytes",
    )
    allowed_content_types: list[str] = Field(
        default=["application/pdf", "text/plain", "text/markdown"],
        description="MIME types accepted for ingestion",
    )
    upload_dir: str = Field(
        default="./data/uploads",
        description="Local directory for uploaded source files",
    )

    # Job lifecycle
    stale_after_seconds: int = Field(
        default=300,
        description="Processing jobs untouched for longer than this are treated as abandoned",
    )
    max_concurrent_jobs: int = Field(
        default=5,
        ge=1,
        description="Maximum processing jobs in flight per node",
    )
    overload_retry_after: int = Field(
        default=30,
        description="Retry-After hint (seconds) returned when saturated",
    )

    # Retry policy for provider calls
    retry_max_attempts: int = Field(default=3, ge=1, description="Attempts per provider call")
    retry_initial_delay: float = Field(default=1.0, description="Initial backoff in seconds")
    retry_max_delay: float = Field(default=10.0, description="Maximum backoff in seconds")

    @model_validator(mode="after")
    def _check_overlap(self) -> "ProcessingSettings":
        if self.chunk_overlap_tokens >= self.chunk_size_tokens:
            raise ValueError("chunk_overlap_tokens must be smaller than chunk_size_tokens")
        return self

    @property
    def chunk_size_chars(self) -> int:
        """Chunk size converted to characters."""
        return self.chunk_size_tokens * self.chars_per_token

    @property
    def chunk_overlap_chars(self) -> int:
        """Chunk overlap converted to characters."""
        return self.chunk_overlap_tokens * self.chars_per_token
