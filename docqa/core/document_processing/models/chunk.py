"""
Chunk draft model for the document processing pipeline.

A chunk as produced by the chunking task, before it is persisted.

Dependencies: pydantic
System role: Data structure passed between chunk, embed and store stages
"""

from typing import Any

from pydantic import BaseModel, Field


class ChunkDraft(BaseModel):
    """Document chunk with optional embedding vector."""

    chunk_index: int = Field(description="Position within the document (stable tie-break key)")
    content: str = Field(description="Chunk text content")
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Metadata bag (page_number, char_start, char_end, tokens_approx, page_markers_found)",
    )
    embedding: list[float] | None = Field(default=None, description="Embedding vector")

    def to_row(self) -> dict[str, Any]:
        """Column values for ChunkCRUD.insert_batch."""
        return {
            "chunk_index": self.chunk_index,
            "content": self.content,
            "attributes": self.attributes,
            "embedding": self.embedding,
        }
