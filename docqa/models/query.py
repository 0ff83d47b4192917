"""
Query schemas.

Dependencies: pydantic
System role: Retrieval API contracts
"""

import uuid

from pydantic import Field

from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.core.retrieval.chunk_store import SearchMode
from docqa.models.common import CamelModel
from docqa.models.document import DocumentEntryResponse


class QueryRequest(CamelModel):
    """Multi-document query."""

    document_selectors: list[str] | str = Field(
        description="Slugs or ids, as a list or a single 'a+b' / 'a,b' string",
    )
    query_text: str = Field(min_length=1, max_length=4000)
    query_vector: list[float] | None = Field(
        default=None,
        description="Pre-computed query embedding; embedded server-side when omitted",
    )
    k: int | None = Field(default=None, ge=1, le=50, description="Chunks per document")
    mode: SearchMode = SearchMode.HYBRID


class ChunkResponse(CamelModel):
    """A ranked chunk with its document tags."""

    chunk_id: uuid.UUID
    chunk_index: int
    document_id: uuid.UUID
    document_slug: str
    document_title: str
    owner_slug: str
    page_number: int | None = None
    content: str
    similarity: float
    text_score: float
    score: float


class QueryResponse(CamelModel):
    """Grouped query results."""

    chunks: list[ChunkResponse]
    documents: list[DocumentEntryResponse]
    embedding_space: EmbeddingSpace
    registry_version: int
