"""
Chunk ORM model.

A bounded span of a document's text with its embedding vector and a
metadata attribute bag (page number lives in the bag). On PostgreSQL the
embedding is a pgvector column and the table carries a generated
`content_tsv` tsvector with a GIN index for full-text ranking.

Dependencies: sqlalchemy, pgvector, docqa.boundary.db.base
System role: Searchable chunk persistence
"""

import uuid
from typing import TYPE_CHECKING, Any

from pgvector.sqlalchemy import Vector
from sqlalchemy import DDL, JSON, ForeignKey, Integer, Text, UniqueConstraint, event, literal_column
from sqlalchemy.dialects.postgresql import TSVECTOR
from sqlalchemy.orm import Mapped, mapped_column, relationship

from docqa.boundary.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from docqa.boundary.db.models.document_model import DocumentModel

TEXT_SEARCH_CONFIG = "english"


class ChunkModel(Base, UUIDMixin, TimestampMixin):
    """
    Chunk ORM model.

    Attributes:
        id: UUID primary key
        document_id: FK to documents.id (CASCADE on delete)
        chunk_index: Position within the document; stable ranking tie-break
        content: Chunk text
        attributes: Metadata bag stored in the "metadata" column
            (page_number, char_start, char_end, tokens_approx, page_markers_found)
        embedding: pgvector column (JSON float list on SQLite)

    Constraints:
        (document_id, chunk_index): UNIQUE
    """

    __tablename__ = "chunks"
    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="uq_chunks_document_index"),
    )

    document_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    # "metadata" is reserved on declarative classes
    attributes: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )
    # No fixed dimension: local and provider spaces share the table
    embedding: Mapped[list[float]] = mapped_column(
        Vector().with_variant(JSON(), "sqlite"),
        nullable=False,
    )

    document: Mapped["DocumentModel"] = relationship("DocumentModel", back_populates="chunks")


# Generated server-side; not mapped so inserts never write it
content_tsv = literal_column(f"{ChunkModel.__tablename__}.content_tsv", type_=TSVECTOR)

event.listen(
    Base.metadata,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS vector").execute_if(dialect="postgresql"),
)
event.listen(
    ChunkModel.__table__,
    "after_create",
    DDL(
        "ALTER TABLE chunks ADD COLUMN IF NOT EXISTS content_tsv tsvector "
        f"GENERATED ALWAYS AS (to_tsvector('{TEXT_SEARCH_CONFIG}', content)) STORED"
    ).execute_if(dialect="postgresql"),
)
event.listen(
    ChunkModel.__table__,
    "after_create",
    DDL(
        "CREATE INDEX IF NOT EXISTS ix_chunks_content_tsv ON chunks USING GIN (content_tsv)"
    ).execute_if(dialect="postgresql"),
)
