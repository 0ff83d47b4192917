"""
Chunk CRUD operations.

Batch insertion guarded by a document-exists check, per-document reads,
in-database hybrid ranking (pgvector and full-text) and replacement on
re-ingest.

Dependencies: sqlalchemy, pgvector, docqa.boundary.db.models, docqa.core.exceptions
System role: Chunk persistence half of the Chunk Store
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import cast, delete, func, literal, or_, select
from sqlalchemy.dialects.postgresql import REGCONFIG
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.CRUD.base_crud import BaseCRUD
from docqa.boundary.db.models.chunk_model import TEXT_SEARCH_CONFIG, ChunkModel, content_tsv
from docqa.boundary.db.models.document_model import DocumentModel
from docqa.core.exceptions import IntegrityViolationError


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel."""

    def __init__(self) -> None:
        """Initialize ChunkCRUD with ChunkModel."""
        super().__init__(ChunkModel)

    async def insert_batch(
        self,
        session: AsyncSession,
        document_id: UUID,
        rows: list[dict[str, Any]],
    ) -> int:
        """
        Insert a batch of chunks for one document.

        The owning document must already be flushed in this session.
        A missing document is a programming error, not a retryable one.

        Args:
            session: Async database session
            document_id: Owning document UUID
            rows: Chunk field dicts (chunk_index, content, attributes, embedding)

        Returns:
            int: Number of rows written

        Raises:
            IntegrityViolationError: Document row does not exist
        """
        if not rows:
            return 0

        owner_check = await session.execute(
            select(DocumentModel.id).where(DocumentModel.id == document_id)
        )
        if owner_check.scalar_one_or_none() is None:
            raise IntegrityViolationError(str(document_id))

        session.add_all(ChunkModel(document_id=document_id, **row) for row in rows)
        await session.flush()
        return len(rows)

    async def get_for_document(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> Sequence[ChunkModel]:
        """
        Retrieve all chunks of a document in insertion order.

        Args:
            session: Async database session
            document_id: Owning document UUID

        Returns:
            Sequence of ChunkModels ordered by chunk_index
        """
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def search_ranked(
        self,
        session: AsyncSession,
        document_id: UUID,
        query_text: str,
        query_vector: Sequence[float],
        threshold: float,
        k: int,
        hybrid: bool = True,
        vector_weight: float = 0.7,
        text_weight: float = 0.3,
    ) -> list[tuple[ChunkModel, float, float, float]]:
        """
        Rank one document's chunks inside PostgreSQL.

        Similarity is `1 - (embedding <=> query)`. Hybrid mode adds
        `ts_rank(content_tsv, plainto_tsquery(...))` and admits a chunk when
        it clears the similarity threshold or matches every query term.

        Args:
            session: Async session bound to PostgreSQL
            document_id: Owning document UUID
            query_text: Raw query text
            query_vector: Query embedding
            threshold: Similarity threshold for the mode and space
            k: Maximum rows
            hybrid: Blend in full-text rank (False for pure vector search)
            vector_weight: Weight of similarity in the composite score
            text_weight: Weight of text rank in the composite score

        Returns:
            list: (chunk, similarity, text_score, score) ordered by score desc, chunk_index asc
        """
        similarity = 1 - ChunkModel.embedding.cosine_distance([float(value) for value in query_vector])
        if hybrid:
            tsquery = func.plainto_tsquery(cast(TEXT_SEARCH_CONFIG, REGCONFIG), query_text)
            text_score = func.ts_rank(content_tsv, tsquery)
            score = vector_weight * similarity + text_weight * text_score
            qualifies = or_(similarity > threshold, content_tsv.op("@@")(tsquery))
        else:
            text_score = literal(0.0)
            score = similarity
            qualifies = similarity >= threshold

        score_column = score.label("score")
        stmt = (
            select(
                ChunkModel,
                similarity.label("similarity"),
                text_score.label("text_score"),
                score_column,
            )
            .where(ChunkModel.document_id == document_id, qualifies)
            .order_by(score_column.desc(), ChunkModel.chunk_index)
            .limit(k)
        )
        result = await session.execute(stmt)
        return [
            (chunk, float(row_similarity), float(row_text_score), float(row_score))
            for chunk, row_similarity, row_text_score, row_score in result.all()
        ]

    async def count_for_document(self, session: AsyncSession, document_id: UUID) -> int:
        """Count chunks stored for a document."""
        stmt = select(func.count(ChunkModel.id)).where(ChunkModel.document_id == document_id)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def delete_for_document(self, session: AsyncSession, document_id: UUID) -> int:
        """
        Delete every chunk of a document (re-ingest replaces chunks wholesale).

        Args:
            session: Async database session
            document_id: Owning document UUID

        Returns:
            int: Number of rows deleted
        """
        stmt = delete(ChunkModel).where(ChunkModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.rowcount or 0


chunk_crud = ChunkCRUD()
