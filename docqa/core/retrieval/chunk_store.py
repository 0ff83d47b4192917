"""
Chunk store hybrid search.

Ranks one document's chunks by cosine similarity (vector mode) or by a
weighted blend of similarity and lexical match (hybrid mode). The final
order is always composite score descending, then chunk_index ascending,
independent of how rows come back from the datastore.

On PostgreSQL the scoring runs in SQL through pgvector and full-text
search; elsewhere the same rules run in process with numpy.

Dependencies: numpy, pydantic, sqlalchemy, docqa.boundary.db.CRUD
System role: Retrieval half of the Chunk Store
"""

import enum
import logging
from typing import Any, Sequence
from uuid import UUID

import numpy as np
from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.CRUD.chunk_crud import chunk_crud
from docqa.boundary.db.models.chunk_model import ChunkModel
from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.configs.retrieval import RetrievalSettings
from docqa.core.exceptions import DatastoreError, ValidationError
from docqa.core.retrieval.lexical import matches_all_terms, text_match_score

logger = logging.getLogger(__name__)

# Scores are rounded before sorting so float noise cannot reorder equal scores
SCORE_PRECISION = 10


class SearchMode(str, enum.Enum):
    """Ranking strategy."""

    VECTOR = "vector"
    HYBRID = "hybrid"


class ChunkHit(BaseModel):
    """One ranked chunk of a single document."""

    chunk_id: UUID
    chunk_index: int
    content: str
    page_number: int | None = None
    similarity: float = Field(description="Cosine similarity to the query vector")
    text_score: float = Field(default=0.0, description="Lexical match in [0, 1]")
    score: float = Field(description="Composite relevance used for ordering")


def page_number_from(attributes: dict[str, Any] | None) -> int | None:
    """
    Read the page number out of a chunk's metadata bag.

    Args:
        attributes: Chunk metadata bag

    Returns:
        int | None: Page number, or None when absent or malformed
    """
    if not attributes:
        return None
    value = attributes.get("page_number", attributes.get("page"))
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def cosine_similarities(query_vector: Sequence[float], vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """
    Cosine similarity of a query against each stored vector.

    Args:
        query_vector: Query embedding
        vectors: Stored embeddings (all the same dimension)

    Returns:
        np.ndarray: One similarity per stored vector (0.0 for zero vectors)

    Raises:
        ValidationError: Dimensions do not match
    """
    query = np.asarray(query_vector, dtype=np.float64)
    matrix = np.asarray(vectors, dtype=np.float64)
    if matrix.ndim != 2 or query.ndim != 1 or matrix.shape[1] != query.shape[0]:
        raise ValidationError(
            f"Query vector has {query.shape[-1] if query.ndim else 0} dimensions, "
            f"stored chunks have {matrix.shape[-1] if matrix.ndim == 2 else 'mixed'}",
            field="queryVector",
            code="dimension_mismatch",
        )

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    return np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)


class ChunkStore:
    """Hybrid (vector + lexical) ranked retrieval over one document's chunks."""

    def __init__(self, settings: RetrievalSettings | None = None) -> None:
        self._settings = settings or RetrievalSettings()

    async def search(
        self,
        session: AsyncSession,
        document_id: UUID,
        query_text: str,
        query_vector: Sequence[float],
        k: int | None = None,
        mode: SearchMode = SearchMode.HYBRID,
        space: EmbeddingSpace = EmbeddingSpace.PROVIDER,
    ) -> list[ChunkHit]:
        """
        Search one document's chunks.

        PostgreSQL scores, filters and orders in SQL (pgvector `<=>`,
        `ts_rank`, `@@ plainto_tsquery`). Other dialects load the document's
        chunks and rank them in process with the same rules.

        Args:
            session: Async database session
            document_id: Immutable document id
            query_text: Raw query text (lexical half)
            query_vector: Query embedding in the document's space
            k: Maximum hits (defaults to settings.default_k)
            mode: vector or hybrid
            space: Embedding space, selects the similarity threshold

        Returns:
            list[ChunkHit]: Hits in composite-score order
        """
        mode = SearchMode(mode)
        k = k or self._settings.default_k

        if session.get_bind().dialect.name == "postgresql":
            hits = await self._search_in_database(session, document_id, query_text, query_vector, k, mode, space)
        else:
            chunks = await chunk_crud.get_for_document(session, document_id)
            hits = self.rank(chunks, query_text, query_vector, k=k, mode=mode, space=space)

        logger.info(
            f"{__name__}:search - Ranked chunks",
            extra={
                "document_id": str(document_id),
                "returned": len(hits),
                "mode": mode.value,
            },
        )
        return hits

    async def _search_in_database(
        self,
        session: AsyncSession,
        document_id: UUID,
        query_text: str,
        query_vector: Sequence[float],
        k: int,
        mode: SearchMode,
        space: EmbeddingSpace,
    ) -> list[ChunkHit]:
        try:
            rows = await chunk_crud.search_ranked(
                session,
                document_id,
                query_text,
                query_vector,
                threshold=self._settings.threshold_for(mode.value, EmbeddingSpace(space).value),
                k=k,
                hybrid=mode == SearchMode.HYBRID,
                vector_weight=self._settings.vector_weight,
                text_weight=self._settings.text_weight,
            )
        except DBAPIError as e:
            logger.error(f"{__name__}:search - {type(e).__name__}: {e}")
            raise DatastoreError(f"Chunk search failed: {e.orig}", stage="search") from e

        hits = [
            ChunkHit(
                chunk_id=chunk.id,
                chunk_index=chunk.chunk_index,
                content=chunk.content,
                page_number=page_number_from(chunk.attributes),
                similarity=similarity,
                text_score=text_score,
                score=round(score, SCORE_PRECISION),
            )
            for chunk, similarity, text_score, score in rows
        ]
        hits.sort(key=lambda hit: (-hit.score, hit.chunk_index))
        return hits

    def rank(
        self,
        chunks: Sequence[ChunkModel],
        query_text: str,
        query_vector: Sequence[float],
        k: int | None = None,
        mode: SearchMode = SearchMode.HYBRID,
        space: EmbeddingSpace = EmbeddingSpace.PROVIDER,
    ) -> list[ChunkHit]:
        """
        Score, filter and order candidate chunks in process.

        Hybrid mode admits a chunk that clears the similarity threshold or
        contains every query term.

        Args:
            chunks: Candidate chunks in any order
            query_text: Raw query text
            query_vector: Query embedding
            k: Maximum hits (defaults to settings.default_k)
            mode: vector or hybrid
            space: Embedding space

        Returns:
            list[ChunkHit]: At most k hits, score descending, chunk_index ascending
        """
        if not chunks:
            return []

        mode = SearchMode(mode)
        k = k or self._settings.default_k
        threshold = self._settings.threshold_for(mode.value, EmbeddingSpace(space).value)
        similarities = cosine_similarities(query_vector, [chunk.embedding for chunk in chunks])

        hits: list[ChunkHit] = []
        for chunk, similarity in zip(chunks, similarities):
            similarity = float(similarity)
            if mode == SearchMode.VECTOR:
                if similarity < threshold:
                    continue
                text_score = 0.0
                score = similarity
            else:
                if similarity <= threshold and not matches_all_terms(query_text, chunk.content):
                    continue
                text_score = text_match_score(query_text, chunk.content)
                score = (
                    self._settings.vector_weight * similarity
                    + self._settings.text_weight * text_score
                )

            hits.append(
                ChunkHit(
                    chunk_id=chunk.id,
                    chunk_index=chunk.chunk_index,
                    content=chunk.content,
                    page_number=page_number_from(chunk.attributes),
                    similarity=similarity,
                    text_score=text_score,
                    score=round(score, SCORE_PRECISION),
                )
            )

        hits.sort(key=lambda hit: (-hit.score, hit.chunk_index))
        return hits[:k]
