"""
Multi-document retrieval orchestrator.

Validates a set of document selectors against one registry snapshot, embeds
the query once in the documents' shared embedding space, and searches each
document in turn.

Dependencies: pydantic, docqa.core.registry, docqa.core.retrieval.chunk_store
System role: Entry point for POST /query
"""

import logging
from typing import Iterable, Sequence
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.configs.retrieval import RetrievalSettings
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.exceptions import EmbeddingError, ValidationError
from docqa.core.registry.document_registry import DocumentRegistry, RegistryEntry
from docqa.core.registry.selectors import parse_selectors
from docqa.core.retrieval.chunk_store import ChunkStore, SearchMode
from docqa.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


class RetrievedChunk(BaseModel):
    """A ranked chunk tagged with the document it came from."""

    chunk_id: UUID
    chunk_index: int
    document_id: UUID
    document_slug: str
    document_title: str
    owner_slug: str
    page_number: int | None = None
    content: str
    similarity: float
    text_score: float
    score: float


class QueryResult(BaseModel):
    """Chunks grouped per document in selector order."""

    chunks: list[RetrievedChunk]
    documents: list[RegistryEntry]
    embedding_space: EmbeddingSpace
    registry_version: int


class RetrievalOrchestrator:
    """Validate multi-document queries and fan out per-document search."""

    def __init__(
        self,
        registry: DocumentRegistry,
        chunk_store: ChunkStore,
        embedding_cache: EmbeddingCache,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self._registry = registry
        self._chunk_store = chunk_store
        self._embedding_cache = embedding_cache
        self._settings = settings or RetrievalSettings()

    def validate(self, selectors: str | Iterable[str] | None) -> tuple[list[RegistryEntry], int]:
        """
        Resolve selectors and enforce the multi-document rules.

        Checks run in a fixed order: none given, too many, unknown,
        mixed owners, mixed embedding spaces.

        Args:
            selectors: Selector string ("a+b") or list of selectors

        Returns:
            tuple: (entries in selector order, registry version they came from)

        Raises:
            ValidationError: First rule that fails, with a machine-readable code
        """
        parsed = parse_selectors(selectors)
        if not parsed:
            raise ValidationError(
                "At least one document must be specified.",
                field="documentSelectors",
                code="no_documents",
            )

        max_documents = self._settings.max_documents
        if len(parsed) > max_documents:
            raise ValidationError(
                f"Maximum {max_documents} documents can be searched simultaneously. "
                f"You specified {len(parsed)}.",
                field="documentSelectors",
                code="too_many_documents",
            )

        snapshot = self._registry.snapshot
        entries, missing = self._registry.resolve_many(parsed, snapshot)
        if missing:
            raise ValidationError(
                f"The following document(s) are not available: {', '.join(missing)}",
                field="documentSelectors",
                code="documents_not_available",
            )

        # A slug and an id can name the same document
        unique: dict[UUID, RegistryEntry] = {}
        for entry in entries:
            unique.setdefault(entry.id, entry)
        entries = list(unique.values())

        owners: dict[UUID, str] = {}
        for entry in entries:
            owners.setdefault(entry.owner_id, entry.owner_name or entry.owner_slug)
        if len(owners) > 1:
            raise ValidationError(
                f"Cannot combine documents from different owners: {', '.join(owners.values())}",
                field="documentSelectors",
                code="mixed_owners",
            )

        spaces = sorted({entry.embedding_space.value for entry in entries})
        if len(spaces) > 1:
            raise ValidationError(
                f"Cannot combine documents with different embedding types: {', '.join(spaces)}",
                field="documentSelectors",
                code="mixed_embedding_spaces",
            )

        return entries, snapshot.version

    async def query(
        self,
        session: AsyncSession,
        selectors: str | Iterable[str] | None,
        query_text: str,
        query_vector: Sequence[float] | None = None,
        k: int | None = None,
        mode: SearchMode = SearchMode.HYBRID,
    ) -> QueryResult:
        """
        Run a query across one or more documents.

        Args:
            session: Async database session
            selectors: Document selectors
            query_text: Query text
            query_vector: Pre-computed query embedding (embedded here if None)
            k: Chunks per document
            mode: vector or hybrid

        Returns:
            QueryResult: Tagged chunks, resolved documents, space and registry version

        Raises:
            ValidationError: Invalid selectors or empty query
            EmbeddingError: Query embedding failed
        """
        if not query_text or not query_text.strip():
            raise ValidationError("Query text must not be empty.", field="queryText", code="empty_query")

        await self._registry.ensure_fresh()
        entries, version = self.validate(selectors)
        space = entries[0].embedding_space

        if query_vector is None:
            try:
                query_vector = await self._embedding_cache.get_or_compute(query_text, space)
            except Exception as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:query - Query embedding failed",
                    e,
                    embedding_space=space,
                )
                raise EmbeddingError(f"Failed to embed query: {e}") from e

        chunks: list[RetrievedChunk] = []
        for entry in entries:
            hits = await self._chunk_store.search(
                session,
                entry.id,
                query_text,
                query_vector,
                k=k,
                mode=mode,
                space=space,
            )
            chunks.extend(
                RetrievedChunk(
                    chunk_id=hit.chunk_id,
                    chunk_index=hit.chunk_index,
                    document_id=entry.id,
                    document_slug=entry.slug,
                    document_title=entry.title,
                    owner_slug=entry.owner_slug,
                    page_number=hit.page_number,
                    content=hit.content,
                    similarity=hit.similarity,
                    text_score=hit.text_score,
                    score=hit.score,
                )
                for hit in hits
            )

        log_with_context(
            logger,
            logging.INFO,
            f"{__name__}:query - Query complete",
            documents="+".join(entry.slug for entry in entries),
            chunk_count=len(chunks),
            embedding_space=space,
            registry_version=version,
            mode=SearchMode(mode),
        )
        return QueryResult(
            chunks=chunks,
            documents=entries,
            embedding_space=space,
            registry_version=version,
        )
