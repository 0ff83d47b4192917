"""
Embedding generation task.

Obtains a vector for every chunk through the embedding cache, in batches,
retrying transient provider failures with exponential backoff.

Dependencies: tenacity, docqa.core.embedding_cache
System role: Third stage of document ingestion pipeline
"""

import logging
from typing import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.exceptions import EmbeddingError

from ..models import ChunkDraft

logger = logging.getLogger(__name__)


class EmbeddingTask:
    """Attach embeddings to chunk drafts."""

    def __init__(
        self,
        cache: EmbeddingCache,
        batch_size: int = 200,
        max_attempts: int = 3,
        initial_delay: float = 1.0,
        max_delay: float = 10.0,
    ) -> None:
        """
        Initialize embedding task.

        Args:
            cache: Embedding cache in front of the provider
            batch_size: Chunks per provider call
            max_attempts: Attempts per batch before giving up
            initial_delay: First backoff in seconds
            max_delay: Backoff ceiling in seconds
        """
        self._cache = cache
        self._batch_size = batch_size
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._max_delay = max_delay

    async def embed(
        self,
        drafts: list[ChunkDraft],
        space: EmbeddingSpace,
        on_batch: Callable[[], Awaitable[None]] | None = None,
    ) -> list[ChunkDraft]:
        """
        Generate embeddings for chunk drafts.

        Args:
            drafts: Chunks from the chunking stage
            space: Embedding space of the document
            on_batch: Awaited after each batch (job heartbeat)

        Returns:
            list[ChunkDraft]: Copies of drafts with embeddings set

        Raises:
            EmbeddingError: When a batch still fails after all attempts
        """
        embedded: list[ChunkDraft] = []
        for start in range(0, len(drafts), self._batch_size):
            batch = drafts[start:start + self._batch_size]
            vectors = await self._embed_batch([draft.content for draft in batch], space)
            embedded.extend(
                draft.model_copy(update={"embedding": vector})
                for draft, vector in zip(batch, vectors)
            )
            if on_batch is not None:
                await on_batch()
        return embedded

    async def _embed_batch(self, texts: list[str], space: EmbeddingSpace) -> list[list[float]]:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(Exception),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential_jitter(initial=self._initial_delay, max=self._max_delay),
            before_sleep=lambda retry_state: logger.warning(
                f"{__name__}:_embed_batch - Retry {retry_state.attempt_number}/{self._max_attempts}"
            ),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._cache.get_or_compute_many(texts, space)
        except Exception as e:
            raise EmbeddingError(f"Failed to generate embeddings: {e}") from e
