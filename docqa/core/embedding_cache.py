"""
Embedding cache.

Content-hash keyed store of embedding vectors that avoids re-calling the
provider for identical (normalized) text. Entries are written once per key
and never mutated; eviction only ever costs a recomputation.

Dependencies: hashlib, asyncio, docqa.boundary.embeddings
System role: Shared process-wide cache in front of the embedding provider
"""

import asyncio
import contextlib
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable

from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.boundary.embeddings.providers import EmbeddingProvider
from docqa.core.retrieval.lexical import normalize_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """Immutable cached vector."""

    vector: tuple[float, ...]
    created_at: float


class EmbeddingCache:
    """
    Bounded, TTL-based cache in front of an EmbeddingProvider.

    Keys are SHA-256 hashes of the embedding space plus the normalized text
    (whitespace collapsed, lowercased). Concurrent misses for one key share
    a single provider call. Provider failures propagate and are never cached.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        ttl_seconds: int = 24 * 60 * 60,
        max_entries: int = 10_000,
        cleanup_interval_seconds: int = 600,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize cache.

        Args:
            provider: Embedding provider called on misses
            ttl_seconds: Entry lifetime
            max_entries: Size bound; oldest entries are evicted first
            cleanup_interval_seconds: Period of the background cleanup task
            clock: Monotonic time source (injectable for tests)
        """
        self._provider = provider
        self._ttl_seconds = ttl_seconds
        self._max_entries = max_entries
        self._cleanup_interval_seconds = cleanup_interval_seconds
        self._clock = clock

        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Future] = {}
        self._hits = 0
        self._misses = 0
        self._cleanup_task: asyncio.Task | None = None

    @staticmethod
    def cache_key(text: str, space: EmbeddingSpace | str) -> str:
        """Stable key for a text in an embedding space."""
        space_value = EmbeddingSpace(space).value
        return hashlib.sha256(f"{space_value}\x00{normalize_text(text)}".encode("utf-8")).hexdigest()

    async def get_or_compute(self, text: str, space: EmbeddingSpace | str) -> list[float]:
        """
        Return the cached vector for text, computing it on a miss.

        Args:
            text: Text to embed
            space: Embedding space

        Returns:
            list[float]: Embedding vector

        Raises:
            Exception: Whatever the provider raised (nothing is cached)
        """
        key = self.cache_key(text, space)

        entry = self._lookup(key)
        if entry is not None:
            self._hits += 1
            return list(entry.vector)

        pending = self._inflight.get(key)
        if pending is not None:
            self._hits += 1
            try:
                return list(await asyncio.shield(pending))
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                # The computing caller was cancelled; take over the miss
                return await self.get_or_compute(text, space)

        self._misses += 1
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            vector = await self._provider.embed_query(text, space)
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so an unobserved failure does not warn
            future.exception()
            raise
        else:
            stored = self._store(key, vector)
            future.set_result(stored.vector)
            return list(stored.vector)
        finally:
            self._inflight.pop(key, None)
            if not future.done():
                # Cancelled or interrupted before the provider answered
                future.cancel()

    async def get_or_compute_many(
        self,
        texts: list[str],
        space: EmbeddingSpace | str,
    ) -> list[list[float]]:
        """
        Batch variant: all misses are embedded with one provider call.

        Args:
            texts: Texts to embed
            space: Embedding space

        Returns:
            list[list[float]]: Vectors aligned with texts
        """
        keys = [self.cache_key(text, space) for text in texts]
        results: list[tuple[float, ...] | None] = [None] * len(texts)
        missing: dict[str, str] = {}

        for position, key in enumerate(keys):
            entry = self._lookup(key)
            if entry is not None:
                self._hits += 1
                results[position] = entry.vector
            elif key not in missing:
                self._misses += 1
                missing[key] = texts[position]
            else:
                self._hits += 1

        computed: dict[str, tuple[float, ...]] = {}
        if missing:
            vectors = await self._provider.embed_documents(list(missing.values()), space)
            if len(vectors) != len(missing):
                raise ValueError(
                    f"Provider returned {len(vectors)} vectors for {len(missing)} texts"
                )
            for key, vector in zip(missing, vectors):
                computed[key] = self._store(key, vector).vector

        return [
            list(vector if vector is not None else computed[key])
            for vector, key in zip(results, keys)
        ]

    def cleanup(self) -> int:
        """
        Drop expired entries.

        Returns:
            int: Number of entries removed
        """
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> int:
        """
        Drop every entry and reset counters.

        Returns:
            int: Number of entries removed
        """
        removed = len(self._entries)
        self._entries = {}
        self._hits = 0
        self._misses = 0
        logger.info(f"{__name__}:clear - Embedding cache cleared", extra={"removed": removed})
        return removed

    def stats(self) -> dict:
        """Current size and hit/miss counters."""
        lookups = self._hits + self._misses
        return {
            "size": len(self._entries),
            "max_entries": self._max_entries,
            "ttl_seconds": self._ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
        }

    def start_cleanup(self) -> None:
        """Start the periodic cleanup task on the running loop."""
        if self._cleanup_task is None or self._cleanup_task.done():
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop_cleanup(self) -> None:
        """Cancel the periodic cleanup task."""
        if self._cleanup_task is None:
            return
        self._cleanup_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._cleanup_task
        self._cleanup_task = None

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self._cleanup_interval_seconds)
            removed = self.cleanup()
            if removed:
                logger.info(
                    f"{__name__}:_cleanup_loop - Removed expired embeddings",
                    extra={"removed": removed, "size": len(self._entries)},
                )

    def _lookup(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            return None
        return entry

    def _store(self, key: str, vector: list[float]) -> CacheEntry:
        existing = self._entries.get(key)
        if existing is not None:
            return existing

        while len(self._entries) >= self._max_entries:
            del self._entries[next(iter(self._entries))]

        entry = CacheEntry(vector=tuple(float(v) for v in vector), created_at=self._clock())
        self._entries[key] = entry
        return entry

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.created_at > self._ttl_seconds
