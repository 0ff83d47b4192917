"""
Document registry.

In-memory, versioned snapshot of every active document joined with its
owner. Readers always see one whole snapshot: refresh builds a new
snapshot off to the side and swaps the reference in one assignment, so a
reader never observes a mix of old and new entries.

Dependencies: asyncio, pydantic, docqa.boundary.db.CRUD
System role: Resolves document selectors for the retrieval orchestrator
"""

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Callable, Mapping
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docqa.boundary.db.base import utcnow
from docqa.boundary.db.CRUD.document_crud import document_crud
from docqa.boundary.db.models.document_model import DocumentModel, EmbeddingSpace
from docqa.core.exceptions import DocumentNotFoundError, RegistryError

logger = logging.getLogger(__name__)


class RegistryEntry(BaseModel):
    """Immutable view of one active document joined with its owner."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    slug: str
    title: str
    subtitle: str | None = None
    owner_id: UUID
    owner_slug: str
    owner_name: str
    owner_intro_message: str | None = None
    intro_message: str | None = None
    cover: str | None = None
    embedding_space: EmbeddingSpace
    is_public: bool = True
    requires_auth: bool = False
    version: int

    @classmethod
    def from_document(cls, document: DocumentModel, version: int) -> "RegistryEntry":
        """Build an entry from a document with its owner loaded."""
        owner = document.owner
        return cls(
            id=document.id,
            slug=document.slug,
            title=document.title,
            subtitle=document.subtitle,
            owner_id=owner.id,
            owner_slug=owner.slug,
            owner_name=owner.name,
            owner_intro_message=owner.intro_message,
            intro_message=document.intro_message,
            cover=document.cover or owner.default_cover,
            embedding_space=document.embedding_space,
            is_public=document.is_public,
            requires_auth=document.requires_auth,
            version=version,
        )


@dataclass(frozen=True)
class RegistrySnapshot:
    """One consistent generation of the registry."""

    version: int
    loaded_at: datetime | None
    entries: tuple[RegistryEntry, ...] = ()
    by_slug: Mapping[str, RegistryEntry] = field(default_factory=lambda: MappingProxyType({}))
    by_id: Mapping[str, RegistryEntry] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(cls, version: int, entries: list[RegistryEntry]) -> "RegistrySnapshot":
        return cls(
            version=version,
            loaded_at=utcnow(),
            entries=tuple(entries),
            by_slug=MappingProxyType({entry.slug: entry for entry in entries}),
            by_id=MappingProxyType({str(entry.id): entry for entry in entries}),
        )

    def get(self, selector: str) -> RegistryEntry | None:
        """Look up an entry by slug, then by document id."""
        entry = self.by_slug.get(selector)
        if entry is not None:
            return entry
        try:
            return self.by_id.get(str(UUID(selector)))
        except ValueError:
            return None

    def __len__(self) -> int:
        return len(self.entries)


class DocumentRegistry:
    """
    Versioned cache of active documents.

    The version increases by one on every successful refresh and every
    entry carries the version of the snapshot it was built into. A failed
    refresh leaves the previous snapshot in place.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ttl_seconds: int = 120,
        refresh_interval_seconds: int = 120,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize an empty registry.

        Args:
            session_factory: Factory for short-lived read sessions
            ttl_seconds: Age after which ensure_fresh reloads
            refresh_interval_seconds: Period of the auto-refresh task
            clock: Monotonic time source (injectable for tests)
        """
        self._session_factory = session_factory
        self._ttl_seconds = ttl_seconds
        self._refresh_interval_seconds = refresh_interval_seconds
        self._clock = clock

        self._snapshot = RegistrySnapshot(version=0, loaded_at=None)
        self._refreshed_at: float | None = None
        self._lock = asyncio.Lock()
        self._refresh_task: asyncio.Task | None = None

    @property
    def snapshot(self) -> RegistrySnapshot:
        """Current snapshot (a stable reference for the caller's whole read)."""
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    @property
    def is_loaded(self) -> bool:
        return self._refreshed_at is not None

    @property
    def is_stale(self) -> bool:
        if self._refreshed_at is None:
            return True
        return self._clock() - self._refreshed_at > self._ttl_seconds

    async def load(self) -> RegistrySnapshot:
        """Initial load; same as refresh."""
        return await self.refresh()

    async def refresh(self) -> RegistrySnapshot:
        """
        Rebuild the snapshot from the datastore and swap it in.

        Returns:
            RegistrySnapshot: The new snapshot

        Raises:
            RegistryError: Datastore read failed (previous snapshot kept)
        """
        async with self._lock:
            version = self._snapshot.version + 1
            try:
                async with self._session_factory() as session:
                    documents = await document_crud.get_active_with_owners(session)
                    entries = [RegistryEntry.from_document(document, version) for document in documents]
            except Exception as e:
                logger.error(f"{__name__}:refresh - {type(e).__name__}: {e}")
                raise RegistryError(f"Failed to refresh document registry: {e}") from e

            snapshot = RegistrySnapshot.build(version, entries)
            self._snapshot = snapshot
            self._refreshed_at = self._clock()

        logger.info(
            f"{__name__}:refresh - Registry refreshed",
            extra={"version": snapshot.version, "document_count": len(snapshot)},
        )
        return snapshot

    async def ensure_fresh(self) -> RegistrySnapshot:
        """Refresh when older than the TTL; on failure keep serving the old snapshot."""
        if self.is_stale:
            try:
                return await self.refresh()
            except RegistryError:
                logger.warning(f"{__name__}:ensure_fresh - Serving stale registry snapshot")
        return self._snapshot

    def resolve(self, selector: str) -> RegistryEntry:
        """
        Resolve a slug or document id.

        Raises:
            DocumentNotFoundError: No active document matches
        """
        entry = self._snapshot.get(selector)
        if entry is None:
            raise DocumentNotFoundError(selector)
        return entry

    def resolve_many(
        self,
        selectors: list[str],
        snapshot: RegistrySnapshot | None = None,
    ) -> tuple[list[RegistryEntry], list[str]]:
        """
        Resolve several selectors against one snapshot.

        Args:
            selectors: Slugs or document ids
            snapshot: Snapshot to read (defaults to the current one)

        Returns:
            tuple: (entries for known selectors, unknown selectors), both in input order
        """
        if snapshot is None:
            snapshot = self._snapshot
        entries: list[RegistryEntry] = []
        missing: list[str] = []
        for selector in selectors:
            entry = snapshot.get(selector)
            if entry is None:
                missing.append(selector)
            else:
                entries.append(entry)
        return entries, missing

    def list_entries(
        self,
        owner: str | None = None,
        embedding_space: EmbeddingSpace | str | None = None,
        snapshot: RegistrySnapshot | None = None,
    ) -> list[RegistryEntry]:
        """
        Entries of a snapshot, optionally filtered.

        Args:
            owner: Owner slug
            embedding_space: Embedding space
            snapshot: Snapshot to read (defaults to the current one)

        Returns:
            list[RegistryEntry]: Matching entries in registry order
        """
        if snapshot is None:
            snapshot = self._snapshot
        space = EmbeddingSpace(embedding_space) if embedding_space else None
        return [
            entry
            for entry in snapshot.entries
            if (owner is None or entry.owner_slug == owner)
            and (space is None or entry.embedding_space == space)
        ]

    def start_auto_refresh(self) -> None:
        """Start the periodic refresh task on the running loop."""
        if self._refresh_task is None or self._refresh_task.done():
            self._refresh_task = asyncio.create_task(self._auto_refresh_loop())

    async def stop_auto_refresh(self) -> None:
        if self._refresh_task is None:
            return
        self._refresh_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._refresh_task
        self._refresh_task = None

    async def _auto_refresh_loop(self) -> None:
        while True:
            await asyncio.sleep(self._refresh_interval_seconds)
            try:
                await self.refresh()
            except RegistryError:
                # Logged in refresh; keep the loop alive
                continue
