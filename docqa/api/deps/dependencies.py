"""
Dependency injection container.

Process-wide components (registry, embedding cache, admission controllers,
notifier) are built lazily once and shared; request-scoped services get a
fresh AsyncSession through Depends.

Dependencies: docqa.configs, docqa.application, docqa.boundary, docqa.core
System role: DI container for service injection
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docqa.application.services import JobService, ProcessingRunner
from docqa.boundary.db import get_async_db, get_async_session_factory
from docqa.boundary.embeddings import EmbeddingProvider, build_embedding_provider
from docqa.boundary.notifications import ProcessingNotifier
from docqa.boundary.storage import FileStore
from docqa.configs import Settings, get_settings
from docqa.core.admission import (
    PROCESSING_OVERLOAD_MESSAGE,
    QUERY_OVERLOAD_MESSAGE,
    AdmissionController,
)
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.registry import DocumentRegistry
from docqa.core.retrieval import ChunkStore
from docqa.core.retrieval.orchestrator import RetrievalOrchestrator


class ServiceCache:
    """Container for cached process-wide instances."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings
        self._session_factory = None
        self._embedding_provider = None
        self._embedding_cache = None
        self._registry = None
        self._orchestrator = None
        self._processing_admission = None
        self._query_admission = None
        self._notifier = None
        self._file_store = None
        self._runner = None

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_async_session_factory()
        return self._session_factory

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        if self._embedding_provider is None:
            self._embedding_provider = build_embedding_provider(self.settings.embeddings)
        return self._embedding_provider

    @property
    def embedding_cache(self) -> EmbeddingCache:
        """Get cached embedding cache."""
        if self._embedding_cache is None:
            embeddings = self.settings.embeddings
            self._embedding_cache = EmbeddingCache(
                self.embedding_provider,
                ttl_seconds=embeddings.cache_ttl_seconds,
                max_entries=embeddings.cache_max_entries,
                cleanup_interval_seconds=embeddings.cache_cleanup_interval_seconds,
            )
        return self._embedding_cache

    @property
    def registry(self) -> DocumentRegistry:
        """Get cached document registry."""
        if self._registry is None:
            self._registry = DocumentRegistry(
                self.session_factory,
                ttl_seconds=self.settings.registry.ttl_seconds,
                refresh_interval_seconds=self.settings.registry.refresh_interval_seconds,
            )
        return self._registry

    @property
    def orchestrator(self) -> RetrievalOrchestrator:
        if self._orchestrator is None:
            retrieval = self.settings.retrieval
            self._orchestrator = RetrievalOrchestrator(
                self.registry,
                ChunkStore(retrieval),
                self.embedding_cache,
                retrieval,
            )
        return self._orchestrator

    @property
    def processing_admission(self) -> AdmissionController:
        if self._processing_admission is None:
            processing = self.settings.processing
            self._processing_admission = AdmissionController(
                "processing",
                processing.max_concurrent_jobs,
                retry_after=processing.overload_retry_after,
                overload_message=PROCESSING_OVERLOAD_MESSAGE,
            )
        return self._processing_admission

    @property
    def query_admission(self) -> AdmissionController:
        if self._query_admission is None:
            retrieval = self.settings.retrieval
            self._query_admission = AdmissionController(
                "query",
                retrieval.max_concurrent_queries,
                retry_after=retrieval.overload_retry_after,
                overload_message=QUERY_OVERLOAD_MESSAGE,
            )
        return self._query_admission

    @property
    def notifier(self) -> ProcessingNotifier:
        if self._notifier is None:
            notifications = self.settings.notifications
            self._notifier = ProcessingNotifier(
                webhook_url=notifications.webhook_url,
                timeout_seconds=notifications.timeout_seconds,
            )
        return self._notifier

    @property
    def file_store(self) -> FileStore:
        if self._file_store is None:
            self._file_store = FileStore(self.settings.processing.upload_dir)
        return self._file_store

    @property
    def runner(self) -> ProcessingRunner:
        """Get cached background processing runner."""
        if self._runner is None:
            self._runner = ProcessingRunner(
                self.session_factory,
                self.embedding_cache,
                self.registry,
                settings=self.settings.processing,
                notifier=self.notifier,
            )
        return self._runner

    def clear(self) -> None:
        """Clear all cached instances (settings are kept)."""
        self._session_factory = None
        self._embedding_provider = None
        self._embedding_cache = None
        self._registry = None
        self._orchestrator = None
        self._processing_admission = None
        self._query_admission = None
        self._notifier = None
        self._file_store = None
        self._runner = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_service_cache().settings


def get_job_service(db: AsyncSession = Depends(get_async_db)) -> JobService:
    """
    Get job service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        JobService: Job service bound to this request's session
    """
    cache = get_service_cache()
    return JobService(db=db, file_store=cache.file_store, settings=cache.settings.processing)


def get_registry() -> DocumentRegistry:
    return get_service_cache().registry


def get_orchestrator() -> RetrievalOrchestrator:
    return get_service_cache().orchestrator


def get_embedding_cache() -> EmbeddingCache:
    return get_service_cache().embedding_cache


def get_processing_admission() -> AdmissionController:
    return get_service_cache().processing_admission


def get_query_admission() -> AdmissionController:
    return get_service_cache().query_admission


def get_processing_runner() -> ProcessingRunner:
    return get_service_cache().runner
