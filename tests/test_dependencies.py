"""
Test suite for the dependency injection container.

Verifies lazy construction, sharing and reset of process-wide components,
and the request-scoped JobService factory.

System role: Verification of DI container
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.api.deps import get_job_service
from docqa.api.deps.dependencies import ServiceCache
from docqa.application.services import JobService, ProcessingRunner
from docqa.configs import Settings
from docqa.configs.processing import ProcessingSettings
from docqa.configs.retrieval import RetrievalSettings
from docqa.core.retrieval.orchestrator import RetrievalOrchestrator


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        processing=ProcessingSettings(max_concurrent_jobs=3, upload_dir=str(tmp_path)),
        retrieval=RetrievalSettings(max_concurrent_queries=7),
    )


@pytest.fixture
def service_cache(settings):
    with patch(
        "docqa.api.deps.dependencies.get_async_session_factory",
        return_value=MagicMock(),
    ):
        yield ServiceCache(settings)


class TestServiceCache:
    """Test suite for ServiceCache."""

    def test_components_are_built_once(self, service_cache) -> None:
        assert service_cache.registry is service_cache.registry
        assert service_cache.embedding_cache is service_cache.embedding_cache
        assert isinstance(service_cache.orchestrator, RetrievalOrchestrator)
        assert isinstance(service_cache.runner, ProcessingRunner)

    def test_admission_limits_follow_settings(self, service_cache) -> None:
        assert service_cache.processing_admission.load()["max"] == 3
        assert service_cache.query_admission.load()["max"] == 7

    def test_clear_rebuilds_components_but_keeps_settings(self, service_cache, settings) -> None:
        registry = service_cache.registry

        service_cache.clear()

        assert service_cache.registry is not registry
        assert service_cache.settings is settings


class TestGetJobService:
    """Test suite for get_job_service factory."""

    def test_returns_job_service_bound_to_session(self) -> None:
        # Arrange
        db = AsyncMock(spec=AsyncSession)

        # Act
        service = get_job_service(db=db)

        # Assert
        assert isinstance(service, JobService)
        assert service.db is db
