"""
Tests for ProcessingRunner.

System role: Verification of background runs and startup recovery
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.application.services import ProcessingRunner
from docqa.boundary.db.models import EmbeddingSpace, JobStatus
from docqa.boundary.embeddings.providers import EmbeddingProvider
from docqa.configs.processing import ProcessingSettings
from docqa.core.admission import AdmissionController
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.exceptions import RegistryError
from docqa.core.registry import DocumentRegistry

from tests.conftest import CountingEmbeddings, StaticExtractor, page_text

SETTINGS = ProcessingSettings(
    chunk_size_tokens=100,
    chunk_overlap_tokens=0,
    retry_max_attempts=1,
    retry_initial_delay=0.01,
    retry_max_delay=0.01,
)


@pytest.fixture
def registry(session_factory) -> DocumentRegistry:
    return DocumentRegistry(session_factory)


@pytest.fixture
def runner(session_factory, embedding_cache, registry) -> ProcessingRunner:
    return ProcessingRunner(
        session_factory,
        embedding_cache,
        registry,
        settings=SETTINGS,
        extractor=StaticExtractor([page_text(1), page_text(2)]),
    )


class TestRunJob:
    """Test suite for ProcessingRunner.run_job."""

    @pytest.mark.asyncio
    async def test_success_releases_slot_and_publishes_document(
        self, runner, registry, make_owner, make_job, test_async_db
    ) -> None:
        # Arrange
        owner = await make_owner()
        job = await make_job(owner, slug="handbook")
        admission = AdmissionController("processing", max_concurrent=1)
        ticket = admission.try_acquire()

        # Act
        result = await runner.run_job(job.id, ticket)

        # Assert
        assert result is not None
        assert result.chunk_count > 0
        assert admission.active == 0
        assert registry.resolve("handbook").id == job.document_id
        await test_async_db.refresh(job)
        assert job.status == JobStatus.READY

    @pytest.mark.asyncio
    async def test_failure_is_recorded_and_slot_released(
        self, session_factory, registry, make_owner, make_job, test_async_db
    ) -> None:
        # Arrange
        embeddings = CountingEmbeddings(fail_times=10)
        cache = EmbeddingCache(
            EmbeddingProvider.from_instances(
                {EmbeddingSpace.PROVIDER: embeddings, EmbeddingSpace.LOCAL: embeddings}
            )
        )
        runner = ProcessingRunner(
            session_factory, cache, registry, settings=SETTINGS, extractor=StaticExtractor([page_text(1)])
        )
        owner = await make_owner()
        job = await make_job(owner)
        admission = AdmissionController("processing", max_concurrent=1)

        # Act
        result = await runner.run_job(job.id, admission.try_acquire())

        # Assert
        assert result is None
        assert admission.active == 0
        assert not registry.is_loaded
        await test_async_db.refresh(job)
        assert job.status == JobStatus.ERROR

    @pytest.mark.asyncio
    async def test_registry_refresh_failure_does_not_fail_the_run(
        self, session_factory, embedding_cache, make_owner, make_job
    ) -> None:
        registry = MagicMock()
        registry.refresh = AsyncMock(side_effect=RegistryError("registry down"))
        runner = ProcessingRunner(
            session_factory, embedding_cache, registry, settings=SETTINGS, extractor=StaticExtractor([page_text(1)])
        )
        owner = await make_owner()
        job = await make_job(owner)

        result = await runner.run_job(job.id)

        assert result is not None
        registry.refresh.assert_awaited_once()


class TestRecoverStaleJobs:
    """Test suite for startup recovery."""

    @pytest.mark.asyncio
    async def test_only_stale_jobs_are_reset(self, runner, make_owner, make_job, test_async_db) -> None:
        # Arrange
        owner = await make_owner()
        stale = await make_job(owner, slug="stale", status=JobStatus.PROCESSING, updated_minutes_ago=20)
        healthy = await make_job(owner, slug="healthy", status=JobStatus.PROCESSING, updated_minutes_ago=1)
        await make_job(owner, slug="waiting", status=JobStatus.PENDING, updated_minutes_ago=60)

        # Act
        recovered = await runner.recover_stale_jobs()

        # Assert
        assert recovered == [stale.id]
        await test_async_db.refresh(stale)
        await test_async_db.refresh(healthy)
        assert stale.status == JobStatus.PENDING
        assert healthy.status == JobStatus.PROCESSING


class TestResumePendingJobs:
    """Test suite for re-scheduling jobs after a restart."""

    @pytest.mark.asyncio
    async def test_recovered_and_pending_jobs_are_processed(
        self, runner, registry, make_owner, make_job, test_async_db
    ) -> None:
        # Arrange
        owner = await make_owner()
        stale = await make_job(owner, slug="stale", status=JobStatus.PROCESSING, updated_minutes_ago=20)
        waiting = await make_job(owner, slug="waiting", status=JobStatus.PENDING, updated_minutes_ago=60)
        admission = AdmissionController("processing", max_concurrent=1)

        # Act
        runner.start_recovery(admission)
        await runner.drain()

        # Assert
        for job in (stale, waiting):
            await test_async_db.refresh(job)
            assert job.status == JobStatus.READY
        assert admission.active == 0
        assert {entry.slug for entry in registry.snapshot.entries} == {"stale", "waiting"}

    @pytest.mark.asyncio
    async def test_waits_for_a_free_slot(self, runner, make_owner, make_job, test_async_db) -> None:
        # Arrange
        owner = await make_owner()
        job = await make_job(owner, slug="waiting")
        admission = AdmissionController("processing", max_concurrent=1)
        held = admission.try_acquire()

        # Act
        resume = asyncio.create_task(runner.resume_pending_jobs(admission, poll_interval=0.01))
        await asyncio.sleep(0.05)
        scheduled_while_saturated = resume.done()
        held.release()
        scheduled = await asyncio.wait_for(resume, timeout=1.0)
        await runner.drain()

        # Assert
        assert scheduled_while_saturated is False
        assert scheduled == [job.id]
        await test_async_db.refresh(job)
        assert job.status == JobStatus.READY
        assert admission.active == 0

    @pytest.mark.asyncio
    async def test_stop_cancels_recovery_waiting_for_a_slot(self, runner, make_owner, make_job) -> None:
        # Arrange
        await make_job(await make_owner())
        admission = AdmissionController("processing", max_concurrent=1)
        held = admission.try_acquire()
        runner.start_recovery(admission)
        await asyncio.sleep(0.01)

        # Act
        await runner.stop()

        # Assert
        assert admission.active == 1
        held.release()
