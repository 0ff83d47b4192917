"""
Document pipeline orchestrator.

Claims a processing job and runs extract -> chunk -> embed -> store strictly
in sequence, heartbeating the job at every stage and after every embedding
and insert batch. The store stage creates the document row before any chunk
row, inside one transaction that also marks the job ready. Stage events are
persisted to processing_logs with each commit.

Dependencies: All task modules, state machine, docqa.boundary.db
System role: Pipeline orchestration (coordinates only)
"""

import logging
from datetime import datetime
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.base import utcnow
from docqa.boundary.db.CRUD.job_crud import processing_job_crud
from docqa.boundary.db.CRUD.processing_log_crud import processing_log_crud
from docqa.boundary.db.models.job_model import JobStatus, ProcessingJobModel, ProcessingStage
from docqa.boundary.notifications.notifier import ProcessingEvent, ProcessingNotifier
from docqa.configs.processing import ProcessingSettings
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.exceptions import (
    DocQAException,
    IntegrityViolationError,
    InvalidTransitionError,
    JobNotFoundError,
)

from . import state_machine
from .models import PipelineResult
from .processing_logger import ProcessingLogger
from .tasks import ChunkingTask, EmbeddingTask, ExtractionTask, StoreTask, TextExtractor

logger = logging.getLogger(__name__)

MAX_ERROR_MESSAGE_LENGTH = 2000


class DocumentPipeline:
    """Orchestrate document ingestion for one job at a time."""

    def __init__(
        self,
        session: AsyncSession,
        embedding_cache: EmbeddingCache,
        settings: ProcessingSettings | None = None,
        extractor: TextExtractor | None = None,
        notifier: ProcessingNotifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize pipeline with configuration.

        Args:
            session: Async session owned by this run
            embedding_cache: Cache in front of the embedding provider
            settings: Processing settings (uses defaults if None)
            extractor: Text extractor (PDF/plain text if None)
            notifier: Completion/failure notifier (none if None)
            clock: Heartbeat time source (injectable for tests)
        """
        self._session = session
        self._settings = settings or ProcessingSettings()
        self._extractor = extractor or ExtractionTask()
        self._notifier = notifier
        self._clock = clock

        self._chunking_task = ChunkingTask(
            chunk_size=self._settings.chunk_size_chars,
            chunk_overlap=self._settings.chunk_overlap_chars,
            chars_per_token=self._settings.chars_per_token,
        )
        self._embedding_task = EmbeddingTask(
            cache=embedding_cache,
            batch_size=self._settings.embedding_batch_size,
            max_attempts=self._settings.retry_max_attempts,
            initial_delay=self._settings.retry_initial_delay,
            max_delay=self._settings.retry_max_delay,
        )
        self._store_task = StoreTask(insert_batch_size=self._settings.insert_batch_size)

    async def run(self, job_id: UUID, now: datetime | None = None) -> PipelineResult:
        """
        Process a job through the full pipeline.

        Args:
            job_id: Job to process
            now: Reference time for the staleness check (defaults to current UTC)

        Returns:
            PipelineResult: Chunk count and timings

        Raises:
            JobNotFoundError: Job does not exist
            JobConflictError: Job is already being processed by a healthy worker
            InvalidTransitionError: Job is ready or error (use retry)
            DocQAException: A stage failed; the failure is recorded on the job first
        """
        job = await self._claim(job_id, now)
        slug = job.slug
        document_id = job.document_id
        stage_log = ProcessingLogger(str(job_id), slug)
        stage = ProcessingStage.EXTRACT

        try:
            await self._enter(job_id, stage, stage_log)
            extracted = await self._extractor.extract(job.source_path, job.content_type, job.filename)
            stage_log.completed(stage.value, total_pages=extracted.total_pages, characters=len(extracted.text))

            stage = ProcessingStage.CHUNK
            await self._enter(job_id, stage, stage_log)
            drafts = self._chunking_task.chunk(extracted)
            stage_log.completed(stage.value, chunk_count=len(drafts))

            stage = ProcessingStage.EMBED
            await self._enter(job_id, stage, stage_log)
            drafts = await self._embedding_task.embed(
                drafts,
                job.embedding_space,
                on_batch=lambda: self._heartbeat(job_id, ProcessingStage.EMBED, commit=True),
            )
            stage_log.completed(stage.value, embedded=len(drafts))

            stage = ProcessingStage.STORE
            await self._enter(job_id, stage, stage_log)
            written = await self._store_task.store(
                self._session,
                job,
                drafts,
                on_batch=lambda: self._heartbeat(job_id, ProcessingStage.STORE, commit=False),
            )
            job = await state_machine.transition(
                self._session,
                job,
                JobStatus.READY,
                current_stage=ProcessingStage.COMPLETE,
                failed_stage=None,
                error_message=None,
                chunk_count=written,
            )
            stage_log.completed(stage.value, chunk_count=written)
            stage_log.summary(chunk_count=written, total_pages=extracted.total_pages)
            await self._commit(job_id, stage_log)
        except Exception as e:
            await self._session.rollback()
            await self._record_failure(job_id, stage, e, stage_log)
            raise

        self._notify(
            ProcessingEvent(
                job_id=str(job_id),
                document_id=str(document_id),
                slug=slug,
                status=JobStatus.READY.value,
                chunk_count=written,
            )
        )
        return PipelineResult(
            job_id=str(job_id),
            document_id=str(document_id),
            chunk_count=written,
            total_pages=extracted.total_pages,
            processing_time_ms=stage_log.elapsed_ms,
            stage_timings_ms=dict(stage_log.timings_ms),
        )

    async def _claim(self, job_id: UUID, now: datetime | None) -> ProcessingJobModel:
        job = await processing_job_crud.get_by_id(self._session, job_id)
        if job is None:
            raise JobNotFoundError(str(job_id))

        if job.status == JobStatus.PROCESSING:
            job = await state_machine.reset_if_stale(
                self._session,
                job,
                self._settings.stale_after_seconds,
                now,
            )
        elif job.status != JobStatus.PENDING:
            raise InvalidTransitionError(job.status.value, JobStatus.PROCESSING.value)

        job = await state_machine.transition(
            self._session,
            job,
            JobStatus.PROCESSING,
            failed_stage=None,
            attempts=job.attempts + 1,
        )
        await self._session.commit()
        return job

    async def _enter(
        self,
        job_id: UUID,
        stage: ProcessingStage,
        stage_log: ProcessingLogger,
    ) -> None:
        await processing_job_crud.touch(self._session, job_id, stage, now=self._clock())
        stage_log.started(stage.value)
        await self._commit(job_id, stage_log)

    async def _heartbeat(self, job_id: UUID, stage: ProcessingStage, commit: bool) -> None:
        """
        Refresh the job heartbeat between batches.

        Store-stage heartbeats stay in the open store transaction; the row
        lock they take keeps a competing stale reset waiting until it ends.
        """
        await processing_job_crud.touch(self._session, job_id, stage, now=self._clock())
        if commit:
            await self._session.commit()

    async def _commit(self, job_id: UUID, stage_log: ProcessingLogger) -> None:
        await processing_log_crud.add_entries(self._session, job_id, stage_log.drain())
        await self._session.commit()

    async def _record_failure(
        self,
        job_id: UUID,
        stage: ProcessingStage,
        error: Exception,
        stage_log: ProcessingLogger,
    ) -> None:
        stage_log.failed(stage.value, error)
        if isinstance(error, IntegrityViolationError):
            logger.critical(f"{__name__}:run - chunk write ordering violated: {error}")

        message = error.message if isinstance(error, DocQAException) else str(error)
        message = message[:MAX_ERROR_MESSAGE_LENGTH]

        try:
            job = await processing_job_crud.get_by_id(self._session, job_id)
            if job is None or job.status != JobStatus.PROCESSING:
                logger.warning(
                    f"{__name__}:_record_failure - Job no longer processing, not recording failure",
                    extra={"job_id": str(job_id)},
                )
                return
            await state_machine.transition(
                self._session,
                job,
                JobStatus.ERROR,
                failed_stage=stage,
                error_message=message,
            )
            await self._commit(job_id, stage_log)
        except Exception as e:
            logger.error(f"{__name__}:_record_failure - {type(e).__name__}: {e}")
            await self._session.rollback()
            raise

        self._notify(
            ProcessingEvent(
                job_id=str(job_id),
                document_id=str(job.document_id),
                slug=job.slug,
                status=JobStatus.ERROR.value,
                failed_stage=stage.value,
                error_message=message,
            )
        )

    def _notify(self, event: ProcessingEvent) -> None:
        if self._notifier is not None:
            self._notifier.dispatch(event)
