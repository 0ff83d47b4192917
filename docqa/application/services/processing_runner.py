"""
Background processing runner.

Runs the document pipeline for one job in its own database session,
releases the admission slot when the run ends, and refreshes the
registry so a newly ready document becomes queryable. At startup it
resets stale jobs and re-schedules every pending job through the
processing admission controller.

Dependencies: docqa.core.document_processing, docqa.core.registry, docqa.core.admission
System role: Background pipeline runs for upload, retry and startup recovery
"""

import asyncio
import contextlib
import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docqa.boundary.db.CRUD.job_crud import processing_job_crud
from docqa.boundary.db.models.job_model import JobStatus
from docqa.boundary.notifications.notifier import ProcessingNotifier
from docqa.configs.processing import ProcessingSettings
from docqa.core.admission import AdmissionController, AdmissionTicket
from docqa.core.document_processing import DocumentPipeline, PipelineResult, state_machine
from docqa.core.document_processing.tasks import TextExtractor
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.exceptions import RegistryError
from docqa.core.registry.document_registry import DocumentRegistry
from docqa.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


class ProcessingRunner:
    """Execute pipeline runs outside the request that scheduled them."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        embedding_cache: EmbeddingCache,
        registry: DocumentRegistry,
        settings: ProcessingSettings | None = None,
        notifier: ProcessingNotifier | None = None,
        extractor: TextExtractor | None = None,
    ) -> None:
        """
        Initialize runner.

        Args:
            session_factory: Factory for per-run sessions
            embedding_cache: Shared embedding cache
            registry: Registry refreshed after each successful run
            settings: Processing settings (uses defaults if None)
            notifier: Completion/failure notifier
            extractor: Text extractor override
        """
        self._session_factory = session_factory
        self._embedding_cache = embedding_cache
        self._registry = registry
        self._settings = settings or ProcessingSettings()
        self._notifier = notifier
        self._extractor = extractor
        self._runs: set[asyncio.Task] = set()
        self._resume_task: asyncio.Task | None = None

    async def run_job(
        self,
        job_id: UUID,
        ticket: AdmissionTicket | None = None,
    ) -> PipelineResult | None:
        """
        Process one job and always give the admission slot back.

        Failures are already recorded on the job by the pipeline; here they
        are only logged, since nothing is waiting on a background task.

        Args:
            job_id: Job to process
            ticket: Admission slot held for this run

        Returns:
            PipelineResult on success, None on failure
        """
        log_with_context(logger, logging.INFO, f"{__name__}:run_job - Starting background processing", job_id=job_id)
        try:
            async with self._session_factory() as session:
                pipeline = DocumentPipeline(
                    session,
                    self._embedding_cache,
                    settings=self._settings,
                    extractor=self._extractor,
                    notifier=self._notifier,
                )
                result = await pipeline.run(job_id)
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:run_job - Document processing failed", e, job_id=job_id)
            return None
        finally:
            if ticket is not None:
                ticket.release()

        try:
            await self._registry.refresh()
        except RegistryError:
            logger.warning(
                f"{__name__}:run_job - Registry refresh after processing failed; auto-refresh will catch up",
                extra={"job_id": str(job_id)},
            )
        return result

    async def recover_stale_jobs(self, now: datetime | None = None) -> list[UUID]:
        """
        Reset every stale processing job to pending.

        Called at startup so jobs orphaned by a crashed worker become retryable.

        Args:
            now: Reference time (defaults to current UTC)

        Returns:
            list[UUID]: Ids of the jobs that were reset
        """
        recovered: list[UUID] = []
        async with self._session_factory() as session:
            jobs = await processing_job_crud.get_by_status(session, JobStatus.PROCESSING)
            for job in jobs:
                if not state_machine.is_stale(job, self._settings.stale_after_seconds, now):
                    continue
                await state_machine.reset_if_stale(session, job, self._settings.stale_after_seconds, now)
                recovered.append(job.id)
            await session.commit()

        if recovered:
            logger.warning(
                f"{__name__}:recover_stale_jobs - Reset stalled jobs",
                extra={"count": len(recovered)},
            )
        return recovered

    async def resume_pending_jobs(
        self,
        admission: AdmissionController,
        poll_interval: float = 1.0,
    ) -> list[UUID]:
        """
        Schedule every pending job, oldest first, through the admission controller.

        Background runs die with the process that scheduled them, so after a
        restart pending jobs (including those just reset by
        recover_stale_jobs) have nobody working on them. Waits for a free
        slot whenever the controller is saturated.

        Args:
            admission: Processing admission controller
            poll_interval: Seconds between checks for a free slot

        Returns:
            list[UUID]: Ids of the jobs that were scheduled
        """
        async with self._session_factory() as session:
            jobs = await processing_job_crud.get_by_status(session, JobStatus.PENDING)
            job_ids = [job.id for job in jobs]

        scheduled: list[UUID] = []
        for job_id in job_ids:
            while admission.load()["available"] < 1:
                await asyncio.sleep(poll_interval)
            self._spawn(job_id, admission.try_acquire())
            scheduled.append(job_id)

        if scheduled:
            logger.info(
                f"{__name__}:resume_pending_jobs - Scheduled pending jobs",
                extra={"count": len(scheduled)},
            )
        return scheduled

    def start_recovery(self, admission: AdmissionController) -> None:
        """Reset stale jobs and resume pending ones in a background task."""
        if self._resume_task is None or self._resume_task.done():
            self._resume_task = asyncio.create_task(self._recover_and_resume(admission))

    async def drain(self) -> None:
        """Wait for the recovery task and every run it scheduled."""
        if self._resume_task is not None:
            await self._resume_task
        while self._runs:
            await asyncio.gather(*list(self._runs))

    async def stop(self) -> None:
        """Cancel recovery and in-flight recovered runs; their jobs stay processing until stale."""
        tasks = list(self._runs)
        if self._resume_task is not None:
            tasks.append(self._resume_task)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._resume_task = None

    async def _recover_and_resume(self, admission: AdmissionController) -> None:
        try:
            await self.recover_stale_jobs()
            await self.resume_pending_jobs(admission)
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:_recover_and_resume - Startup recovery failed", e)

    def _spawn(self, job_id: UUID, ticket: AdmissionTicket) -> None:
        task = asyncio.create_task(self.run_job(job_id, ticket))
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
