"""
Job service orchestrator.

Validates uploads, creates processing jobs, prepares retries, reads the
per-job processing log and soft-enables or soft-disables documents.
Enforces one owner per slug and reuses the document id on re-ingest.

Dependencies: docqa.boundary.db.CRUD, docqa.boundary.storage, docqa.core.document_processing
System role: Job lifecycle management for the document endpoints
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.CRUD.document_crud import document_crud
from docqa.boundary.db.CRUD.job_crud import processing_job_crud
from docqa.boundary.db.CRUD.owner_crud import owner_crud
from docqa.boundary.db.CRUD.processing_log_crud import processing_log_crud
from docqa.boundary.db.models.document_model import DocumentModel, EmbeddingSpace
from docqa.boundary.db.models.job_model import JobStatus, ProcessingJobModel
from docqa.boundary.db.models.processing_log_model import ProcessingLogModel
from docqa.boundary.storage.file_store import FileStore
from docqa.configs.processing import ProcessingSettings
from docqa.core.document_processing import state_machine
from docqa.core.exceptions import (
    DocumentNotFoundError,
    JobConflictError,
    JobNotFoundError,
    OwnerNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
MAX_SLUG_LENGTH = 100


class JobService:
    """
    Job service orchestrator.

    Owns the request-side half of ingestion: everything up to and including
    the pending job row. The pipeline itself runs in the background.
    """

    def __init__(
        self,
        db: AsyncSession,
        file_store: FileStore,
        settings: ProcessingSettings | None = None,
    ) -> None:
        """
        Initialize job service.

        Args:
            db: AsyncSession for database operations
            file_store: Store for uploaded bytes
            settings: Processing settings (uses defaults if None)
        """
        self.db = db
        self.file_store = file_store
        self.settings = settings or ProcessingSettings()

    async def enqueue(
        self,
        filename: str,
        content_type: str,
        content: bytes,
        slug: str,
        title: str,
        owner_slug: str,
        embedding_space: EmbeddingSpace | str = EmbeddingSpace.PROVIDER,
        subtitle: str | None = None,
    ) -> ProcessingJobModel:
        """
        Validate an upload and create a pending job for it.

        Args:
            filename: Original filename
            content_type: MIME type of the upload
            content: Raw bytes
            slug: Document slug
            title: Document title
            owner_slug: Owner the document belongs to
            embedding_space: local or provider
            subtitle: Optional subtitle

        Returns:
            ProcessingJobModel: Committed pending job

        Raises:
            ValidationError: Bad file, slug, title or space
            OwnerNotFoundError: Owner slug unknown
            JobConflictError: Document already has a job in flight
        """
        space = self._validate_upload(filename, content_type, content, slug, title, embedding_space)

        owner = await owner_crud.get_by_slug(self.db, owner_slug)
        if owner is None:
            raise OwnerNotFoundError(owner_slug)

        existing = await document_crud.get_by_slug(self.db, slug)
        if existing is not None:
            claimed_by, document_id = existing.owner_id, existing.id
        else:
            # No document yet: an earlier job for the slug already reserved its id
            previous = await processing_job_crud.get_latest_for_slug(self.db, slug)
            if previous is not None:
                claimed_by, document_id = previous.owner_id, previous.document_id
            else:
                claimed_by, document_id = owner.id, uuid.uuid4()

        if claimed_by != owner.id:
            raise ValidationError(
                f"Slug '{slug}' is already used by another owner.",
                field="slug",
                code="slug_taken",
            )

        in_flight = await processing_job_crud.get_in_flight_for_document(self.db, document_id)
        if in_flight is not None:
            raise JobConflictError(
                "Document is currently being processed. Please wait or try again in a few minutes.",
                job_id=str(in_flight.id),
                status=in_flight.status.value,
            )

        job_id = uuid.uuid4()
        source_path = await self.file_store.save(job_id, filename, content)

        try:
            job = await processing_job_crud.create(
                self.db,
                id=job_id,
                document_id=document_id,
                status=JobStatus.PENDING,
                filename=filename,
                content_type=content_type,
                file_size=len(content),
                source_path=source_path,
                slug=slug,
                title=title.strip(),
                subtitle=subtitle,
                owner_id=owner.id,
                embedding_space=space,
            )
            await self.db.commit()
        except Exception as e:
            logger.error(f"{__name__}:enqueue - {type(e).__name__}: {e}")
            await self.db.rollback()
            await self.file_store.delete(job_id)
            raise

        logger.info(
            f"{__name__}:enqueue - Job created",
            extra={
                "job_id": str(job.id),
                "document_id": str(document_id),
                "slug": slug,
                "owner": owner_slug,
                "reingest": existing is not None,
            },
        )
        return job

    async def get_job_status(self, job_id: UUID) -> ProcessingJobModel:
        """
        Get job for status polling.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = await processing_job_crud.get_by_id(self.db, job_id)
        if job is None:
            raise JobNotFoundError(str(job_id))
        return job

    async def get_job_logs(
        self,
        job_id: UUID,
        limit: int | None = None,
    ) -> tuple[ProcessingJobModel, Sequence[ProcessingLogModel]]:
        """
        Get a job together with its stage events, oldest first.

        Raises:
            JobNotFoundError: If job doesn't exist
        """
        job = await self.get_job_status(job_id)
        entries = await processing_log_crud.list_for_job(self.db, job_id, limit=limit)
        return job, entries

    async def set_document_active(self, slug: str, active: bool) -> DocumentModel:
        """
        Soft-enable or soft-disable a document; its chunks are kept.

        Args:
            slug: Document routing key
            active: New active flag

        Returns:
            DocumentModel: Updated document

        Raises:
            DocumentNotFoundError: No document has this slug
        """
        document = await document_crud.set_active(self.db, slug, active)
        if document is None:
            raise DocumentNotFoundError(slug)
        await self.db.commit()
        logger.info(
            f"{__name__}:set_document_active - Document {'enabled' if active else 'disabled'}",
            extra={"slug": slug, "document_id": str(document.id)},
        )
        return document

    async def prepare_retry(self, job_id: UUID, now: datetime | None = None) -> ProcessingJobModel:
        """
        Move a job back to pending so it can be processed again.

        Ready and error jobs reset directly, stale processing jobs self-heal,
        pending jobs pass through unchanged.

        Args:
            job_id: Job UUID
            now: Reference time for the staleness check

        Returns:
            ProcessingJobModel: Job in PENDING

        Raises:
            JobNotFoundError: Job does not exist
            JobConflictError: Job is processing and still healthy
        """
        job = await self.get_job_status(job_id)

        if job.status == JobStatus.PENDING:
            return job

        if job.status == JobStatus.PROCESSING:
            job = await state_machine.reset_if_stale(
                self.db,
                job,
                self.settings.stale_after_seconds,
                now,
            )
        else:
            job = await state_machine.transition(self.db, job, JobStatus.PENDING)

        await self.db.commit()
        logger.info(f"{__name__}:prepare_retry - Job reset to pending", extra={"job_id": str(job_id)})
        return job

    def _validate_upload(
        self,
        filename: str,
        content_type: str,
        content: bytes,
        slug: str,
        title: str,
        embedding_space: EmbeddingSpace | str,
    ) -> EmbeddingSpace:
        if not filename:
            raise ValidationError("A file is required.", field="file", code="missing_file")

        if content_type not in self.settings.allowed_content_types:
            allowed = ", ".join(self.settings.allowed_content_types)
            raise ValidationError(
                f"Unsupported file type '{content_type}'. Allowed: {allowed}",
                field="file",
                code="unsupported_file_type",
            )

        if not content:
            raise ValidationError("Uploaded file is empty.", field="file", code="empty_file")

        if len(content) > self.settings.max_file_size_bytes:
            max_mb = self.settings.max_file_size_bytes // (1024 * 1024)
            raise ValidationError(
                f"File too large. Maximum size: {max_mb}MB",
                field="file",
                code="file_too_large",
            )

        if len(slug) > MAX_SLUG_LENGTH or not SLUG_PATTERN.match(slug):
            raise ValidationError(
                "Slug must be lowercase letters, digits and single hyphens.",
                field="slug",
                code="invalid_slug",
            )

        if not title or not title.strip():
            raise ValidationError("Title must not be empty.", field="title", code="invalid_title")

        try:
            return EmbeddingSpace(embedding_space)
        except ValueError:
            raise ValidationError(
                f"Unknown embedding type '{embedding_space}'. Use 'local' or 'provider'.",
                field="embedding",
                code="invalid_embedding_space",
            )
