"""
Processing job CRUD operations.

Provides compare-and-set status updates so that two workers can never
claim the same job, plus heartbeat and status queries.

Dependencies: sqlalchemy, docqa.boundary.db.models
System role: Job persistence operations for ingestion tracking
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.base import utcnow
from docqa.boundary.db.CRUD.base_crud import BaseCRUD
from docqa.boundary.db.models.job_model import JobStatus, ProcessingJobModel, ProcessingStage


class ProcessingJobCRUD(BaseCRUD[ProcessingJobModel]):
    """
    CRUD operations for ProcessingJobModel.

    Extends BaseCRUD with guarded status changes and heartbeat updates.
    """

    def __init__(self) -> None:
        """Initialize ProcessingJobCRUD with ProcessingJobModel."""
        super().__init__(ProcessingJobModel)

    async def compare_and_set_status(
        self,
        session: AsyncSession,
        id: UUID,
        expected: JobStatus,
        target: JobStatus,
        now: datetime | None = None,
        **fields,
    ) -> ProcessingJobModel | None:
        """
        Move a job to `target` only if it is still in `expected`.

        Args:
            session: Async database session
            id: Job UUID
            expected: Status the caller observed
            target: New status
            now: Timestamp recorded as updated_at (defaults to current UTC)
            **fields: Extra columns to set in the same statement

        Returns:
            Updated ProcessingJobModel, or None if the job moved on meanwhile
        """
        stmt = (
            update(ProcessingJobModel)
            .where(ProcessingJobModel.id == id, ProcessingJobModel.status == expected)
            .values(status=target, updated_at=now or utcnow(), **fields)
            .returning(ProcessingJobModel)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def touch(
        self,
        session: AsyncSession,
        id: UUID,
        stage: ProcessingStage,
        now: datetime | None = None,
    ) -> ProcessingJobModel | None:
        """
        Record the stage a worker is in and refresh the heartbeat.

        Args:
            session: Async database session
            id: Job UUID
            stage: Current stage
            now: Heartbeat timestamp (defaults to current UTC)

        Returns:
            Updated ProcessingJobModel if found, None otherwise
        """
        return await self.update_by_id(session, id, current_stage=stage, updated_at=now or utcnow())

    async def get_by_status(
        self,
        session: AsyncSession,
        status: JobStatus,
        limit: int | None = None,
    ) -> Sequence[ProcessingJobModel]:
        """
        Retrieve jobs by status, oldest heartbeat first.

        Args:
            session: Async database session
            status: Status to filter by
            limit: Maximum number of jobs to return

        Returns:
            Sequence of ProcessingJobModels with matching status
        """
        stmt = (
            select(ProcessingJobModel)
            .where(ProcessingJobModel.status == status)
            .order_by(ProcessingJobModel.updated_at)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_in_flight_for_document(
        self,
        session: AsyncSession,
        document_id: UUID,
    ) -> ProcessingJobModel | None:
        """
        Latest pending or processing job for a document, if any.

        Args:
            session: Async database session
            document_id: Document UUID

        Returns:
            ProcessingJobModel or None
        """
        stmt = (
            select(ProcessingJobModel)
            .where(
                ProcessingJobModel.document_id == document_id,
                ProcessingJobModel.status.in_([JobStatus.PENDING, JobStatus.PROCESSING]),
            )
            .order_by(ProcessingJobModel.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_latest_for_slug(
        self,
        session: AsyncSession,
        slug: str,
    ) -> ProcessingJobModel | None:
        """
        Most recently created job targeting a slug, in any status.

        Args:
            session: Async database session
            slug: Document slug

        Returns:
            ProcessingJobModel or None
        """
        stmt = (
            select(ProcessingJobModel)
            .where(ProcessingJobModel.slug == slug)
            .order_by(ProcessingJobModel.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


processing_job_crud = ProcessingJobCRUD()
