"""
Processing log CRUD operations.

Dependencies: sqlalchemy, docqa.boundary.db.models
System role: Persistence of pipeline stage events
"""

from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.CRUD.base_crud import BaseCRUD
from docqa.boundary.db.models.processing_log_model import ProcessingLogModel


class ProcessingLogCRUD(BaseCRUD[ProcessingLogModel]):
    """CRUD operations for ProcessingLogModel."""

    def __init__(self) -> None:
        """Initialize ProcessingLogCRUD with ProcessingLogModel."""
        super().__init__(ProcessingLogModel)

    async def add_entries(
        self,
        session: AsyncSession,
        job_id: UUID,
        entries: Iterable[dict[str, Any]],
    ) -> int:
        """
        Stage log rows for a job in the caller's transaction.

        Args:
            session: Async database session
            job_id: Job the events belong to
            entries: Dicts with slug, stage, status, message, details,
                sequence and created_at

        Returns:
            int: Number of rows added
        """
        rows = [ProcessingLogModel(job_id=job_id, **entry) for entry in entries]
        if rows:
            session.add_all(rows)
            await session.flush()
        return len(rows)

    async def list_for_job(
        self,
        session: AsyncSession,
        job_id: UUID,
        limit: int | None = None,
    ) -> Sequence[ProcessingLogModel]:
        """
        Events for a job, oldest first.

        Args:
            session: Async database session
            job_id: Job UUID
            limit: Maximum rows to return (most recent are dropped)

        Returns:
            Sequence of ProcessingLogModel instances
        """
        stmt = (
            select(ProcessingLogModel)
            .where(ProcessingLogModel.job_id == job_id)
            .order_by(ProcessingLogModel.created_at, ProcessingLogModel.sequence)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()


processing_log_crud = ProcessingLogCRUD()
