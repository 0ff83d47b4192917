"""
Document and chunk persistence task.

Creates (or refreshes) the Document row, flushes it, and only then writes
chunk rows in batches. Runs inside the caller's transaction, so a failure
anywhere leaves neither a half-initialized document nor orphan chunks.

Dependencies: sqlalchemy, docqa.boundary.db.CRUD
System role: Final stage of document ingestion pipeline
"""

import logging
from typing import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.CRUD.chunk_crud import chunk_crud
from docqa.boundary.db.CRUD.document_crud import document_crud
from docqa.boundary.db.models.job_model import ProcessingJobModel
from docqa.core.exceptions import DatastoreError

from ..models import ChunkDraft

logger = logging.getLogger(__name__)


class StoreTask:
    """Persist the document row, then its chunks."""

    def __init__(self, insert_batch_size: int = 200) -> None:
        self._insert_batch_size = insert_batch_size

    async def store(
        self,
        session: AsyncSession,
        job: ProcessingJobModel,
        drafts: list[ChunkDraft],
        on_batch: Callable[[], Awaitable[None]] | None = None,
    ) -> int:
        """
        Write the document and its chunks (caller commits or rolls back).

        Re-ingesting an existing document replaces its chunks wholesale.

        Args:
            session: Async database session
            job: Job carrying the document fields
            drafts: Embedded chunk drafts
            on_batch: Awaited after each insert batch, inside the same transaction

        Returns:
            int: Number of chunk rows written

        Raises:
            DatastoreError: When a datastore write fails
            IntegrityViolationError: When chunks would be written without a document
        """
        fields = {
            "slug": job.slug,
            "title": job.title,
            "subtitle": job.subtitle,
            "owner_id": job.owner_id,
            "embedding_space": job.embedding_space,
            "active": True,
        }

        try:
            document = await document_crud.get_by_id(session, job.document_id)
            if document is None:
                document = await document_crud.create(session, id=job.document_id, **fields)
            else:
                await document_crud.update_by_id(session, document.id, **fields)
                removed = await chunk_crud.delete_for_document(session, document.id)
                logger.info(
                    f"{__name__}:store - Replacing existing chunks",
                    extra={"document_id": str(document.id), "removed": removed},
                )

            written = 0
            for start in range(0, len(drafts), self._insert_batch_size):
                batch = drafts[start:start + self._insert_batch_size]
                written += await chunk_crud.insert_batch(
                    session,
                    document.id,
                    [draft.to_row() for draft in batch],
                )
                if on_batch is not None:
                    await on_batch()
            return written
        except SQLAlchemyError as e:
            raise DatastoreError(f"Failed to persist document: {e}") from e
