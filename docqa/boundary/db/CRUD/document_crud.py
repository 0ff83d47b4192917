"""
Document CRUD operations.

Provides document lookups by slug and the owner-joined listing
the registry is built from.

Dependencies: sqlalchemy, docqa.boundary.db.models
System role: Document metadata persistence operations
"""

from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from docqa.boundary.db.CRUD.base_crud import BaseCRUD
from docqa.boundary.db.models.document_model import DocumentModel


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """
    CRUD operations for DocumentModel.

    Extends BaseCRUD with slug lookup and registry queries.
    """

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def get_by_slug(self, session: AsyncSession, slug: str) -> DocumentModel | None:
        """
        Retrieve document by its current slug.

        Args:
            session: Async database session
            slug: Document routing key

        Returns:
            DocumentModel if found, None otherwise
        """
        stmt = select(DocumentModel).where(DocumentModel.slug == slug)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_active_with_owners(self, session: AsyncSession) -> Sequence[DocumentModel]:
        """
        Retrieve every active document with its owner eagerly loaded.

        Args:
            session: Async database session

        Returns:
            Sequence of DocumentModels ordered by creation time
        """
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.active.is_(True))
            .options(selectinload(DocumentModel.owner))
            .order_by(DocumentModel.created_at, DocumentModel.slug)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def set_active(
        self,
        session: AsyncSession,
        slug: str,
        active: bool,
    ) -> DocumentModel | None:
        """
        Soft-enable or soft-disable a document.

        Args:
            session: Async database session
            slug: Document routing key
            active: New active flag

        Returns:
            Updated DocumentModel if found, None otherwise
        """
        document = await self.get_by_slug(session, slug)
        if document is None:
            return None
        return await self.update_by_id(session, document.id, active=active)


document_crud = DocumentCRUD()
