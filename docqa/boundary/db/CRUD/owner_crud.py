"""
Owner CRUD operations.

Dependencies: sqlalchemy, docqa.boundary.db.models
System role: Tenant lookup for ingestion
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.CRUD.base_crud import BaseCRUD
from docqa.boundary.db.models.owner_model import OwnerModel


class OwnerCRUD(BaseCRUD[OwnerModel]):
    """CRUD operations for OwnerModel."""

    def __init__(self) -> None:
        """Initialize OwnerCRUD with OwnerModel."""
        super().__init__(OwnerModel)

    async def get_by_slug(self, session: AsyncSession, slug: str) -> OwnerModel | None:
        """
        Retrieve owner by slug.

        Args:
            session: Async database session
            slug: Owner routing key

        Returns:
            OwnerModel if found, None otherwise
        """
        stmt = select(OwnerModel).where(OwnerModel.slug == slug)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


owner_crud = OwnerCRUD()
