"""
Test suite for DocumentCRUD against an in-memory database.

System role: Verification of registry source queries
"""

import pytest

from docqa.boundary.db.CRUD.document_crud import document_crud


class TestDocumentCRUD:
    """Test suite for DocumentCRUD."""

    @pytest.mark.asyncio
    async def test_get_by_slug(self, test_async_db, make_owner, make_document) -> None:
        document = await make_document(await make_owner(), "handbook")

        assert (await document_crud.get_by_slug(test_async_db, "handbook")).id == document.id
        assert await document_crud.get_by_slug(test_async_db, "missing") is None

    @pytest.mark.asyncio
    async def test_active_documents_come_with_owner(self, test_async_db, make_owner, make_document) -> None:
        # Arrange
        owner = await make_owner("acme", "Acme Corp")
        await make_document(owner, "handbook")
        await make_document(owner, "archived", active=False)

        # Act
        documents = await document_crud.get_active_with_owners(test_async_db)

        # Assert
        assert [document.slug for document in documents] == ["handbook"]
        assert documents[0].owner.name == "Acme Corp"

    @pytest.mark.asyncio
    async def test_set_active_toggles_visibility(self, test_async_db, make_owner, make_document) -> None:
        await make_document(await make_owner(), "handbook")

        updated = await document_crud.set_active(test_async_db, "handbook", False)
        await test_async_db.commit()

        assert updated.active is False
        assert await document_crud.get_active_with_owners(test_async_db) == []
        assert await document_crud.set_active(test_async_db, "missing", True) is None
