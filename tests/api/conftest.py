"""
Fixtures for endpoint tests.

Provides: TestClient over create_app() with overrides cleared after each test,
and a registry preloaded from in-memory document records.
"""

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from docqa.api.main import create_app
from docqa.boundary.db.CRUD.document_crud import document_crud
from docqa.boundary.db.models import EmbeddingSpace
from docqa.core.registry import DocumentRegistry


class NullSession:
    """Stand-in session for registry loads served by a patched CRUD call."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


def owner_record(slug: str, name: str) -> SimpleNamespace:
    return SimpleNamespace(id=uuid.uuid4(), slug=slug, name=name, intro_message=None, default_cover=None)


def document_record(
    owner: SimpleNamespace,
    slug: str,
    embedding_space: EmbeddingSpace = EmbeddingSpace.PROVIDER,
) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.uuid4(),
        slug=slug,
        title=slug.title(),
        subtitle=None,
        owner=owner,
        intro_message=None,
        cover=None,
        embedding_space=embedding_space,
        is_public=True,
        requires_auth=False,
    )


@pytest.fixture
def client():
    app = create_app()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def documents() -> list[SimpleNamespace]:
    acme = owner_record("acme", "Acme Corp")
    globex = owner_record("globex", "Globex")
    return [
        document_record(acme, "handbook"),
        document_record(acme, "faq", EmbeddingSpace.LOCAL),
        document_record(globex, "pricing"),
    ]


@pytest.fixture
async def loaded_registry(documents, monkeypatch) -> DocumentRegistry:
    """Registry at version 1 holding handbook, faq (acme) and pricing (globex)."""
    monkeypatch.setattr(document_crud, "get_active_with_owners", AsyncMock(return_value=documents))
    registry = DocumentRegistry(lambda: NullSession())
    await registry.load()
    return registry
