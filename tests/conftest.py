"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite database, row factories, deterministic fake
embeddings, embedding cache and a static text extractor
Dependencies: pytest, sqlalchemy, aiosqlite, langchain_core
System role: Test infrastructure and fixture management
"""

import asyncio
import hashlib
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from langchain_core.embeddings import Embeddings
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from docqa.boundary.db.base import Base
from docqa.boundary.db.models import (
    ChunkModel,
    DocumentModel,
    EmbeddingSpace,
    JobStatus,
    OwnerModel,
    ProcessingJobModel,
)
from docqa.boundary.embeddings.providers import EmbeddingProvider
from docqa.core.document_processing.models import ExtractedText
from docqa.core.document_processing.tasks.extraction_task import page_marker
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.retrieval.lexical import tokenize

DIMENSIONS = 32


def hashed_vector(text: str, dimensions: int = DIMENSIONS) -> list[float]:
    """Bag-of-words vector: texts sharing terms point in similar directions."""
    vector = [0.0] * dimensions
    for token in tokenize(text) or [text.strip().lower() or "empty"]:
        bucket = int(hashlib.md5(token.encode("utf-8")).hexdigest(), 16) % dimensions
        vector[bucket] += 1.0
    return vector


class CountingEmbeddings(Embeddings):
    """Deterministic embeddings that record every provider call."""

    def __init__(self, fail_times: int = 0, delay: float = 0.0) -> None:
        self.query_calls: list[str] = []
        self.document_calls: list[list[str]] = []
        self.fail_times = fail_times
        self.delay = delay

    def _maybe_fail(self) -> None:
        if self.fail_times > 0:
            self.fail_times -= 1
            raise RuntimeError("embedding provider unavailable")

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        self._maybe_fail()
        return [hashed_vector(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        self._maybe_fail()
        return hashed_vector(text)

    async def aembed_documents(self, texts: list[str]) -> list[list[float]]:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.embed_documents(texts)

    async def aembed_query(self, text: str) -> list[float]:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.embed_query(text)

    @property
    def total_calls(self) -> int:
        return len(self.query_calls) + len(self.document_calls)


class StaticExtractor:
    """Text extractor returning fixed pages, marked up like the PDF extractor."""

    def __init__(self, pages: list[str]) -> None:
        self.pages = pages
        self.calls = 0

    async def extract(self, file_path: str, content_type: str, filename: str) -> ExtractedText:
        self.calls += 1
        text = "\n\n".join(
            f"{page_marker(number)} {page}" for number, page in enumerate(self.pages, start=1)
        )
        return ExtractedText(text=text, total_pages=len(self.pages), source=filename)


def page_text(page_number: int, sentences: int = 20) -> str:
    """Readable filler text unique to one page."""
    return " ".join(
        f"Section {page_number} sentence {i} explains topic{page_number} refunds and warranty terms."
        for i in range(sentences)
    )


@pytest.fixture
async def engine():
    """In-memory SQLite engine with foreign keys enforced."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory configured like the production one."""
    return async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def test_async_db(session_factory):
    """
    Create a session on the in-memory database.

    Yields:
        AsyncSession: Test database session
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_owner(test_async_db):
    """Factory creating committed owners."""

    async def _make(slug: str = "acme", name: str | None = None, **fields) -> OwnerModel:
        owner = OwnerModel(slug=slug, name=name or slug.title(), **fields)
        test_async_db.add(owner)
        await test_async_db.commit()
        return owner

    return _make


@pytest.fixture
def make_document(test_async_db):
    """Factory creating committed documents."""

    async def _make(
        owner: OwnerModel,
        slug: str,
        title: str | None = None,
        embedding_space: EmbeddingSpace = EmbeddingSpace.PROVIDER,
        **fields,
    ) -> DocumentModel:
        document = DocumentModel(
            slug=slug,
            title=title or slug.replace("-", " ").title(),
            owner_id=owner.id,
            embedding_space=embedding_space,
            **fields,
        )
        test_async_db.add(document)
        await test_async_db.commit()
        return document

    return _make


@pytest.fixture
def make_chunks(test_async_db):
    """Factory creating committed chunks embedded with hashed_vector."""

    async def _make(document: DocumentModel, contents: list[str], pages: list[int] | None = None):
        chunks = []
        for index, content in enumerate(contents):
            chunk = ChunkModel(
                document_id=document.id,
                chunk_index=index,
                content=content,
                attributes={"page_number": pages[index] if pages else 1},
                embedding=hashed_vector(content),
            )
            test_async_db.add(chunk)
            chunks.append(chunk)
        await test_async_db.commit()
        return chunks

    return _make


@pytest.fixture
def make_job(test_async_db, tmp_path):
    """Factory creating committed processing jobs."""

    async def _make(
        owner: OwnerModel,
        slug: str = "handbook",
        status: JobStatus = JobStatus.PENDING,
        embedding_space: EmbeddingSpace = EmbeddingSpace.PROVIDER,
        document_id: uuid.UUID | None = None,
        updated_minutes_ago: int | None = None,
    ) -> ProcessingJobModel:
        source = tmp_path / f"{slug}.txt"
        source.write_text("placeholder", encoding="utf-8")
        job = ProcessingJobModel(
            document_id=document_id or uuid.uuid4(),
            status=status,
            filename=source.name,
            content_type="text/plain",
            file_size=11,
            source_path=str(source),
            slug=slug,
            title=slug.replace("-", " ").title(),
            owner_id=owner.id,
            embedding_space=embedding_space,
        )
        if updated_minutes_ago is not None:
            job.updated_at = datetime.now(timezone.utc) - timedelta(minutes=updated_minutes_ago)
        test_async_db.add(job)
        await test_async_db.commit()
        return job

    return _make


@pytest.fixture
def fake_embeddings() -> CountingEmbeddings:
    return CountingEmbeddings()


@pytest.fixture
def embedding_provider(fake_embeddings) -> EmbeddingProvider:
    return EmbeddingProvider.from_instances(
        {
            EmbeddingSpace.PROVIDER: fake_embeddings,
            EmbeddingSpace.LOCAL: fake_embeddings,
        }
    )


@pytest.fixture
def embedding_cache(embedding_provider) -> EmbeddingCache:
    return EmbeddingCache(embedding_provider, ttl_seconds=3600, max_entries=1000)
