"""
Tests for RetrievalOrchestrator.

System role: Verification of multi-document validation and query fan-out
"""

import pytest

from docqa.boundary.db.models import EmbeddingSpace
from docqa.boundary.embeddings.providers import EmbeddingProvider
from docqa.configs.retrieval import RetrievalSettings
from docqa.core.embedding_cache import EmbeddingCache
from docqa.core.exceptions import EmbeddingError, ValidationError
from docqa.core.registry import DocumentRegistry
from docqa.core.retrieval import ChunkStore, SearchMode
from docqa.core.retrieval.orchestrator import RetrievalOrchestrator

from tests.conftest import CountingEmbeddings, hashed_vector


@pytest.fixture
async def library(make_owner, make_document, make_chunks):
    """acme owns handbook and policies (provider) plus faq (local); globex owns pricing."""
    acme = await make_owner("acme", "Acme Corp")
    globex = await make_owner("globex", "Globex")
    handbook = await make_document(acme, "handbook")
    policies = await make_document(acme, "policies")
    faq = await make_document(acme, "faq", embedding_space=EmbeddingSpace.LOCAL)
    pricing = await make_document(globex, "pricing")
    await make_chunks(
        handbook,
        [
            "Refund requests are accepted within thirty days of purchase.",
            "Office hours are nine to five on weekdays.",
            "Warranty covers manufacturing defects for one year.",
        ],
        pages=[1, 2, 3],
    )
    await make_chunks(
        policies,
        [
            "Refund requests need the original receipt.",
            "Parking is available behind the building.",
        ],
    )
    await make_chunks(faq, ["Refund requests are handled by support."])
    await make_chunks(pricing, ["Refund requests for subscriptions are prorated."])
    return {"handbook": handbook, "policies": policies, "faq": faq, "pricing": pricing}


@pytest.fixture
def registry(session_factory) -> DocumentRegistry:
    return DocumentRegistry(session_factory)


@pytest.fixture
def orchestrator(registry, embedding_cache) -> RetrievalOrchestrator:
    settings = RetrievalSettings()
    return RetrievalOrchestrator(registry, ChunkStore(settings), embedding_cache, settings)


class TestValidate:
    """Test suite for selector validation rules."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("selectors", [None, "", [], " + "])
    async def test_no_documents(self, orchestrator, registry, library, selectors) -> None:
        await registry.load()

        with pytest.raises(ValidationError) as exc_info:
            orchestrator.validate(selectors)

        assert exc_info.value.code == "no_documents"
        assert exc_info.value.message == "At least one document must be specified."

    @pytest.mark.asyncio
    async def test_too_many_documents_checked_before_availability(self, orchestrator, registry, library) -> None:
        await registry.load()

        with pytest.raises(ValidationError) as exc_info:
            orchestrator.validate("a+b+c+d+e+f")

        assert exc_info.value.code == "too_many_documents"
        assert exc_info.value.message == (
            "Maximum 5 documents can be searched simultaneously. You specified 6."
        )

    @pytest.mark.asyncio
    async def test_unknown_documents_are_listed(self, orchestrator, registry, library) -> None:
        await registry.load()

        with pytest.raises(ValidationError) as exc_info:
            orchestrator.validate("handbook+ghost+phantom")

        assert exc_info.value.code == "documents_not_available"
        assert exc_info.value.message == "The following document(s) are not available: ghost, phantom"

    @pytest.mark.asyncio
    async def test_mixed_owners_are_rejected(self, orchestrator, registry, library) -> None:
        await registry.load()

        with pytest.raises(ValidationError) as exc_info:
            orchestrator.validate("handbook+pricing")

        assert exc_info.value.code == "mixed_owners"
        assert exc_info.value.message == "Cannot combine documents from different owners: Acme Corp, Globex"

    @pytest.mark.asyncio
    async def test_mixed_embedding_spaces_are_rejected(self, orchestrator, registry, library) -> None:
        await registry.load()

        with pytest.raises(ValidationError) as exc_info:
            orchestrator.validate("handbook+faq")

        assert exc_info.value.code == "mixed_embedding_spaces"
        assert exc_info.value.message == (
            "Cannot combine documents with different embedding types: local, provider"
        )

    @pytest.mark.asyncio
    async def test_owner_check_runs_before_space_check(self, orchestrator, registry, library) -> None:
        await registry.load()

        with pytest.raises(ValidationError) as exc_info:
            orchestrator.validate(["faq", "pricing"])

        assert exc_info.value.code == "mixed_owners"

    @pytest.mark.asyncio
    async def test_slug_and_id_of_one_document_count_once(self, orchestrator, registry, library) -> None:
        await registry.load()

        entries, version = orchestrator.validate(["handbook", str(library["handbook"].id)])

        assert [entry.slug for entry in entries] == ["handbook"]
        assert version == registry.version


class TestQuery:
    """Test suite for RetrievalOrchestrator.query."""

    @pytest.mark.asyncio
    async def test_results_are_grouped_in_selector_order(self, orchestrator, test_async_db, library) -> None:
        # Act
        result = await orchestrator.query(test_async_db, "policies+handbook", "refund requests")

        # Assert
        slugs = [chunk.document_slug for chunk in result.chunks]
        assert slugs == sorted(slugs, key=["policies", "handbook"].index)
        assert {"policies", "handbook"} == set(slugs)
        assert [entry.slug for entry in result.documents] == ["policies", "handbook"]
        assert result.embedding_space == EmbeddingSpace.PROVIDER

    @pytest.mark.asyncio
    async def test_best_chunk_is_tagged_with_its_document(self, orchestrator, test_async_db, library) -> None:
        result = await orchestrator.query(test_async_db, "handbook", "refund requests", k=1)

        assert len(result.chunks) == 1
        top = result.chunks[0]
        assert top.document_id == library["handbook"].id
        assert top.owner_slug == "acme"
        assert top.page_number == 1
        assert top.content.startswith("Refund requests")

    @pytest.mark.asyncio
    async def test_query_loads_registry_on_first_use(self, orchestrator, registry, test_async_db, library) -> None:
        assert not registry.is_loaded

        result = await orchestrator.query(test_async_db, "handbook", "warranty")

        assert registry.is_loaded
        assert result.registry_version == registry.version == 1

    @pytest.mark.asyncio
    async def test_query_embedding_is_cached(self, orchestrator, test_async_db, library, fake_embeddings) -> None:
        await orchestrator.query(test_async_db, "handbook", "refund requests")
        await orchestrator.query(test_async_db, "handbook", "Refund   Requests")

        assert fake_embeddings.query_calls == ["refund requests"]

    @pytest.mark.asyncio
    async def test_supplied_vector_skips_embedding(self, orchestrator, test_async_db, library, fake_embeddings) -> None:
        result = await orchestrator.query(
            test_async_db,
            "handbook",
            "refund requests",
            query_vector=hashed_vector("refund requests"),
            mode=SearchMode.VECTOR,
        )

        assert fake_embeddings.query_calls == []
        assert result.chunks[0].content.startswith("Refund requests")

    @pytest.mark.asyncio
    async def test_blank_query_is_rejected(self, orchestrator, test_async_db, library) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.query(test_async_db, "handbook", "   ")

        assert exc_info.value.code == "empty_query"

    @pytest.mark.asyncio
    async def test_embedding_failure_is_wrapped(self, registry, test_async_db, library) -> None:
        # Arrange
        embeddings = CountingEmbeddings(fail_times=1)
        provider = EmbeddingProvider.from_instances(
            {EmbeddingSpace.PROVIDER: embeddings, EmbeddingSpace.LOCAL: embeddings}
        )
        settings = RetrievalSettings()
        orchestrator = RetrievalOrchestrator(registry, ChunkStore(settings), EmbeddingCache(provider), settings)

        # Act / Assert
        with pytest.raises(EmbeddingError):
            await orchestrator.query(test_async_db, "handbook", "refund requests")
