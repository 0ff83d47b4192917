"""
Tests for ChunkingTask.

System role: Verification of chunk boundaries and page attribution
"""

import pytest

from docqa.core.document_processing.models import ExtractedText
from docqa.core.document_processing.tasks import ChunkingTask

from tests.conftest import page_text


def marked_text(pages: list[str]) -> ExtractedText:
    text = "\n\n".join(f"[Page {number}] {page}" for number, page in enumerate(pages, start=1))
    return ExtractedText(text=text, total_pages=len(pages), source="handbook.pdf")


@pytest.fixture
def chunker() -> ChunkingTask:
    return ChunkingTask(chunk_size=400, chunk_overlap=0)


class TestChunkingTask:
    """Test suite for ChunkingTask."""

    def test_chunks_follow_page_order(self, chunker) -> None:
        # Arrange
        extracted = marked_text([page_text(1), page_text(2), page_text(3)])

        # Act
        drafts = chunker.chunk(extracted)

        # Assert
        pages = [draft.attributes["page_number"] for draft in drafts]
        assert set(pages) == {1, 2, 3}
        assert pages == sorted(pages)
        assert [draft.chunk_index for draft in drafts] == list(range(len(drafts)))

    def test_chunk_content_matches_its_page(self, chunker) -> None:
        drafts = chunker.chunk(marked_text([page_text(1), page_text(2)]))

        for draft in drafts:
            page = draft.attributes["page_number"]
            assert f"topic{page}" in draft.content

    def test_output_is_deterministic(self, chunker) -> None:
        extracted = marked_text([page_text(1), page_text(2)])

        assert chunker.chunk(extracted) == chunker.chunk(extracted)

    def test_text_without_markers_defaults_to_page_one(self, chunker) -> None:
        drafts = chunker.chunk(ExtractedText(text="plain words " * 10, total_pages=1))

        assert [draft.attributes["page_number"] for draft in drafts] == [1]

    def test_page_number_is_clamped_to_page_count(self, chunker) -> None:
        drafts = chunker.chunk(ExtractedText(text="[Page 7] misnumbered page", total_pages=2))

        assert drafts[0].attributes["page_number"] == 2

    def test_attributes_are_populated(self, chunker) -> None:
        # Act
        draft = chunker.chunk(marked_text(["Refund requests close after thirty days."]))[0]

        # Assert
        assert draft.attributes["source"] == "handbook.pdf"
        assert draft.attributes["page_markers_found"] == 1
        assert draft.attributes["char_start"] == 0
        assert draft.attributes["tokens_approx"] >= 1

    def test_empty_text_is_rejected(self, chunker) -> None:
        with pytest.raises(ValueError):
            chunker.chunk(ExtractedText(text="   ", total_pages=1))

    def test_overlap_must_be_smaller_than_size(self) -> None:
        with pytest.raises(ValueError):
            ChunkingTask(chunk_size=100, chunk_overlap=100)
