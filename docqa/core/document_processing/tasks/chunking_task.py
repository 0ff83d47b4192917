"""
Text chunking task using RecursiveCharacterTextSplitter.

Splits extracted text into overlapping, page-attributed chunks.
Output is deterministic for identical input and settings.

Dependencies: langchain_text_splitters
System role: Second stage of document ingestion pipeline
"""

import bisect
import re

from langchain_text_splitters import RecursiveCharacterTextSplitter

from ..models import ChunkDraft, ExtractedText

PAGE_MARKER_RE = re.compile(r"\[Page (\d+)\]")


class ChunkingTask:
    """Split extracted text into chunks carrying page metadata."""

    def __init__(
        self,
        chunk_size: int = 2000,
        chunk_overlap: int = 400,
        chars_per_token: int = 4,
    ) -> None:
        """
        Initialize chunking task with splitter configuration.

        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Overlap between consecutive chunks in characters
            chars_per_token: Ratio used for the tokens_approx attribute

        Raises:
            ValueError: When overlap is not smaller than chunk size
        """
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be >= 0 and smaller than chunk_size")

        self._chars_per_token = chars_per_token
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            add_start_index=True,
            length_function=len,
        )

    def chunk(self, extracted: ExtractedText) -> list[ChunkDraft]:
        """
        Split extracted text into chunks.

        Page number of a chunk is the last [Page N] marker starting inside it,
        otherwise the last marker before it, otherwise 1; always clamped
        to [1, total_pages].

        Args:
            extracted: Output of the extract stage

        Returns:
            list[ChunkDraft]: Chunks in document order, empty ones dropped

        Raises:
            ValueError: When the text is empty
        """
        if not extracted.text.strip():
            raise ValueError("No text to chunk")

        markers = [(m.start(), int(m.group(1))) for m in PAGE_MARKER_RE.finditer(extracted.text)]
        marker_starts = [start for start, _ in markers]

        documents = self._splitter.create_documents([extracted.text])

        drafts: list[ChunkDraft] = []
        for document in documents:
            content = document.page_content.strip()
            if not content:
                continue

            char_start = document.metadata.get("start_index", 0)
            if char_start < 0:
                char_start = 0
            char_end = char_start + len(document.page_content)

            first = bisect.bisect_left(marker_starts, char_start)
            last = bisect.bisect_left(marker_starts, char_end)
            inside = [page for _, page in markers[first:last]]
            if inside:
                page_number = inside[-1]
            else:
                page_number = markers[first - 1][1] if first > 0 else 1
            page_number = max(1, min(page_number, extracted.total_pages))

            drafts.append(
                ChunkDraft(
                    chunk_index=len(drafts),
                    content=content,
                    attributes={
                        "page_number": page_number,
                        "char_start": char_start,
                        "char_end": char_end,
                        "tokens_approx": -(-len(content) // self._chars_per_token),
                        "page_markers_found": len(inside),
                        "source": extracted.source,
                    },
                )
            )

        return drafts
