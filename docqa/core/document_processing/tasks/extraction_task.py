"""
Text extraction task using LangChain PyPDFLoader.

Converts a stored upload into plain text with [Page N] markers so that
the chunking stage can attribute chunks to pages.

Dependencies: langchain_community.document_loaders
System role: First stage of document ingestion pipeline
"""

import asyncio
from pathlib import Path
from typing import Protocol

from langchain_community.document_loaders import PyPDFLoader

from docqa.core.exceptions import ExtractionError

from ..models import ExtractedText

PDF_CONTENT_TYPE = "application/pdf"


def page_marker(page_number: int) -> str:
    """Inline marker inserted ahead of each page's text."""
    return f"[Page {page_number}]"


class TextExtractor(Protocol):
    """External text extraction collaborator."""

    async def extract(self, file_path: str, content_type: str, filename: str) -> ExtractedText:
        ...


class ExtractionTask:
    """Extract text from PDF or plain-text uploads."""

    async def extract(self, file_path: str, content_type: str, filename: str) -> ExtractedText:
        """
        Extract text from a stored upload.

        Blocking parsing runs in a worker thread.

        Args:
            file_path: Path of the stored upload
            content_type: Upload MIME type
            filename: Original filename (kept as chunk source)

        Returns:
            ExtractedText: Marked-up text and page count

        Raises:
            ExtractionError: File missing, unreadable, or without text
        """
        path = Path(file_path)
        if not path.exists():
            raise ExtractionError(f"File not found: {file_path}", is_retryable=False)

        try:
            if content_type == PDF_CONTENT_TYPE or path.suffix.lower() == ".pdf":
                pages = await asyncio.to_thread(self._load_pdf_pages, file_path)
            else:
                pages = [await asyncio.to_thread(path.read_text, "utf-8", "replace")]
        except Exception as e:
            raise ExtractionError(f"Failed to extract text: {e}") from e

        if not any(page.strip() for page in pages):
            raise ExtractionError(
                "Document contains no extractable text",
                is_retryable=False,
                details={"filename": filename},
            )

        text = "\n\n".join(
            f"{page_marker(number)} {page.strip()}" for number, page in enumerate(pages, start=1)
        )
        return ExtractedText(text=text, total_pages=len(pages), source=filename)

    @staticmethod
    def _load_pdf_pages(file_path: str) -> list[str]:
        documents = PyPDFLoader(file_path).load()
        return [doc.page_content for doc in documents]
