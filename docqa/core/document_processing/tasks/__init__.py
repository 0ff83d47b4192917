"""Document processing tasks."""

from .chunking_task import ChunkingTask
from .embedding_task import EmbeddingTask
from .extraction_task import ExtractionTask, TextExtractor
from .store_task import StoreTask

__all__ = [
    "ChunkingTask",
    "EmbeddingTask",
    "ExtractionTask",
    "StoreTask",
    "TextExtractor",
]
