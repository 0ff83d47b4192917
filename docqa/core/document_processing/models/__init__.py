"""Document processing models."""

from .chunk import ChunkDraft
from .extracted_text import ExtractedText
from .pipeline_result import PipelineResult

__all__ = ["ChunkDraft", "ExtractedText", "PipelineResult"]
