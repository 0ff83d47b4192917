"""
Document processing pipeline.

Extract -> chunk -> embed -> store, driven by the job state machine.
"""

from .entrypoint import DocumentPipeline
from .models import ChunkDraft, ExtractedText, PipelineResult
from .processing_logger import ProcessingLogger
from .state_machine import ALLOWED_TRANSITIONS, is_stale, transition, validate_transition

__all__ = [
    "ALLOWED_TRANSITIONS",
    "ChunkDraft",
    "DocumentPipeline",
    "ExtractedText",
    "PipelineResult",
    "ProcessingLogger",
    "is_stale",
    "transition",
    "validate_transition",
]
