"""Application services."""

from .job_service import JobService
from .processing_runner import ProcessingRunner

__all__ = ["JobService", "ProcessingRunner"]
