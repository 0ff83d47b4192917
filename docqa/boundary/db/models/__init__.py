"""ORM models."""

from docqa.boundary.db.models.chunk_model import ChunkModel
from docqa.boundary.db.models.document_model import DocumentModel, EmbeddingSpace
from docqa.boundary.db.models.job_model import JobStatus, ProcessingJobModel, ProcessingStage
from docqa.boundary.db.models.owner_model import OwnerModel
from docqa.boundary.db.models.processing_log_model import ProcessingLogModel

__all__ = [
    "ChunkModel",
    "DocumentModel",
    "EmbeddingSpace",
    "JobStatus",
    "OwnerModel",
    "ProcessingJobModel",
    "ProcessingLogModel",
    "ProcessingStage",
]
