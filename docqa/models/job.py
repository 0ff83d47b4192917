"""
Processing job schemas.

Dependencies: pydantic
System role: Job status API contracts
"""

import uuid
from datetime import datetime
from typing import Any, Sequence

from pydantic import Field

from docqa.boundary.db.models.job_model import JobStatus, ProcessingJobModel, ProcessingStage
from docqa.boundary.db.models.processing_log_model import ProcessingLogModel
from docqa.models.common import CamelModel


class JobStatusResponse(CamelModel):
    """Polling view of a processing job."""

    job_id: uuid.UUID
    document_id: uuid.UUID
    slug: str
    status: JobStatus
    current_stage: ProcessingStage | None = None
    failed_stage: ProcessingStage | None = None
    error_message: str | None = None
    chunk_count: int = 0
    attempts: int = 0
    updated_at: datetime

    @classmethod
    def from_job(cls, job: ProcessingJobModel) -> "JobStatusResponse":
        return cls(
            job_id=job.id,
            document_id=job.document_id,
            slug=job.slug,
            status=job.status,
            current_stage=job.current_stage,
            failed_stage=job.failed_stage,
            error_message=job.error_message,
            chunk_count=job.chunk_count,
            attempts=job.attempts,
            updated_at=job.updated_at,
        )


class RetryResponse(CamelModel):
    """Accepted retry."""

    job_id: uuid.UUID
    status: JobStatus
    message: str


class ProcessingLogEntryResponse(CamelModel):
    """One stage event of a processing run."""

    stage: str
    status: str
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ProcessingLogResponse(CamelModel):
    """Stage events of a job, oldest first."""

    job_id: uuid.UUID
    slug: str
    status: JobStatus
    entries: list[ProcessingLogEntryResponse]
    count: int

    @classmethod
    def from_entries(
        cls,
        job: ProcessingJobModel,
        entries: Sequence[ProcessingLogModel],
    ) -> "ProcessingLogResponse":
        return cls(
            job_id=job.id,
            slug=job.slug,
            status=job.status,
            entries=[
                ProcessingLogEntryResponse(
                    stage=entry.stage,
                    status=entry.status,
                    message=entry.message,
                    metadata=entry.details or {},
                    created_at=entry.created_at,
                )
                for entry in entries
            ],
            count=len(entries),
        )
