"""
Processing job ORM model.

Tracks one uploaded source file through the ingestion state machine.
Frontends poll /documents/{job_id}/status to follow progress.

Dependencies: sqlalchemy, docqa.boundary.db.base
System role: Durable status for document ingestion
"""

import enum
import uuid

from sqlalchemy import Enum, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from docqa.boundary.db.base import Base, TimestampMixin, UUIDMixin
from docqa.boundary.db.models.document_model import EmbeddingSpace


class JobStatus(str, enum.Enum):
    """
    Ingestion job states.

    PENDING: Accepted, waiting for a worker
    PROCESSING: Claimed by a worker; updated_at is the heartbeat
    READY: Document and all chunks persisted
    ERROR: A stage failed; see failed_stage and error_message
    """

    PENDING = "pending"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


class ProcessingStage(str, enum.Enum):
    """Pipeline steps, recorded as current_stage and failed_stage."""

    DOWNLOAD = "download"
    EXTRACT = "extract"
    CHUNK = "chunk"
    EMBED = "embed"
    STORE = "store"
    COMPLETE = "complete"


class ProcessingJobModel(Base, UUIDMixin, TimestampMixin):
    """
    Processing job ORM model.

    Attributes:
        id: UUID primary key
        document_id: Immutable document id reserved at enqueue. Not a foreign
            key: the document row is only created by the store step.
        status: Current state (PENDING/PROCESSING/READY/ERROR)
        current_stage: Last stage entered by the worker
        failed_stage: Stage that raised, when status is ERROR
        error_message: Human-readable failure description
        filename: Original upload filename
        content_type: Upload MIME type
        file_size: Upload size in bytes
        source_path: Location of the stored upload
        slug, title, subtitle, owner_id, embedding_space: Document fields
            applied by the store step
        chunk_count: Chunks persisted by the last successful run
        attempts: Number of times a worker claimed this job
        created_at: Enqueue timestamp (UTC)
        updated_at: Last transition or heartbeat (UTC)
    """

    __tablename__ = "processing_jobs"

    document_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False),
        nullable=False,
        default=JobStatus.PENDING,
        index=True,
    )
    current_stage: Mapped[ProcessingStage | None] = mapped_column(
        Enum(ProcessingStage, native_enum=False),
        nullable=True,
    )
    failed_stage: Mapped[ProcessingStage | None] = mapped_column(
        Enum(ProcessingStage, native_enum=False),
        nullable=True,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    filename: Mapped[str] = mapped_column(String(512), nullable=False)
    content_type: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    source_path: Mapped[str] = mapped_column(String(1024), nullable=False)

    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(500), nullable=True)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    embedding_space: Mapped[EmbeddingSpace] = mapped_column(
        Enum(EmbeddingSpace, native_enum=False),
        nullable=False,
    )

    chunk_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
