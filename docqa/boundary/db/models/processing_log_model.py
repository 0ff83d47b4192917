"""
Processing log ORM model.

Audit trail of pipeline stage events for a job: one row per started,
progress, completed or failed event, with the event context in a JSON bag.

Dependencies: sqlalchemy, docqa.boundary.db.base
System role: Durable per-job processing history
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from docqa.boundary.db.base import Base, UUIDMixin, utcnow


class ProcessingLogModel(Base, UUIDMixin):
    """
    Processing log ORM model.

    Attributes:
        id: UUID primary key
        job_id: FK to processing_jobs.id (CASCADE on delete)
        slug: Document slug at the time of the event
        stage: download, extract, chunk, embed, store or complete
        status: started, progress, completed or failed
        message: Human-readable event text
        details: Event context stored in the "metadata" column
            (durations, counts, error type)
        sequence: Event position within one pipeline run (orders same-instant events)
        created_at: Event timestamp (UTC)
    """

    __tablename__ = "processing_logs"

    job_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("processing_jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slug: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    stage: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
        index=True,
    )
