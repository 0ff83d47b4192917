"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - OwnerModel, DocumentModel, ChunkModel, ProcessingJobModel: Core domain entities
  - EmbeddingSpace, JobStatus, ProcessingStage: Enum types
  - owner_crud, document_crud, chunk_crud, processing_job_crud: CRUD operation singletons

Dependencies: sqlalchemy, docqa.configs
System role: Database adapter; the relational store is the source of truth.
"""

from docqa.boundary.db.base import Base, TimestampMixin, UUIDMixin
from docqa.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from docqa.boundary.db.models import (
    ChunkModel,
    DocumentModel,
    EmbeddingSpace,
    JobStatus,
    OwnerModel,
    ProcessingJobModel,
    ProcessingStage,
)
from docqa.boundary.db.CRUD import (
    BaseCRUD,
    chunk_crud,
    document_crud,
    owner_crud,
    processing_job_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "ChunkModel",
    "DocumentModel",
    "EmbeddingSpace",
    "JobStatus",
    "OwnerModel",
    "ProcessingJobModel",
    "ProcessingStage",
    # CRUD
    "BaseCRUD",
    "chunk_crud",
    "document_crud",
    "owner_crud",
    "processing_job_crud",
]
