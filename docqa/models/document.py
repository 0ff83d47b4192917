"""
Document and registry schemas.

Dependencies: pydantic
System role: Document and registry API contracts
"""

import uuid

from pydantic import Field

from docqa.boundary.db.models.document_model import EmbeddingSpace
from docqa.boundary.db.models.job_model import JobStatus
from docqa.models.common import CamelModel


class DocumentUploadResponse(CamelModel):
    """Accepted upload."""

    job_id: uuid.UUID
    document_id: uuid.UUID
    status: JobStatus


class DocumentEntryResponse(CamelModel):
    """One registry entry."""

    id: uuid.UUID
    slug: str
    title: str
    subtitle: str | None = None
    owner_slug: str
    owner_name: str
    owner_intro_message: str | None = None
    intro_message: str | None = None
    cover: str | None = None
    embedding_space: EmbeddingSpace
    is_public: bool
    requires_auth: bool
    version: int = Field(description="Registry version this entry was built into")


class DocumentListResponse(CamelModel):
    """Registry listing."""

    documents: list[DocumentEntryResponse]
    version: int
    count: int


class RegistryRefreshResponse(CamelModel):
    """Result of a forced registry refresh."""

    success: bool
    message: str
    document_count: int
    version: int


class DocumentActiveRequest(CamelModel):
    """Soft-enable or soft-disable a document."""

    active: bool


class DocumentActiveResponse(CamelModel):
    """Document activation result."""

    document_id: uuid.UUID
    slug: str
    active: bool
    registry_version: int = Field(description="Registry version after the change")
