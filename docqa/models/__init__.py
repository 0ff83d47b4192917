"""API request/response schemas."""

from docqa.models.cache import CacheClearResponse, CacheStatsResponse
from docqa.models.common import CamelModel, ErrorDetail
from docqa.models.document import (
    DocumentActiveRequest,
    DocumentActiveResponse,
    DocumentEntryResponse,
    DocumentListResponse,
    DocumentUploadResponse,
    RegistryRefreshResponse,
)
from docqa.models.job import (
    JobStatusResponse,
    ProcessingLogEntryResponse,
    ProcessingLogResponse,
    RetryResponse,
)
from docqa.models.query import ChunkResponse, QueryRequest, QueryResponse

__all__ = [
    "CacheClearResponse",
    "CacheStatsResponse",
    "CamelModel",
    "ChunkResponse",
    "DocumentActiveRequest",
    "DocumentActiveResponse",
    "DocumentEntryResponse",
    "DocumentListResponse",
    "DocumentUploadResponse",
    "ErrorDetail",
    "JobStatusResponse",
    "ProcessingLogEntryResponse",
    "ProcessingLogResponse",
    "QueryRequest",
    "QueryResponse",
    "RegistryRefreshResponse",
    "RetryResponse",
]
