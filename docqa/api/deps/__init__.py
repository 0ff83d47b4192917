"""API-specific dependencies."""

from .dependencies import (
    ServiceCache,
    get_embedding_cache,
    get_job_service,
    get_orchestrator,
    get_processing_admission,
    get_processing_runner,
    get_query_admission,
    get_registry,
    get_service_cache,
    get_settings_dependency,
)

__all__ = [
    "ServiceCache",
    "get_embedding_cache",
    "get_job_service",
    "get_orchestrator",
    "get_processing_admission",
    "get_processing_runner",
    "get_query_admission",
    "get_registry",
    "get_service_cache",
    "get_settings_dependency",
]
