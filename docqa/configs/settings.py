"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from docqa.configs.base import BaseSettings
from docqa.configs.database import DatabaseSettings
from docqa.configs.embeddings import EmbeddingSettings
from docqa.configs.notifications import NotificationSettings
from docqa.configs.processing import ProcessingSettings
from docqa.configs.registry import RegistrySettings
from docqa.configs.retrieval import RetrievalSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    processing: ProcessingSettings = ProcessingSettings()
    retrieval: RetrievalSettings = RetrievalSettings()
    registry: RegistrySettings = RegistrySettings()
    embeddings: EmbeddingSettings = EmbeddingSettings()
    notifications: NotificationSettings = NotificationSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from docqa.configs import get_settings
        settings = get_settings()
    """
    return Settings()
