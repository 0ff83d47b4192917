"""
Document registry configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Registry refresh cadence configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docqa.configs.base import BaseSettings


class RegistrySettings(BaseSettings):
    """Refresh cadence for the in-memory document registry."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="REGISTRY_",
        case_sensitive=False,
        extra="ignore",
    )

    refresh_interval_seconds: int = Field(
        default=120,
        description="Interval of the background auto-refresh task",
    )
    ttl_seconds: int = Field(
        default=120,
        description="Age after which a snapshot is considered stale",
    )
    auto_refresh: bool = Field(
        default=True,
        description="Start the background refresh task on application startup",
    )
