"""
Notification dispatch configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Processing notification webhook configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from docqa.configs.base import BaseSettings


class NotificationSettings(BaseSettings):
    """Webhook used to announce job completion or failure."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NOTIFY_",
        case_sensitive=False,
        extra="ignore",
    )

    webhook_url: str | None = Field(
        default=None,
        description="Endpoint receiving job events (log only when unset)",
    )
    timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout for webhook delivery",
    )
