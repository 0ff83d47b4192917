"""
Fire-and-forget processing notifications.

Announces job completion or failure to an optional webhook. Delivery runs
as an independent asyncio task; failures are logged, never raised, and
never touch job state.

Dependencies: httpx, pydantic
System role: Notification dispatch collaborator
"""

import asyncio
import logging
from datetime import datetime

import httpx
from pydantic import BaseModel, Field

from docqa.boundary.db.base import utcnow

logger = logging.getLogger(__name__)


class ProcessingEvent(BaseModel):
    """Payload announcing the outcome of a job."""

    job_id: str
    document_id: str
    slug: str
    status: str = Field(description="ready or error")
    chunk_count: int = 0
    failed_stage: str | None = None
    error_message: str | None = None
    occurred_at: datetime = Field(default_factory=utcnow)


class ProcessingNotifier:
    """Dispatch ProcessingEvents without blocking the caller."""

    def __init__(self, webhook_url: str | None = None, timeout_seconds: float = 10.0) -> None:
        """
        Initialize notifier.

        Args:
            webhook_url: Endpoint receiving events; log-only when None
            timeout_seconds: HTTP timeout per delivery
        """
        self._webhook_url = webhook_url
        self._timeout_seconds = timeout_seconds
        self._tasks: set[asyncio.Task] = set()

    def dispatch(self, event: ProcessingEvent) -> None:
        """
        Schedule delivery of an event and return immediately.

        Args:
            event: Event to deliver
        """
        task = asyncio.create_task(self._deliver(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight deliveries (used on shutdown)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _deliver(self, event: ProcessingEvent) -> None:
        logger.info(
            f"{__name__}:_deliver - Job {event.status}",
            extra={"job_id": event.job_id, "slug": event.slug, "status": event.status},
        )
        if not self._webhook_url:
            return

        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                response = await client.post(self._webhook_url, json=event.model_dump(mode="json"))
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                f"{__name__}:_deliver - {type(e).__name__}: {e}",
                extra={"job_id": event.job_id, "webhook_url": self._webhook_url},
            )
