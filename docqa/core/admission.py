"""
Admission controller.

Non-blocking counting semaphore that bounds concurrent work. Callers that
cannot get a slot are told to back off instead of being queued.

Dependencies: None (pure domain layer)
System role: Load shedding for document processing and queries
"""

import contextlib
import logging
from typing import AsyncIterator

from docqa.core.exceptions import OverloadedError

logger = logging.getLogger(__name__)

PROCESSING_OVERLOAD_MESSAGE = (
    "Server is currently processing the maximum number of documents. "
    "Please try again in a moment."
)
QUERY_OVERLOAD_MESSAGE = (
    "Server is currently handling the maximum number of queries. "
    "Please try again in a moment."
)


class AdmissionTicket:
    """One held slot. Releasing more than once has no effect."""

    def __init__(self, controller: "AdmissionController") -> None:
        self._controller = controller
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._controller._release()


class AdmissionController:
    """Bound the number of concurrently admitted operations."""

    def __init__(
        self,
        name: str,
        max_concurrent: int,
        retry_after: int = 30,
        overload_message: str = PROCESSING_OVERLOAD_MESSAGE,
    ) -> None:
        """
        Initialize controller.

        Args:
            name: Label used in logs
            max_concurrent: Slot count
            retry_after: Back-off hint in seconds
            overload_message: Message carried by OverloadedError

        Raises:
            ValueError: max_concurrent below 1
        """
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.name = name
        self._max_concurrent = max_concurrent
        self._retry_after = retry_after
        self._overload_message = overload_message
        self._active = 0

    @property
    def active(self) -> int:
        return self._active

    def load(self) -> dict:
        """Snapshot of current utilization."""
        return {
            "active": self._active,
            "max": self._max_concurrent,
            "available": self._max_concurrent - self._active,
            "utilization_percent": round(self._active / self._max_concurrent * 100),
        }

    def try_acquire(self) -> AdmissionTicket:
        """
        Take a slot without waiting.

        Returns:
            AdmissionTicket: Release it when the work ends

        Raises:
            OverloadedError: No slot is free
        """
        if self._active >= self._max_concurrent:
            load = self.load()
            logger.warning(
                f"{__name__}:try_acquire - {self.name} saturated",
                extra={"controller": self.name, **load},
            )
            raise OverloadedError(self._overload_message, retry_after=self._retry_after, load=load)
        self._active += 1
        return AdmissionTicket(self)

    @contextlib.asynccontextmanager
    async def slot(self) -> AsyncIterator[AdmissionTicket]:
        """Hold a slot for the duration of an async with block."""
        ticket = self.try_acquire()
        try:
            yield ticket
        finally:
            ticket.release()

    def _release(self) -> None:
        self._active = max(0, self._active - 1)
