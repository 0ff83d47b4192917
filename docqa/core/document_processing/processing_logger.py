"""
Structured stage logging for ingestion jobs.

Emits one log event per stage transition with job context attached via
`extra`, keeps per-stage durations for the completion summary, and buffers
each event as a processing_logs row for the pipeline to persist at its next
commit.

Dependencies: logging (stdlib), docqa.observability.log_utils
System role: Per-job observability for the processing pipeline
"""

import logging
import time
from typing import Any

from docqa.boundary.db.base import utcnow
from docqa.observability.log_utils import to_log_value

logger = logging.getLogger(__name__)


class ProcessingLogger:
    """
    Stage event logger bound to one job.

    Stages: download, extract, chunk, embed, store, complete, error.
    Statuses: started, progress, completed, failed.
    """

    def __init__(self, job_id: str, slug: str) -> None:
        self.job_id = job_id
        self.slug = slug
        self._started_at = time.perf_counter()
        self._stage_started: dict[str, float] = {}
        self.timings_ms: dict[str, float] = {}
        self._pending: list[dict[str, Any]] = []
        self._sequence = 0

    def started(self, stage: str, **context: Any) -> None:
        self._stage_started[stage] = time.perf_counter()
        self._emit(logging.INFO, stage, "started", f"{stage} started", context)

    def progress(self, stage: str, message: str, **context: Any) -> None:
        self._emit(logging.INFO, stage, "progress", message, context)

    def completed(self, stage: str, **context: Any) -> float:
        """
        Log stage completion and record its duration.

        Returns:
            float: Stage duration in milliseconds
        """
        started = self._stage_started.pop(stage, time.perf_counter())
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        self.timings_ms[stage] = duration_ms
        self._emit(
            logging.INFO,
            stage,
            "completed",
            f"{stage} completed in {duration_ms}ms",
            {**context, "duration_ms": duration_ms},
        )
        return duration_ms

    def failed(self, stage: str, error: Exception, **context: Any) -> None:
        self._emit(
            logging.ERROR,
            stage,
            "failed",
            f"{stage} failed - {type(error).__name__}: {error}",
            {
                **context,
                "error_type": type(error).__name__,
                "is_retryable": getattr(error, "is_retryable", False),
            },
        )

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self._started_at) * 1000, 2)

    def summary(self, **context: Any) -> None:
        """Log the completion summary with all recorded stage timings."""
        self._emit(
            logging.INFO,
            "complete",
            "completed",
            f"Processing finished in {self.elapsed_ms}ms",
            {**context, **{f"{stage}_ms": ms for stage, ms in self.timings_ms.items()}},
        )

    def _emit(
        self,
        level: int,
        stage: str,
        status: str,
        message: str,
        context: dict[str, Any],
    ) -> None:
        details = {key: to_log_value(value) for key, value in context.items()}
        extra = dict(details)
        extra.update({"job_id": self.job_id, "slug": self.slug, "stage": stage, "stage_status": status})
        logger.log(level, f"[{self.slug}] {message}", extra=extra)
        self._pending.append(
            {
                "slug": self.slug,
                "stage": stage,
                "status": status,
                "message": message,
                "details": details,
                "sequence": self._sequence,
                "created_at": utcnow(),
            }
        )
        self._sequence += 1

    def drain(self) -> list[dict[str, Any]]:
        """
        Hand over buffered events and forget them.

        Returns:
            list[dict]: processing_logs row values, oldest first
        """
        pending, self._pending = self._pending, []
        return pending
