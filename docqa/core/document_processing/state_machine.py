"""
Processing job state machine.

Single source of truth for legal job transitions and job staleness.
Every status change goes through `transition`, which validates against
ALLOWED_TRANSITIONS and applies a compare-and-set update.

Dependencies: sqlalchemy, docqa.boundary.db
System role: Guards the ingestion lifecycle
"""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from docqa.boundary.db.base import utcnow
from docqa.boundary.db.CRUD.job_crud import processing_job_crud
from docqa.boundary.db.models.job_model import JobStatus, ProcessingJobModel
from docqa.core.exceptions import InvalidTransitionError, JobConflictError

logger = logging.getLogger(__name__)


# processing -> pending is the stale self-heal; ready/error -> pending is retry
ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.READY, JobStatus.ERROR, JobStatus.PENDING}),
    JobStatus.READY: frozenset({JobStatus.PENDING}),
    JobStatus.ERROR: frozenset({JobStatus.PENDING}),
}


def validate_transition(current: JobStatus, target: JobStatus) -> None:
    """
    Reject any status change not listed in ALLOWED_TRANSITIONS.

    Args:
        current: Status the job is in
        target: Requested status

    Raises:
        InvalidTransitionError: Transition is not allowed
    """
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_stale(
    job: ProcessingJobModel,
    stale_after_seconds: int,
    now: datetime | None = None,
) -> bool:
    """
    Whether a processing job has gone without a heartbeat for too long.

    Args:
        job: Job to inspect
        stale_after_seconds: Staleness threshold
        now: Reference time (defaults to current UTC)

    Returns:
        bool: True only for PROCESSING jobs older than the threshold
    """
    if job.status != JobStatus.PROCESSING:
        return False
    now = now or utcnow()
    return as_utc(now) - as_utc(job.updated_at) > timedelta(seconds=stale_after_seconds)


def minutes_since_update(job: ProcessingJobModel, now: datetime | None = None) -> int:
    """Whole minutes elapsed since the job's last heartbeat."""
    now = now or utcnow()
    return int((as_utc(now) - as_utc(job.updated_at)).total_seconds() // 60)


async def transition(
    session: AsyncSession,
    job: ProcessingJobModel,
    target: JobStatus,
    **fields,
) -> ProcessingJobModel:
    """
    Validate and apply a status change with compare-and-set semantics.

    Args:
        session: Async database session (caller commits)
        job: Job as last observed by the caller
        target: New status
        **fields: Extra columns updated in the same statement

    Returns:
        ProcessingJobModel: Job after the update

    Raises:
        InvalidTransitionError: Transition is not allowed
        JobConflictError: Another worker changed the job first
    """
    current = job.status
    validate_transition(current, target)

    updated = await processing_job_crud.compare_and_set_status(
        session,
        job.id,
        expected=current,
        target=target,
        **fields,
    )
    if updated is None:
        raise JobConflictError(
            "Job status changed concurrently; reload and try again.",
            job_id=str(job.id),
            status=current.value,
        )

    logger.info(
        f"{__name__}:transition - {current.value} -> {target.value}",
        extra={"job_id": str(job.id), "from_status": current.value, "to_status": target.value},
    )
    return updated


async def reset_if_stale(
    session: AsyncSession,
    job: ProcessingJobModel,
    stale_after_seconds: int,
    now: datetime | None = None,
) -> ProcessingJobModel:
    """
    Self-heal an abandoned processing job back to pending.

    Healthy processing jobs are rejected without side effects so an active
    worker is never interrupted.

    Args:
        session: Async database session (caller commits)
        job: Job in PROCESSING
        stale_after_seconds: Staleness threshold
        now: Reference time (defaults to current UTC)

    Returns:
        ProcessingJobModel: Job reset to PENDING

    Raises:
        JobConflictError: Job is processing and still within the threshold
    """
    if not is_stale(job, stale_after_seconds, now):
        raise JobConflictError(
            "Document is currently being processed. Please wait or try again in a few minutes.",
            job_id=str(job.id),
            status=job.status.value,
        )

    minutes = minutes_since_update(job, now)
    logger.warning(
        f"{__name__}:reset_if_stale - Resetting stalled job after {minutes} minutes",
        extra={"job_id": str(job.id), "minutes_stalled": minutes},
    )
    return await transition(
        session,
        job,
        JobStatus.PENDING,
        error_message=f"Processing stalled - reset after {minutes} minutes",
    )
