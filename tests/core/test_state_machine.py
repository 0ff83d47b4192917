"""
Tests for the processing job state machine.

System role: Verification of job lifecycle rules
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from docqa.boundary.db.models import JobStatus
from docqa.core.document_processing.state_machine import (
    ALLOWED_TRANSITIONS,
    is_stale,
    reset_if_stale,
    transition,
    validate_transition,
)
from docqa.core.exceptions import InvalidTransitionError, JobConflictError


class TestValidateTransition:
    """Test suite for the transition table."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.PENDING, JobStatus.PROCESSING),
            (JobStatus.PROCESSING, JobStatus.READY),
            (JobStatus.PROCESSING, JobStatus.ERROR),
            (JobStatus.PROCESSING, JobStatus.PENDING),
            (JobStatus.ERROR, JobStatus.PENDING),
            (JobStatus.READY, JobStatus.PENDING),
        ],
    )
    def test_allowed_transitions(self, current, target) -> None:
        validate_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (JobStatus.PENDING, JobStatus.READY),
            (JobStatus.PENDING, JobStatus.ERROR),
            (JobStatus.READY, JobStatus.PROCESSING),
            (JobStatus.ERROR, JobStatus.READY),
            (JobStatus.READY, JobStatus.READY),
        ],
    )
    def test_illegal_transitions_raise(self, current, target) -> None:
        with pytest.raises(InvalidTransitionError) as exc_info:
            validate_transition(current, target)

        assert exc_info.value.current == current.value
        assert exc_info.value.target == target.value

    def test_every_status_has_an_entry(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == set(JobStatus)


class TestIsStale:
    """Test suite for staleness detection."""

    def test_only_processing_jobs_can_be_stale(self) -> None:
        old = datetime.now(timezone.utc) - timedelta(hours=1)
        for status in (JobStatus.PENDING, JobStatus.READY, JobStatus.ERROR):
            assert not is_stale(SimpleNamespace(status=status, updated_at=old), 300)

    def test_threshold_boundary(self) -> None:
        # Arrange
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        fresh = SimpleNamespace(status=JobStatus.PROCESSING, updated_at=now - timedelta(seconds=300))
        stale = SimpleNamespace(status=JobStatus.PROCESSING, updated_at=now - timedelta(seconds=301))

        # Act / Assert
        assert not is_stale(fresh, 300, now)
        assert is_stale(stale, 300, now)

    def test_naive_timestamps_are_treated_as_utc(self) -> None:
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        job = SimpleNamespace(status=JobStatus.PROCESSING, updated_at=datetime(2024, 1, 1, 11, 0))

        assert is_stale(job, 300, now)


class TestTransition:
    """Test suite for compare-and-set transitions."""

    @pytest.mark.asyncio
    async def test_transition_updates_status_and_fields(self, test_async_db, make_owner, make_job) -> None:
        # Arrange
        owner = await make_owner()
        job = await make_job(owner)

        # Act
        updated = await transition(test_async_db, job, JobStatus.PROCESSING, attempts=1)
        await test_async_db.commit()

        # Assert
        assert updated.status == JobStatus.PROCESSING
        assert updated.attempts == 1

    @pytest.mark.asyncio
    async def test_concurrent_claim_is_rejected(self, test_async_db, make_owner, make_job) -> None:
        # Arrange
        owner = await make_owner()
        job = await make_job(owner)
        observed = SimpleNamespace(id=job.id, status=JobStatus.PENDING)
        await transition(test_async_db, job, JobStatus.PROCESSING)
        await test_async_db.commit()

        # Act / Assert
        with pytest.raises(JobConflictError):
            await transition(test_async_db, observed, JobStatus.PROCESSING)

    @pytest.mark.asyncio
    async def test_illegal_transition_leaves_job_untouched(self, test_async_db, make_owner, make_job) -> None:
        owner = await make_owner()
        job = await make_job(owner)

        with pytest.raises(InvalidTransitionError):
            await transition(test_async_db, job, JobStatus.READY)

        await test_async_db.refresh(job)
        assert job.status == JobStatus.PENDING


class TestResetIfStale:
    """Test suite for stale job self-heal."""

    @pytest.mark.asyncio
    async def test_stale_job_is_reset_to_pending(self, test_async_db, make_owner, make_job) -> None:
        # Arrange
        owner = await make_owner()
        job = await make_job(owner, status=JobStatus.PROCESSING, updated_minutes_ago=10)

        # Act
        reset = await reset_if_stale(test_async_db, job, stale_after_seconds=300)
        await test_async_db.commit()

        # Assert
        assert reset.status == JobStatus.PENDING
        assert reset.error_message == "Processing stalled - reset after 10 minutes"

    @pytest.mark.asyncio
    async def test_healthy_job_is_not_interrupted(self, test_async_db, make_owner, make_job) -> None:
        # Arrange
        owner = await make_owner()
        job = await make_job(owner, status=JobStatus.PROCESSING, updated_minutes_ago=1)

        # Act
        with pytest.raises(JobConflictError) as exc_info:
            await reset_if_stale(test_async_db, job, stale_after_seconds=300)

        # Assert
        assert "currently being processed" in exc_info.value.message
        await test_async_db.refresh(job)
        assert job.status == JobStatus.PROCESSING
