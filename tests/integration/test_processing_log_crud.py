"""
Test suite for ProcessingLogCRUD against an in-memory database.

System role: Verification of stage event persistence and ordering
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from docqa.boundary.db.CRUD.processing_log_crud import processing_log_crud

AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def entry(stage: str, status: str, sequence: int, created_at: datetime = AT, **details) -> dict:
    return {
        "slug": "handbook",
        "stage": stage,
        "status": status,
        "message": f"{stage} {status}",
        "details": details,
        "sequence": sequence,
        "created_at": created_at,
    }


class TestProcessingLogCRUD:
    """Test suite for ProcessingLogCRUD."""

    @pytest.mark.asyncio
    async def test_same_instant_events_keep_emission_order(self, test_async_db, make_owner, make_job) -> None:
        # Arrange
        job = await make_job(await make_owner())

        # Act
        added = await processing_log_crud.add_entries(
            test_async_db,
            job.id,
            [
                entry("extract", "completed", 1, total_pages=3),
                entry("extract", "started", 0),
                entry("chunk", "started", 0, created_at=AT + timedelta(seconds=1)),
            ],
        )
        entries = await processing_log_crud.list_for_job(test_async_db, job.id)

        # Assert
        assert added == 3
        assert [(e.stage, e.status) for e in entries] == [
            ("extract", "started"),
            ("extract", "completed"),
            ("chunk", "started"),
        ]
        assert entries[1].details == {"total_pages": 3}

    @pytest.mark.asyncio
    async def test_limit_and_job_scoping(self, test_async_db, make_owner, make_job) -> None:
        owner = await make_owner()
        job = await make_job(owner, slug="handbook")
        other = await make_job(owner, slug="faq")
        await processing_log_crud.add_entries(test_async_db, job.id, [entry("extract", "started", 0)])
        await processing_log_crud.add_entries(
            test_async_db, other.id, [entry("extract", "started", 0), entry("extract", "completed", 1)]
        )

        entries = await processing_log_crud.list_for_job(test_async_db, other.id, limit=1)

        assert len(entries) == 1
        assert entries[0].job_id == other.id

    @pytest.mark.asyncio
    async def test_empty_batch_adds_nothing(self, test_async_db) -> None:
        assert await processing_log_crud.add_entries(test_async_db, uuid.uuid4(), []) == 0
