"""
Tests for AdmissionController.

System role: Verification of load shedding
"""

import pytest

from docqa.core.admission import (
    PROCESSING_OVERLOAD_MESSAGE,
    QUERY_OVERLOAD_MESSAGE,
    AdmissionController,
)
from docqa.core.exceptions import OverloadedError


class TestAdmissionController:
    """Test suite for AdmissionController."""

    def test_try_acquire_until_saturated(self) -> None:
        # Arrange
        controller = AdmissionController("processing", max_concurrent=2)
        controller.try_acquire()
        controller.try_acquire()

        # Act
        with pytest.raises(OverloadedError) as exc_info:
            controller.try_acquire()

        # Assert
        error = exc_info.value
        assert error.message == (
            "Server is currently processing the maximum number of documents. "
            "Please try again in a moment."
        )
        assert error.retry_after == 30
        assert error.load == {"active": 2, "max": 2, "available": 0, "utilization_percent": 100}

    def test_release_is_idempotent(self) -> None:
        # Arrange
        controller = AdmissionController("processing", max_concurrent=2)
        ticket = controller.try_acquire()
        controller.try_acquire()

        # Act
        ticket.release()
        ticket.release()

        # Assert
        assert controller.active == 1
        assert ticket.released

    def test_load_reports_utilization(self) -> None:
        controller = AdmissionController("query", max_concurrent=4)
        controller.try_acquire()

        assert controller.load() == {"active": 1, "max": 4, "available": 3, "utilization_percent": 25}

    def test_rejects_non_positive_capacity(self) -> None:
        with pytest.raises(ValueError):
            AdmissionController("processing", max_concurrent=0)

    @pytest.mark.asyncio
    async def test_slot_releases_on_exit_and_on_error(self) -> None:
        # Arrange
        controller = AdmissionController(
            "query",
            max_concurrent=1,
            retry_after=5,
            overload_message=QUERY_OVERLOAD_MESSAGE,
        )

        # Act / Assert
        async with controller.slot():
            assert controller.active == 1
            with pytest.raises(OverloadedError) as exc_info:
                controller.try_acquire()
            assert exc_info.value.retry_after == 5
            assert "maximum number of queries" in exc_info.value.message

        with pytest.raises(RuntimeError):
            async with controller.slot():
                raise RuntimeError("boom")

        assert controller.active == 0

    def test_default_message_is_processing(self) -> None:
        controller = AdmissionController("processing", max_concurrent=1)
        controller.try_acquire()
        with pytest.raises(OverloadedError, match="maximum number of documents"):
            controller.try_acquire()
        assert PROCESSING_OVERLOAD_MESSAGE.startswith("Server is currently processing")
