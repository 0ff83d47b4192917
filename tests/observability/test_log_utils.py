"""
Tests for structured logging helpers and correlation IDs.

System role: Verification of observability utilities
"""

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from docqa.api.deps import get_embedding_cache
from docqa.api.main import create_app
from docqa.boundary.db.models import JobStatus
from docqa.observability import get_correlation_id, set_correlation_id
from docqa.observability.log_utils import (
    log_exception_with_context,
    log_with_context,
    to_log_value,
)
from docqa.observability.middleware import CORRELATION_HEADER


class TestToLogValue:
    """Test suite for to_log_value."""

    @pytest.mark.parametrize("value", [None, True, 3, 0.5])
    def test_scalars_pass_through(self, value) -> None:
        assert to_log_value(value) is value

    def test_enums_and_uuids_become_strings(self) -> None:
        job_id = uuid.uuid4()

        assert to_log_value(JobStatus.READY) == "ready"
        assert to_log_value(job_id) == str(job_id)

    def test_collections_are_summarized(self) -> None:
        assert to_log_value([1, 2, 3]) == "list[3]"
        assert to_log_value({"a": 1}) == "dict[1 keys]"

    def test_long_strings_are_truncated(self) -> None:
        assert to_log_value("x" * 20, max_length=5) == "xxxxx... (+15 chars)"


class TestLogHelpers:
    """Test suite for log_with_context and log_exception_with_context."""

    def test_context_lands_in_record(self, caplog) -> None:
        logger = logging.getLogger("tests.log_utils")

        with caplog.at_level(logging.INFO, logger="tests.log_utils"):
            log_with_context(logger, logging.INFO, "query complete", chunk_count=4, status=JobStatus.READY)

        record = caplog.records[-1]
        assert record.chunk_count == 4
        assert record.status == "ready"

    def test_exception_context(self, caplog) -> None:
        logger = logging.getLogger("tests.log_utils")

        with caplog.at_level(logging.ERROR, logger="tests.log_utils"):
            log_exception_with_context(logger, "embedding failed", RuntimeError("quota"), space="local")

        record = caplog.records[-1]
        assert record.error_type == "RuntimeError"
        assert record.error_msg == "quota"
        assert record.exc_info is not None


class TestCorrelation:
    """Test suite for correlation IDs."""

    def test_generated_when_missing(self) -> None:
        value = set_correlation_id()

        assert get_correlation_id() == value
        assert uuid.UUID(value)

    def test_header_is_echoed(self, embedding_cache) -> None:
        app = create_app()
        app.dependency_overrides[get_embedding_cache] = lambda: embedding_cache

        response = TestClient(app).get("/api/v1/cache/stats", headers={CORRELATION_HEADER: "req-123"})

        assert response.headers[CORRELATION_HEADER] == "req-123"
