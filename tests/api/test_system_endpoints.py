"""
Tests for health, registry and cache endpoints.

System role: Verification of operational endpoints
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.api.deps import get_embedding_cache, get_registry
from docqa.boundary.db import get_async_db
from docqa.core.exceptions import RegistryError
from docqa.core.registry import DocumentRegistry

from tests.api.conftest import NullSession


class TestHealth:
    """Test suite for /health."""

    def test_healthy_with_loaded_registry(self, client, loaded_registry) -> None:
        client.app.dependency_overrides[get_registry] = lambda: loaded_registry

        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "message": "Server Healthy",
            "registryVersion": 1,
            "documentCount": 3,
        }

    def test_degraded_before_first_load(self, client) -> None:
        registry = DocumentRegistry(lambda: NullSession())
        client.app.dependency_overrides[get_registry] = lambda: registry

        response = client.get("/api/v1/health")

        assert response.json()["status"] == "degraded"

    def test_database_ok(self, client) -> None:
        session = MagicMock()
        session.execute = AsyncMock()

        async def db():
            yield session

        client.app.dependency_overrides[get_async_db] = db

        response = client.get("/api/v1/health/db")

        assert response.status_code == 200
        session.execute.assert_awaited_once()

    def test_database_down(self, client) -> None:
        session = MagicMock()
        session.execute = AsyncMock(side_effect=OSError("connection refused"))

        async def db():
            yield session

        client.app.dependency_overrides[get_async_db] = db

        response = client.get("/api/v1/health/db")

        assert response.status_code == 503
        assert response.json()["detail"] == "Database unavailable"


class TestRegistryRefresh:
    """Test suite for POST /registry/refresh."""

    def test_refresh_bumps_version(self, client, loaded_registry) -> None:
        client.app.dependency_overrides[get_registry] = lambda: loaded_registry

        response = client.post("/api/v1/registry/refresh")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Document registry cache cleared and refreshed",
            "documentCount": 3,
            "version": 2,
        }

    def test_refresh_failure_returns_503(self, client) -> None:
        registry = MagicMock()
        registry.refresh = AsyncMock(side_effect=RegistryError("Failed to refresh document registry: timeout"))
        client.app.dependency_overrides[get_registry] = lambda: registry

        response = client.post("/api/v1/registry/refresh")

        assert response.status_code == 503


class TestCacheEndpoints:
    """Test suite for /cache."""

    @pytest.fixture
    def cache_client(self, client, embedding_cache):
        client.app.dependency_overrides[get_embedding_cache] = lambda: embedding_cache
        return client

    def test_stats(self, cache_client) -> None:
        response = cache_client.get("/api/v1/cache/stats")

        assert response.status_code == 200
        assert response.json() == {
            "size": 0,
            "maxEntries": 1000,
            "ttlSeconds": 3600,
            "hits": 0,
            "misses": 0,
            "hitRate": 0.0,
        }

    def test_clear(self, client) -> None:
        cache = MagicMock()
        cache.clear.return_value = 7
        client.app.dependency_overrides[get_embedding_cache] = lambda: cache

        response = client.post("/api/v1/cache/clear")

        assert response.json() == {"success": True, "removed": 7}
