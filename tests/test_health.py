"""Integration tests for health check endpoints."""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient

from llm_memory import __version__
from llm_memory.exceptions import ConfigurationError, VectorStoreError


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    async def test_health_returns_200(self, client: AsyncClient) -> None:
        """Health endpoint returns 200 OK."""
        response = await client.get("/health")
        assert response.status_code == 200

    async def test_health_returns_status(self, client: AsyncClient) -> None:
        """Health endpoint returns healthy status."""
        response = await client.get("/health")
        data = response.json()
        assert data["status"] == "healthy"

    async def test_health_returns_version(self, client: AsyncClient) -> None:
        """Health endpoint returns library version."""
        response = await client.get("/health")
        data = response.json()
        assert data["version"] == __version__

    async def test_health_returns_timestamp(self, client: AsyncClient) -> None:
        """Health endpoint returns ISO timestamp."""
        response = await client.get("/health")
        data = response.json()
        assert "timestamp" in data
        # Verify ISO format (contains T separator)
        assert "T" in data["timestamp"]


class TestReadinessEndpoint:
    """Tests for /health/ready endpoint."""

    @pytest.fixture
    def memory_manager(self) -> Generator[MagicMock, None, None]:
        """Memory manager returned by the readiness check's factory."""
        manager = MagicMock()
        manager.vector_store.index_exists = AsyncMock(return_value=True)
        with patch("llm_memory.api.app.get_memory_manager", return_value=manager):
            yield manager

    async def test_readiness_returns_200(
        self,
        client: AsyncClient,
        memory_manager: MagicMock,
    ) -> None:
        """Readiness endpoint returns 200 OK."""
        response = await client.get("/health/ready")
        assert response.status_code == 200

    async def test_readiness_returns_ready(
        self,
        client: AsyncClient,
        memory_manager: MagicMock,
    ) -> None:
        """Readiness reports ready when the vector store answers."""
        response = await client.get("/health/ready")
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"] == {"config": "ok", "vector_store": "ok"}
        memory_manager.vector_store.index_exists.assert_awaited_once()

    async def test_readiness_store_unreachable(
        self,
        client: AsyncClient,
        memory_manager: MagicMock,
    ) -> None:
        """Readiness reports not_ready when the vector store fails."""
        memory_manager.vector_store.index_exists = AsyncMock(
            side_effect=VectorStoreError("connection refused")
        )

        response = await client.get("/health/ready")
        data = response.json()

        assert data["status"] == "not_ready"
        assert data["checks"]["vector_store"] == "error"

    async def test_readiness_manager_not_built(self, client: AsyncClient) -> None:
        """A manager that cannot be built reports not_ready instead of failing."""
        error = ConfigurationError("Embedding API key is not set")
        with patch("llm_memory.api.app.get_memory_manager", side_effect=error):
            response = await client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["checks"] == {"config": "error", "vector_store": "error"}

    async def test_readiness_returns_timestamp(
        self,
        client: AsyncClient,
        memory_manager: MagicMock,
    ) -> None:
        """Readiness endpoint returns timestamp."""
        response = await client.get("/health/ready")
        data = response.json()
        assert "timestamp" in data


class TestLivenessEndpoint:
    """Tests for /health/live endpoint."""

    async def test_liveness_returns_200(self, client: AsyncClient) -> None:
        """Liveness endpoint returns 200 OK."""
        response = await client.get("/health/live")
        assert response.status_code == 200

    async def test_liveness_returns_alive(self, client: AsyncClient) -> None:
        """Liveness endpoint returns alive status."""
        response = await client.get("/health/live")
        data = response.json()
        assert data["status"] == "alive"
