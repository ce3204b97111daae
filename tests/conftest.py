"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from qdrant_client import AsyncQdrantClient

from llm_memory.api.app import app
from llm_memory.api.routes import get_memory_manager
from llm_memory.memory.manager import MemoryManager


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Create async test client for FastAPI app.

    Yields:
        AsyncClient configured for testing.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def memory_manager() -> Generator[MagicMock, None, None]:
    """Mock memory manager injected into the app.

    Yields:
        MagicMock standing in for the shared MemoryManager.
    """
    memory = MagicMock(spec=MemoryManager)
    memory.vector_store = MagicMock()
    memory.vector_store.index_exists = AsyncMock(return_value=True)

    app.dependency_overrides[get_memory_manager] = lambda: memory
    yield memory
    app.dependency_overrides.clear()


@pytest.fixture
async def qdrant_client() -> AsyncGenerator[AsyncQdrantClient, None]:
    """Embedded in-memory Qdrant client."""
    client = AsyncQdrantClient(location=":memory:")
    yield client
    await client.close()
