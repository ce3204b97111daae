"""Tests for memory API routes."""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from llm_memory.api.app import app, get_status_code
from llm_memory.api.routes import QueryRequest, get_rag_pipeline
from llm_memory.exceptions import (
    ErrorCode,
    LLMError,
    NotFoundError,
    ValidationError,
    VectorStoreError,
)
from llm_memory.rag.models import RAGAnswer
from llm_memory.vectorstore.models import SearchResult, StoredRecord

KEY = "llm_memory:20240101120000000::0123456789abcdef"


@pytest.fixture
def rag_pipeline() -> Generator[MagicMock, None, None]:
    """Mock RAG pipeline injected into the app."""
    pipeline = MagicMock()
    pipeline.ask = AsyncMock()
    pipeline.conversation.close = AsyncMock()

    app.dependency_overrides[get_rag_pipeline] = lambda: pipeline
    yield pipeline
    app.dependency_overrides.clear()


class TestQueryRequest:
    """Tests for QueryRequest model."""

    def test_defaults(self) -> None:
        """k defaults to the configured limit."""
        req = QueryRequest(text="Test?")
        assert req.k is None


class TestStatusCodes:
    """Tests for error code to HTTP status mapping."""

    @pytest.mark.parametrize(
        ("code", "status"),
        [
            (ErrorCode.VALIDATION_ERROR, 400),
            (ErrorCode.RECORD_NOT_FOUND, 404),
            (ErrorCode.COLLECTION_NOT_FOUND, 404),
            (ErrorCode.COLLECTION_EXISTS, 409),
            (ErrorCode.LLM_RATE_LIMIT, 429),
            (ErrorCode.LLM_TIMEOUT, 504),
            (ErrorCode.VECTOR_STORE_ERROR, 500),
        ],
    )
    def test_mapping(self, code: ErrorCode, status: int) -> None:
        """Each error code maps to its HTTP status."""
        assert get_status_code(code) == status


class TestMemorizeEndpoint:
    """Tests for POST /api/v1/memories."""

    async def test_memorize(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """Documents are memorized and their keys returned."""
        memory_manager.memorize.return_value = {KEY: "hello world"}
        documents = [{"content": "hello world", "metadata": {"a": 1}}]

        response = await client.post("/api/v1/memories", json={"documents": documents})

        assert response.status_code == 201
        assert response.json() == {"keys": {KEY: "hello world"}, "chunks_created": 1}
        memory_manager.memorize.assert_awaited_once_with(documents)

    async def test_validation_error(
        self,
        client: AsyncClient,
        memory_manager: MagicMock,
    ) -> None:
        """Malformed documents return 400 with the violations."""
        violations = [{"index": 0, "field": "content", "message": "content must be a string"}]
        memory_manager.memorize.side_effect = ValidationError(
            "Documents must have string content and mapping metadata",
            details={"violations": violations},
        )

        response = await client.post(
            "/api/v1/memories",
            json={"documents": [{"content": 1, "metadata": {}}]},
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == ErrorCode.VALIDATION_ERROR.value
        assert error["details"]["violations"] == violations

    async def test_missing_documents(
        self,
        client: AsyncClient,
        memory_manager: MagicMock,
    ) -> None:
        """A body without documents is rejected by request validation."""
        response = await client.post("/api/v1/memories", json={})

        assert response.status_code == 422
        memory_manager.memorize.assert_not_called()

    async def test_store_failure(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """Provider failures return 500."""
        memory_manager.memorize.side_effect = VectorStoreError("unreachable")

        response = await client.post("/api/v1/memories", json={"documents": []})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == ErrorCode.VECTOR_STORE_ERROR.value


class TestQueryEndpoint:
    """Tests for POST /api/v1/memories/query."""

    async def test_query(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """Results are returned nearest first."""
        memory_manager.query.return_value = [
            SearchResult(key=KEY, content="hello world", metadata={"a": 1}, score=0.05)
        ]

        response = await client.post("/api/v1/memories/query", json={"text": "hello", "k": 1})

        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["content"] == "hello world"
        assert results[0]["metadata"] == {"a": 1}
        memory_manager.query.assert_awaited_once_with("hello", k=1)

    async def test_invalid_k(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """k must be positive."""
        response = await client.post("/api/v1/memories/query", json={"text": "hi", "k": 0})

        assert response.status_code == 422

    async def test_missing_index(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """Querying a missing index returns 404."""
        memory_manager.query.side_effect = NotFoundError(
            "Index not found",
            code=ErrorCode.COLLECTION_NOT_FOUND,
        )

        response = await client.post("/api/v1/memories/query", json={"text": "hi"})

        assert response.status_code == 404


class TestRecordEndpoints:
    """Tests for list, get and delete."""

    async def test_list(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """Keys are listed with an optional pattern."""
        memory_manager.list.return_value = [KEY]

        response = await client.get("/api/v1/memories", params={"pattern": "2024*"})

        assert response.status_code == 200
        assert response.json() == {"keys": [KEY]}
        memory_manager.list.assert_awaited_once_with("2024*")

    async def test_get(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """A stored record is returned."""
        memory_manager.get.return_value = StoredRecord(
            key=KEY,
            content="hello",
            vector=[0.6, 0.8],
            metadata={"a": 1},
        )

        response = await client.get(f"/api/v1/memories/{KEY}")

        assert response.status_code == 200
        assert response.json()["content"] == "hello"
        memory_manager.get.assert_awaited_once_with(KEY)

    async def test_get_missing(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """An unknown key returns 404."""
        memory_manager.get.side_effect = NotFoundError(
            "Record not found",
            code=ErrorCode.RECORD_NOT_FOUND,
        )

        response = await client.get("/api/v1/memories/nope")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == ErrorCode.RECORD_NOT_FOUND.value

    async def test_forget(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """Deleting a record returns 204."""
        response = await client.delete(f"/api/v1/memories/{KEY}")

        assert response.status_code == 204
        memory_manager.forget.assert_awaited_once_with(KEY)

    async def test_forget_all(self, client: AsyncClient, memory_manager: MagicMock) -> None:
        """Dropping the index returns 204."""
        response = await client.delete("/api/v1/memories")

        assert response.status_code == 204
        memory_manager.forget_all.assert_awaited_once()


class TestAskEndpoint:
    """Tests for POST /api/v1/ask."""

    async def test_ask(self, client: AsyncClient, rag_pipeline: MagicMock) -> None:
        """The answer and its sources are returned."""
        rag_pipeline.ask.return_value = RAGAnswer(
            answer="Paris.",
            sources=[SearchResult(key=KEY, content="Paris is in France.", score=0.1)],
        )

        response = await client.post("/api/v1/ask", json={"question": "Where is Paris?"})

        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Paris."
        assert data["sources"][0]["key"] == KEY
        rag_pipeline.ask.assert_awaited_once_with("Where is Paris?", k=None)
        rag_pipeline.conversation.close.assert_awaited_once()

    async def test_no_answer(self, client: AsyncClient, rag_pipeline: MagicMock) -> None:
        """A failed chat call yields a null answer."""
        rag_pipeline.ask.return_value = RAGAnswer(answer=None, sources=[])

        response = await client.post("/api/v1/ask", json={"question": "?"})

        assert response.status_code == 200
        assert response.json()["answer"] is None

    async def test_conversation_closed_on_error(
        self,
        client: AsyncClient,
        rag_pipeline: MagicMock,
    ) -> None:
        """The per-request conversation is closed even when ask fails."""
        rag_pipeline.ask.side_effect = LLMError(
            "Rate limit exceeded",
            code=ErrorCode.LLM_RATE_LIMIT,
        )

        response = await client.post("/api/v1/ask", json={"question": "?"})

        assert response.status_code == 429
        rag_pipeline.conversation.close.assert_awaited_once()
