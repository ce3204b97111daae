"""Tests for embedding services."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from pydantic import SecretStr

from llm_memory.config import EmbeddingSettings
from llm_memory.embeddings.factory import create_embedding_service
from llm_memory.embeddings.models import EmbeddingResult
from llm_memory.embeddings.service import (
    GeminiEmbeddingService,
    HTTPEmbeddingService,
    HuggingFaceEmbeddingService,
    MistralEmbeddingService,
)
from llm_memory.exceptions import ConfigurationError, EmbeddingError, NotFoundError


def mock_client_returning(body: Any) -> AsyncMock:
    """HTTP client whose POST returns the given JSON body."""
    mock_response = MagicMock()
    mock_response.json.return_value = body
    mock_response.raise_for_status = MagicMock()

    mock_client = AsyncMock(spec=httpx.AsyncClient)
    mock_client.post.return_value = mock_response
    return mock_client


class TestEmbeddingResult:
    """Tests for EmbeddingResult model."""

    def test_valid_result(self) -> None:
        """Valid embedding result is created."""
        result = EmbeddingResult(
            text="test",
            embedding=[0.1, 0.2, 0.3],
            model="test-model",
            dimensions=3,
        )
        assert result.text == "test"
        assert result.dimensions == 3

    def test_dimensions_mismatch(self) -> None:
        """Mismatched dimensions raise error."""
        with pytest.raises(ValueError, match="dimensions"):
            EmbeddingResult(
                text="test",
                embedding=[0.1, 0.2, 0.3],
                model="test-model",
                dimensions=5,
            )


class TestHTTPEmbeddingService:
    """Tests for the OpenAI-style embedding service."""

    def test_model_name(self) -> None:
        """Configured model wins over the provider default."""
        settings = EmbeddingSettings(model="test-model", base_url="http://test:8080")
        assert HTTPEmbeddingService(settings=settings).model_name == "test-model"

    def test_default_model(self) -> None:
        """Provider default is used when no model is configured."""
        settings = EmbeddingSettings(model=None, api_key=SecretStr("sk-test"))
        assert HTTPEmbeddingService(settings=settings).model_name == "text-embedding-3-small"

    def test_missing_api_key(self) -> None:
        """The hosted API without a key is a configuration error."""
        settings = EmbeddingSettings(api_key=None, base_url=None)
        with pytest.raises(ConfigurationError):
            HTTPEmbeddingService(settings=settings)

    async def test_embed_single(self) -> None:
        """Single text embedding posts to /embeddings with a bearer token."""
        settings = EmbeddingSettings(model="test-model", api_key=SecretStr("sk-test"))
        mock_client = mock_client_returning({"data": [{"embedding": [0.1, 0.2, 0.3]}]})

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        result = await service.embed("test text")

        assert result.text == "test text"
        assert result.embedding == [0.1, 0.2, 0.3]
        assert result.model == "test-model"

        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://api.openai.com/v1/embeddings"
        assert kwargs["json"] == {"input": ["test text"], "model": "test-model"}
        assert kwargs["headers"] == {"Authorization": "Bearer sk-test"}

    async def test_embed_batch_orders_by_index(self) -> None:
        """Vectors are matched to inputs by their index field."""
        settings = EmbeddingSettings(base_url="http://test:8080", batch_size=10)
        mock_client = mock_client_returning(
            {
                "data": [
                    {"index": 1, "embedding": [0.3, 0.4]},
                    {"index": 0, "embedding": [0.1, 0.2]},
                ]
            }
        )

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        results = await service.embed_batch(["text1", "text2"])

        assert [r.text for r in results] == ["text1", "text2"]
        assert results[0].embedding == [0.1, 0.2]

    async def test_embed_empty_list(self) -> None:
        """Empty list returns empty results without a request."""
        settings = EmbeddingSettings(base_url="http://test:8080")
        mock_client = AsyncMock(spec=httpx.AsyncClient)

        service = HTTPEmbeddingService(settings=settings, client=mock_client)

        assert await service.embed_batch([]) == []
        mock_client.post.assert_not_called()

    async def test_embed_http_error(self) -> None:
        """HTTP error raises EmbeddingError."""
        settings = EmbeddingSettings(base_url="http://test:8080")

        mock_response = MagicMock()
        mock_response.status_code = 401
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Unauthorized",
            request=MagicMock(),
            response=mock_response,
        )
        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.return_value = mock_response

        service = HTTPEmbeddingService(settings=settings, client=mock_client)

        with pytest.raises(EmbeddingError) as exc_info:
            await service.embed("test")
        assert exc_info.value.details["status_code"] == 401

    async def test_embed_connection_error(self) -> None:
        """Connection error raises EmbeddingError."""
        settings = EmbeddingSettings(base_url="http://test:8080")

        mock_client = AsyncMock(spec=httpx.AsyncClient)
        mock_client.post.side_effect = httpx.RequestError("Connection failed")

        service = HTTPEmbeddingService(settings=settings, client=mock_client)

        with pytest.raises(EmbeddingError):
            await service.embed("test")

    async def test_malformed_response(self) -> None:
        """A response without vectors raises EmbeddingError."""
        settings = EmbeddingSettings(base_url="http://test:8080")
        mock_client = mock_client_returning({"error": "nope"})

        service = HTTPEmbeddingService(settings=settings, client=mock_client)

        with pytest.raises(EmbeddingError):
            await service.embed("test")

    async def test_count_mismatch(self) -> None:
        """Fewer vectors than inputs raises EmbeddingError."""
        settings = EmbeddingSettings(base_url="http://test:8080")
        mock_client = mock_client_returning({"data": [{"embedding": [0.1]}]})

        service = HTTPEmbeddingService(settings=settings, client=mock_client)

        with pytest.raises(EmbeddingError):
            await service.embed_batch(["a", "b"])

    async def test_batch_chunking(self) -> None:
        """Large batches are split by batch_size."""
        settings = EmbeddingSettings(base_url="http://test:8080", batch_size=2)
        mock_client = mock_client_returning(
            {"data": [{"embedding": [0.1]}, {"embedding": [0.2]}]}
        )

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        results = await service.embed_batch(["t1", "t2", "t3", "t4"])

        assert len(results) == 4
        assert mock_client.post.call_count == 2

    async def test_close_leaves_injected_client(self) -> None:
        """An injected client is not closed by the service."""
        settings = EmbeddingSettings(base_url="http://test:8080")
        mock_client = AsyncMock(spec=httpx.AsyncClient)

        service = HTTPEmbeddingService(settings=settings, client=mock_client)
        await service.close()

        mock_client.aclose.assert_not_called()


class TestProviderVariants:
    """Tests for provider-specific request and response shapes."""

    async def test_mistral_endpoint(self) -> None:
        """Mistral uses its own base URL and default model."""
        settings = EmbeddingSettings(model=None, api_key=SecretStr("key"))
        mock_client = mock_client_returning({"data": [{"embedding": [1.0]}]})

        service = MistralEmbeddingService(settings=settings, client=mock_client)
        await service.embed("hello")

        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://api.mistral.ai/v1/embeddings"
        assert kwargs["json"]["model"] == "mistral-embed"

    async def test_gemini_batch_embed(self) -> None:
        """Gemini sends batchEmbedContents with the API key header."""
        settings = EmbeddingSettings(model=None, api_key=SecretStr("g-key"))
        mock_client = mock_client_returning(
            {"embeddings": [{"values": [0.5, 0.5]}, {"values": [0.1, 0.9]}]}
        )

        service = GeminiEmbeddingService(settings=settings, client=mock_client)
        results = await service.embed_batch(["a", "b"])

        assert results[1].embedding == [0.1, 0.9]
        args, kwargs = mock_client.post.call_args
        assert args[0].endswith("/models/text-embedding-004:batchEmbedContents")
        assert kwargs["headers"] == {"x-goog-api-key": "g-key"}
        assert kwargs["json"]["requests"][0]["content"] == {"parts": [{"text": "a"}]}

    async def test_huggingface_feature_extraction(self) -> None:
        """Hugging Face returns a bare list of vectors."""
        settings = EmbeddingSettings(model="org/model", api_key=SecretStr("hf"))
        mock_client = mock_client_returning([[0.1, 0.2]])

        service = HuggingFaceEmbeddingService(settings=settings, client=mock_client)
        result = await service.embed("hello")

        assert result.embedding == [0.1, 0.2]
        args, kwargs = mock_client.post.call_args
        assert args[0].endswith("/org/model/pipeline/feature-extraction")
        assert kwargs["json"] == {"inputs": ["hello"]}


class TestCreateEmbeddingService:
    """Tests for the embedding registry."""

    def test_known_name(self) -> None:
        """Registered names build the matching service."""
        settings = EmbeddingSettings(api_key=SecretStr("key"))
        service = create_embedding_service("gemini", settings=settings)
        assert isinstance(service, GeminiEmbeddingService)

    def test_name_from_settings(self) -> None:
        """The configured provider is used when no name is given."""
        settings = EmbeddingSettings(provider="mistral", api_key=SecretStr("key"))
        service = create_embedding_service(settings=settings)
        assert isinstance(service, MistralEmbeddingService)

    def test_unknown_name(self) -> None:
        """Unknown names raise NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            create_embedding_service("word2vec", settings=EmbeddingSettings())
        assert "word2vec" in exc_info.value.message
