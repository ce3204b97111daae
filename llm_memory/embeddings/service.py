"""Embedding service interface and HTTP provider implementations."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from llm_memory.config import EmbeddingSettings, get_settings
from llm_memory.embeddings.models import EmbeddingResult
from llm_memory.exceptions import ConfigurationError, EmbeddingError, ErrorCode
from llm_memory.logging_config import get_logger
from llm_memory.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Defines the interface for generating text embeddings.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @abstractmethod
    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts.

        Args:
            texts: List of texts to embed.

        Returns:
            List of EmbeddingResult objects.

        Raises:
            EmbeddingError: If embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    async def close(self) -> None:
        """Release any resources held by the service."""


class HTTPEmbeddingService(EmbeddingService):
    """Embedding service for OpenAI-style `/embeddings` APIs.

    Also works with text-embeddings-inference (TEI) servers when base_url
    points at one; the API key is then optional.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_MODEL = "text-embedding-3-small"

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding service.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.

        Raises:
            ConfigurationError: If the hosted API is used without an API key.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None
        self._base_url = (self._settings.base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._api_key = (
            self._settings.api_key.get_secret_value() if self._settings.api_key else None
        )

        if self._api_key is None and self._settings.base_url is None:
            raise ConfigurationError(
                f"Missing API key for embedding provider {type(self).__name__}",
                details={"setting": "EMBEDDING_API_KEY"},
            )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model or self.DEFAULT_MODEL

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text."""
        results = await self.embed_batch([text])
        return results[0]

    async def embed_batch(self, texts: list[str]) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts, in batches."""
        if not texts:
            return []

        client = await self._get_client()

        all_results: list[EmbeddingResult] = []
        batch_size = self._settings.batch_size

        for i in range(0, len(texts), batch_size):
            batch = texts[i : i + batch_size]
            all_results.extend(await self._embed_batch_request(client, batch))

        return all_results

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    def _build_request(self, texts: list[str]) -> tuple[str, dict[str, Any]]:
        """Return endpoint URL and JSON payload for a batch."""
        return f"{self._base_url}/embeddings", {"input": texts, "model": self.model_name}

    def _parse_vectors(self, data: Any) -> list[list[float]]:
        """Extract one vector per input from a response body."""
        items = sorted(data["data"], key=lambda item: item.get("index", 0))
        return [item["embedding"] for item in items]

    async def _embed_batch_request(
        self,
        client: httpx.AsyncClient,
        texts: list[str],
    ) -> list[EmbeddingResult]:
        """Make embedding request for a batch.

        Args:
            client: HTTP client.
            texts: Batch of texts.

        Returns:
            List of EmbeddingResult objects.

        Raises:
            EmbeddingError: If request fails.
        """
        url, payload = self._build_request(texts)
        start_time = time.perf_counter()

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, success=False
            )
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingError(
                f"Embedding service returned {e.response.status_code}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start_time, success=False
            )
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingError(
                f"Failed to connect to embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"url": url},
            ) from e

        track_embedding_request(self.model_name, time.perf_counter() - start_time)

        try:
            vectors = self._parse_vectors(response.json())
            if len(vectors) != len(texts):
                raise ValueError(f"expected {len(texts)} embeddings, got {len(vectors)}")

            return [
                EmbeddingResult(
                    text=text,
                    embedding=vector,
                    model=self.model_name,
                    dimensions=len(vector),
                )
                for text, vector in zip(texts, vectors, strict=True)
            ]

        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise EmbeddingError(
                f"Invalid response from embedding service: {e}",
                code=ErrorCode.EMBEDDING_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e


class MistralEmbeddingService(HTTPEmbeddingService):
    """Mistral embeddings (OpenAI-compatible response shape)."""

    DEFAULT_BASE_URL = "https://api.mistral.ai/v1"
    DEFAULT_MODEL = "mistral-embed"


class GeminiEmbeddingService(HTTPEmbeddingService):
    """Google Gemini embeddings through `batchEmbedContents`."""

    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "text-embedding-004"

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"x-goog-api-key": self._api_key}
        return {}

    def _build_request(self, texts: list[str]) -> tuple[str, dict[str, Any]]:
        model = f"models/{self.model_name}"
        payload = {
            "requests": [
                {"model": model, "content": {"parts": [{"text": text}]}} for text in texts
            ]
        }
        return f"{self._base_url}/{model}:batchEmbedContents", payload

    def _parse_vectors(self, data: Any) -> list[list[float]]:
        return [item["values"] for item in data["embeddings"]]


class HuggingFaceEmbeddingService(HTTPEmbeddingService):
    """Hugging Face inference feature-extraction pipeline."""

    DEFAULT_BASE_URL = "https://router.huggingface.co/hf-inference/models"
    DEFAULT_MODEL = "sentence-transformers/all-MiniLM-L6-v2"

    def _build_request(self, texts: list[str]) -> tuple[str, dict[str, Any]]:
        url = f"{self._base_url}/{self.model_name}/pipeline/feature-extraction"
        return url, {"inputs": texts}

    def _parse_vectors(self, data: Any) -> list[list[float]]:
        if not isinstance(data, list):
            raise ValueError("feature-extraction response is not a list")
        return data
