"""Embedding provider registry."""

from llm_memory.config import EmbeddingSettings, get_settings
from llm_memory.embeddings.service import (
    EmbeddingService,
    GeminiEmbeddingService,
    HTTPEmbeddingService,
    HuggingFaceEmbeddingService,
    MistralEmbeddingService,
)
from llm_memory.exceptions import NotFoundError

EMBEDDING_SERVICES: dict[str, type[HTTPEmbeddingService]] = {
    "openai": HTTPEmbeddingService,
    "mistral": MistralEmbeddingService,
    "gemini": GeminiEmbeddingService,
    "huggingface": HuggingFaceEmbeddingService,
}


def create_embedding_service(
    name: str | None = None,
    settings: EmbeddingSettings | None = None,
) -> EmbeddingService:
    """Create an embedding service by registered name.

    Args:
        name: Provider name. Defaults to settings.provider.
        settings: Embedding configuration.

    Returns:
        Embedding service instance.

    Raises:
        NotFoundError: If no provider is registered under the name.
        ConfigurationError: If required credentials are missing.
    """
    settings = settings or get_settings().embedding
    name = name or settings.provider

    service_class = EMBEDDING_SERVICES.get(name)
    if service_class is None:
        raise NotFoundError(
            f"Embedding '{name}' not found",
            details={"embedding": name, "available": sorted(EMBEDDING_SERVICES)},
        )
    return service_class(settings=settings)
