"""Embedding service module."""

from llm_memory.embeddings.factory import EMBEDDING_SERVICES, create_embedding_service
from llm_memory.embeddings.models import EmbeddingResult
from llm_memory.embeddings.service import (
    EmbeddingService,
    GeminiEmbeddingService,
    HTTPEmbeddingService,
    HuggingFaceEmbeddingService,
    MistralEmbeddingService,
)

__all__ = [
    "EMBEDDING_SERVICES",
    "EmbeddingResult",
    "EmbeddingService",
    "GeminiEmbeddingService",
    "HTTPEmbeddingService",
    "HuggingFaceEmbeddingService",
    "MistralEmbeddingService",
    "create_embedding_service",
]
