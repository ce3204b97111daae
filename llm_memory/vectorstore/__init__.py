"""Vector store module."""

from llm_memory.vectorstore.factory import VECTOR_STORES, create_vector_store
from llm_memory.vectorstore.models import (
    DistanceMetric,
    SearchResult,
    StoredRecord,
    VectorRecord,
)
from llm_memory.vectorstore.service import QdrantVectorStore, VectorStore

__all__ = [
    "VECTOR_STORES",
    "DistanceMetric",
    "QdrantVectorStore",
    "SearchResult",
    "StoredRecord",
    "VectorRecord",
    "VectorStore",
    "create_vector_store",
]
