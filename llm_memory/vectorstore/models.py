"""Vector store data models."""

from typing import Any

from pydantic import BaseModel, Field

from llm_memory.config import DistanceMetric

__all__ = ["DistanceMetric", "SearchResult", "StoredRecord", "VectorRecord"]


class VectorRecord(BaseModel):
    """A record to add to an index; the store assigns its key.

    Attributes:
        content: Text the vector was computed from.
        vector: The embedding vector.
        metadata: Metadata stored alongside the vector.
    """

    content: str = Field(description="Chunk text")
    vector: list[float] = Field(description="Embedding vector")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )


class StoredRecord(BaseModel):
    """A record read back from an index."""

    key: str = Field(description="Store-generated record key")
    content: str = Field(description="Chunk text")
    vector: list[float] = Field(description="Embedding vector")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Record metadata")


class SearchResult(BaseModel):
    """Result from a vector similarity search.

    Attributes:
        key: Record key.
        content: Stored text.
        metadata: Decoded record metadata.
        score: Distance to the query (lower is closer).
    """

    key: str = Field(description="Record key")
    content: str = Field(description="Stored text")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Record metadata",
    )
    score: float = Field(description="Distance to the query vector")
