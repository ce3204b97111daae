"""Document processing module."""

from llm_memory.documents.chunker import (
    CharacterChunker,
    Chunker,
    ChunkerConfig,
    SentenceChunker,
    chunk_documents,
    create_chunker,
)
from llm_memory.documents.loader import (
    DirectoryLoader,
    DocumentLoader,
    TextFileLoader,
    load_documents,
)
from llm_memory.documents.models import Chunk, Document

__all__ = [
    "CharacterChunker",
    "Chunk",
    "Chunker",
    "ChunkerConfig",
    "DirectoryLoader",
    "Document",
    "DocumentLoader",
    "SentenceChunker",
    "TextFileLoader",
    "chunk_documents",
    "create_chunker",
    "load_documents",
]
