"""RAG pipeline module."""

from llm_memory.rag.models import RAGAnswer
from llm_memory.rag.pipeline import RAGPipeline

__all__ = ["RAGAnswer", "RAGPipeline"]
