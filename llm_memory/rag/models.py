"""RAG pipeline data models."""

from pydantic import BaseModel, Field

from llm_memory.vectorstore.models import SearchResult


class RAGAnswer(BaseModel):
    """Answer to a question asked against memory.

    Attributes:
        answer: Generated answer, or None if the model could not be reached
            or the prompt did not fit the conversation budget.
        sources: Memory records the prompt was built from.
    """

    answer: str | None = Field(default=None, description="Generated answer")
    sources: list[SearchResult] = Field(
        default_factory=list,
        description="Retrieved memory records",
    )
