"""API routes for memory operations."""

from functools import lru_cache
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from llm_memory.conversation.window import ConversationWindowManager
from llm_memory.llm.prompts import DEFAULT_RAG_TEMPLATE
from llm_memory.logging_config import get_logger
from llm_memory.memory.manager import MemoryManager
from llm_memory.rag.models import RAGAnswer
from llm_memory.rag.pipeline import RAGPipeline
from llm_memory.vectorstore.models import SearchResult, StoredRecord

logger = get_logger(__name__)


router = APIRouter(prefix="/api/v1", tags=["Memory"])


@lru_cache
def get_memory_manager() -> MemoryManager:
    """Shared memory manager built from settings."""
    return MemoryManager()


def get_rag_pipeline(
    memory: Annotated[MemoryManager, Depends(get_memory_manager)],
) -> RAGPipeline:
    """RAG pipeline with a fresh conversation per request."""
    return RAGPipeline(memory, ConversationWindowManager(DEFAULT_RAG_TEMPLATE))


async def close_memory_manager() -> None:
    """Close the shared memory manager if one was created."""
    if get_memory_manager.cache_info().currsize:
        await get_memory_manager().close()
        get_memory_manager.cache_clear()


MemoryDep = Annotated[MemoryManager, Depends(get_memory_manager)]


class MemorizeRequest(BaseModel):
    """Request body for memorizing documents."""

    # Items are validated by the memory manager so violations are reported per index.
    documents: list[Any] = Field(
        description="Documents with string `content` and mapping `metadata`",
    )


class MemorizeResponse(BaseModel):
    """Response from memorizing documents."""

    keys: dict[str, str] = Field(description="Generated key to chunk content")
    chunks_created: int = Field(description="Number of chunks stored")


class QueryRequest(BaseModel):
    """Request body for a memory query."""

    text: str = Field(description="Query text")
    k: int | None = Field(default=None, ge=1, le=100, description="Number of results")


class QueryResponse(BaseModel):
    """Response from a memory query."""

    results: list[SearchResult] = Field(description="Closest records, nearest first")


class ListResponse(BaseModel):
    """Response listing record keys."""

    keys: list[str] = Field(description="Record keys")


class AskRequest(BaseModel):
    """Request body for a question answered from memory."""

    question: str = Field(description="Question to answer")
    k: int | None = Field(default=None, ge=1, le=20, description="Records to recall")


@router.post(
    "/memories",
    response_model=MemorizeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def memorize_endpoint(
    request: MemorizeRequest,
    memory: MemoryDep,
) -> MemorizeResponse:
    """Chunk, embed and store documents."""
    keys = await memory.memorize(request.documents)
    return MemorizeResponse(keys=keys, chunks_created=len(keys))


@router.post("/memories/query", response_model=QueryResponse)
async def query_endpoint(request: QueryRequest, memory: MemoryDep) -> QueryResponse:
    """Find the records closest to the query text."""
    results = await memory.query(request.text, k=request.k)
    return QueryResponse(results=results)


@router.get("/memories", response_model=ListResponse)
async def list_endpoint(
    memory: MemoryDep,
    pattern: Annotated[str | None, Query(description="Glob over key suffix")] = None,
) -> ListResponse:
    """List record keys."""
    return ListResponse(keys=await memory.list(pattern))


@router.get("/memories/{key}", response_model=StoredRecord)
async def get_endpoint(key: str, memory: MemoryDep) -> StoredRecord:
    """Fetch one record."""
    return await memory.get(key)


@router.delete("/memories/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def forget_endpoint(key: str, memory: MemoryDep) -> Response:
    """Delete one record."""
    await memory.forget(key)
    logger.info("Forgot record", extra={"key": key})
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/memories", status_code=status.HTTP_204_NO_CONTENT)
async def forget_all_endpoint(memory: MemoryDep) -> Response:
    """Drop the whole memory index."""
    await memory.forget_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/ask", response_model=RAGAnswer)
async def ask_endpoint(
    request: AskRequest,
    pipeline: Annotated[RAGPipeline, Depends(get_rag_pipeline)],
) -> RAGAnswer:
    """Answer a question from memorized documents."""
    try:
        return await pipeline.ask(request.question, k=request.k)
    finally:
        await pipeline.conversation.close()
