"""RAG pipeline: recall from memory, then answer through the conversation."""

from llm_memory.conversation.window import ConversationWindowManager
from llm_memory.logging_config import get_logger
from llm_memory.memory.manager import MemoryManager
from llm_memory.rag.models import RAGAnswer

logger = get_logger(__name__)


class RAGPipeline:
    """Combines memory recall and conversation into a single ask call.

    The conversation template receives `related_docs` (the search results as
    dicts) and `query_str` (the question).
    """

    def __init__(
        self,
        memory: MemoryManager,
        conversation: ConversationWindowManager,
    ) -> None:
        self.memory = memory
        self.conversation = conversation

    async def ask(self, question: str, k: int | None = None) -> RAGAnswer:
        """Answer a question from memorized documents.

        Args:
            question: The question to answer.
            k: Number of records to recall.

        Returns:
            RAGAnswer with the answer and the records used.

        Raises:
            TemplateError: If the conversation template cannot be rendered.
            ProviderError: If embedding or vector search fails.
        """
        logger.info(
            "Processing RAG question",
            extra={"question_length": len(question), "k": k},
        )

        sources = await self.memory.query(question, k=k)
        answer = await self.conversation.respond(
            {
                "related_docs": [source.model_dump() for source in sources],
                "query_str": question,
            }
        )

        logger.info(
            "RAG question completed",
            extra={"sources_count": len(sources), "answered": answer is not None},
        )
        return RAGAnswer(answer=answer, sources=sources)

    async def close(self) -> None:
        """Close the memory manager and the conversation."""
        await self.memory.close()
        await self.conversation.close()
