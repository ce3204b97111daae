"""Memory manager: chunk, embed, store and recall documents."""

from collections.abc import Mapping, Sequence
from typing import Any

from llm_memory.config import Settings, get_settings
from llm_memory.documents.chunker import Chunker, ChunkerConfig, create_chunker
from llm_memory.documents.models import Document
from llm_memory.embeddings.factory import create_embedding_service
from llm_memory.embeddings.service import EmbeddingService
from llm_memory.exceptions import ValidationError
from llm_memory.logging_config import get_logger
from llm_memory.observability.metrics import track_memorize, track_query
from llm_memory.vectorstore.factory import create_vector_store
from llm_memory.vectorstore.models import SearchResult, StoredRecord, VectorRecord
from llm_memory.vectorstore.service import VectorStore

logger = get_logger(__name__)


class MemoryManager:
    """Long-term memory over a vector index.

    Collaborators that are not passed in are built from settings and closed
    by close().
    """

    def __init__(
        self,
        embedding_service: EmbeddingService | None = None,
        vector_store: VectorStore | None = None,
        chunker: Chunker | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the memory manager.

        Args:
            embedding_service: Embedding provider.
            vector_store: Vector store bound to the memory index.
            chunker: Document chunker.
            settings: Library settings.

        Raises:
            NotFoundError: If a configured provider or store name is unknown.
            ConfigurationError: If chunking parameters or credentials are invalid.
        """
        settings = settings or get_settings()
        self._settings = settings.memory

        self.chunker = chunker or create_chunker(
            self._settings.chunk_strategy,
            ChunkerConfig.from_settings(self._settings),
        )
        self.embedding_service = embedding_service or create_embedding_service(
            settings=settings.embedding
        )
        self.vector_store = vector_store or create_vector_store(
            self._settings.store,
            index_name=self._settings.index_name,
            settings=settings.qdrant,
        )
        self._owns_embedding_service = embedding_service is None
        self._owns_vector_store = vector_store is None

    @property
    def index_name(self) -> str:
        """Name of the memory index."""
        return self.vector_store.index_name

    def validate_documents(self, documents: Sequence[Any]) -> list[Document]:
        """Check that every document has string content and mapping metadata.

        Args:
            documents: Document models or mappings with `content` and `metadata`.

        Returns:
            The documents as Document models.

        Raises:
            ValidationError: Listing every violation found.
        """
        violations: list[dict[str, Any]] = []
        validated: list[Document] = []

        for index, item in enumerate(documents):
            if isinstance(item, Document):
                validated.append(item)
                continue

            if not isinstance(item, Mapping):
                violations.append(
                    {
                        "index": index,
                        "field": "document",
                        "message": "document must be a mapping",
                    }
                )
                continue

            content = item.get("content")
            metadata = item.get("metadata")
            valid = True

            if not isinstance(content, str):
                violations.append(
                    {"index": index, "field": "content", "message": "content must be a string"}
                )
                valid = False
            if not isinstance(metadata, Mapping):
                violations.append(
                    {
                        "index": index,
                        "field": "metadata",
                        "message": "metadata must be a mapping",
                    }
                )
                valid = False
            elif not all(isinstance(name, str) for name in metadata):
                violations.append(
                    {
                        "index": index,
                        "field": "metadata",
                        "message": "metadata keys must be strings",
                    }
                )
                valid = False

            if valid:
                validated.append(Document(content=content, metadata=dict(metadata)))

        if violations:
            raise ValidationError(
                "Documents must have string content and mapping metadata",
                details={"violations": violations},
            )

        return validated

    async def memorize(self, documents: Sequence[Any]) -> dict[str, str]:
        """Chunk, embed and store documents.

        The index is created on first use with the dimension of the first
        embedding. Nothing is written if validation fails.

        Args:
            documents: Document models or mappings with `content` and `metadata`.

        Returns:
            Mapping of generated record key to chunk content.

        Raises:
            ValidationError: If any document is malformed.
            ProviderError: If embedding or storage fails.
        """
        validated = self.validate_documents(documents)
        chunks = self.chunker.chunk_documents(validated)

        if not chunks:
            logger.info("No chunks to memorize", extra={"documents": len(validated)})
            return {}

        records: list[VectorRecord] = []
        for chunk in chunks:
            result = await self.embedding_service.embed(chunk.content)
            records.append(
                VectorRecord(
                    content=chunk.content,
                    vector=result.embedding,
                    metadata=chunk.metadata,
                )
            )

        if not await self.vector_store.index_exists():
            await self.vector_store.create_index(
                dimension=len(records[0].vector),
                distance_metric=self._settings.distance_metric,
            )

        stored = await self.vector_store.add(records)
        track_memorize(self.index_name, len(stored))

        logger.info(
            "Memorized documents",
            extra={
                "index": self.index_name,
                "documents": len(validated),
                "chunks": len(stored),
            },
        )
        return stored

    async def query(self, text: str, k: int | None = None) -> list[SearchResult]:
        """Find the stored chunks closest to a piece of text.

        Args:
            text: Query text.
            k: Maximum number of results. Defaults to the configured limit.

        Returns:
            Results ordered by ascending distance.
        """
        if not text.strip():
            return []

        limit = k if k is not None else self._settings.query_limit
        result = await self.embedding_service.embed(text)
        results = await self.vector_store.search(result.embedding, k=limit)

        track_query(len(results))
        logger.debug(
            f"Query returned {len(results)} results",
            extra={"index": self.index_name, "k": limit},
        )
        return results

    async def forget(self, key: str) -> None:
        """Delete one record.

        Raises:
            NotFoundError: If the key does not exist.
        """
        await self.vector_store.delete(key)

    async def forget_all(self) -> None:
        """Drop the memory index if it exists."""
        if await self.vector_store.index_exists():
            await self.vector_store.drop_index()
            logger.info("Dropped memory index", extra={"index": self.index_name})

    async def get(self, key: str) -> StoredRecord:
        """Fetch one record.

        Raises:
            NotFoundError: If the key does not exist.
            DeserializationError: If the stored metadata is malformed.
        """
        return await self.vector_store.get(key)

    async def close(self) -> None:
        """Close collaborators created by this manager."""
        if self._owns_embedding_service:
            await self.embedding_service.close()
        if self._owns_vector_store:
            await self.vector_store.close()

    # Defined last: inside the class body the name shadows the builtin.
    async def list(self, pattern: str | None = None) -> list[str]:
        """List record keys, optionally filtered by a glob pattern."""
        return await self.vector_store.list(pattern)
