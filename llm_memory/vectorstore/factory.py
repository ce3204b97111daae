"""Vector store backend registry."""

from llm_memory.config import QdrantSettings
from llm_memory.exceptions import NotFoundError
from llm_memory.vectorstore.service import QdrantVectorStore, VectorStore

VECTOR_STORES: dict[str, type[QdrantVectorStore]] = {
    "qdrant": QdrantVectorStore,
}


def create_vector_store(
    name: str,
    index_name: str,
    settings: QdrantSettings | None = None,
) -> VectorStore:
    """Create a vector store by registered backend name.

    Args:
        name: Backend name.
        index_name: Index the store is bound to.
        settings: Backend configuration.

    Returns:
        Vector store instance.

    Raises:
        NotFoundError: If no backend is registered under the name.
    """
    store_class = VECTOR_STORES.get(name)
    if store_class is None:
        raise NotFoundError(
            f"Store '{name}' not found",
            details={"store": name, "available": sorted(VECTOR_STORES)},
        )
    return store_class(index_name=index_name, settings=settings)
