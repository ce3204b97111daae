"""Text chunking strategies for document processing."""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable

from pydantic import BaseModel, Field

from llm_memory.config import ChunkingStrategy, MemorySettings
from llm_memory.documents.models import Chunk, Document
from llm_memory.exceptions import ConfigurationError

Span = tuple[int, int]


class ChunkerConfig(BaseModel):
    """Configuration for text chunking.

    Attributes:
        chunk_size: Maximum size of each chunk in characters.
        chunk_overlap: Number of characters shared by consecutive chunks.
    """

    chunk_size: int = Field(default=1024, description="Maximum chunk size")
    chunk_overlap: int = Field(default=50, description="Overlap between chunks")

    @classmethod
    def from_settings(cls, settings: MemorySettings) -> "ChunkerConfig":
        """Build a chunker configuration from memory settings."""
        return cls(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap)


class Chunker(ABC):
    """Abstract base class for text chunkers."""

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        """Initialize chunker with configuration.

        Args:
            config: Chunking configuration. Uses defaults if not provided.

        Raises:
            ConfigurationError: If the size/overlap pair is invalid.
        """
        self.config = config or ChunkerConfig()
        self._validate_config()

    def _validate_config(self) -> None:
        size = self.config.chunk_size
        overlap = self.config.chunk_overlap
        details = {"chunk_size": size, "chunk_overlap": overlap}
        if size < 1:
            raise ConfigurationError("chunk_size must be positive", details=details)
        if overlap < 0:
            raise ConfigurationError("chunk_overlap must not be negative", details=details)
        if overlap >= size:
            raise ConfigurationError(
                "chunk_overlap must be less than chunk_size", details=details
            )

    @abstractmethod
    def chunk(self, document: Document) -> list[Chunk]:
        """Split a document into chunks.

        Args:
            document: The document to chunk.

        Returns:
            List of Chunk objects in document order.
        """
        ...

    def chunk_documents(self, documents: Iterable[Document]) -> list[Chunk]:
        """Chunk several documents, preserving input order.

        Args:
            documents: Documents to chunk.

        Returns:
            Chunks of every document, concatenated.
        """
        chunks: list[Chunk] = []
        for document in documents:
            chunks.extend(self.chunk(document))
        return chunks

    def _create_chunk(
        self,
        content: str,
        document: Document,
        index: int,
        start_char: int,
        end_char: int,
    ) -> Chunk:
        return Chunk(
            content=content,
            metadata=document.metadata,
            index=index,
            start_char=start_char,
            end_char=end_char,
        )


class CharacterChunker(Chunker):
    """Chunk text into fixed-width character windows with overlap.

    Each window is chunk_size characters long (the last may be shorter) and
    starts chunk_size - chunk_overlap characters after the previous one.
    Content is not stripped, so chunks tile the document exactly.
    """

    def chunk(self, document: Document) -> list[Chunk]:
        """Split document by character count."""
        text = document.content
        if not text.strip():
            return []

        size = self.config.chunk_size
        step = size - self.config.chunk_overlap

        chunks: list[Chunk] = []
        start = 0
        while True:
            end = min(start + size, len(text))
            chunks.append(
                self._create_chunk(
                    content=text[start:end],
                    document=document,
                    index=len(chunks),
                    start_char=start,
                    end_char=end,
                )
            )
            if end == len(text):
                break
            start += step

        return chunks


class SentenceChunker(Chunker):
    """Chunk text by sentences, grouping them up to the target size.

    Sentences are never split. A sentence longer than chunk_size becomes a
    chunk on its own. Each new chunk is seeded with trailing sentences of the
    previous chunk covering at least chunk_overlap characters, as far as the
    size limit allows.
    """

    # Latin terminators followed by whitespace and a non-lowercase character,
    # CJK terminators, or a blank line.
    SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+(?=[^a-z])|(?<=[。！？])\s*|\n\s*\n")

    def chunk(self, document: Document) -> list[Chunk]:
        """Split document by sentences."""
        text = document.content
        if not text.strip():
            return []

        spans = self._split_sentences(text)
        size = self.config.chunk_size

        chunks: list[Chunk] = []
        current: list[Span] = []

        for span in spans:
            if current and self._joined_length(current + [span]) > size:
                chunks.append(self._chunk_from_spans(text, current, document, len(chunks)))
                current = self._overlap_seed(current, span)
            current.append(span)

        if current:
            chunks.append(self._chunk_from_spans(text, current, document, len(chunks)))

        return chunks

    def _split_sentences(self, text: str) -> list[Span]:
        """Split text into stripped sentence spans.

        Args:
            text: Text to split.

        Returns:
            (start, end) offsets of each non-empty sentence.
        """
        spans: list[Span] = []
        start = 0
        for match in self.SENTENCE_BOUNDARY.finditer(text):
            self._append_span(text, start, match.start(), spans)
            start = match.end()
        self._append_span(text, start, len(text), spans)
        return spans

    @staticmethod
    def _append_span(text: str, start: int, end: int, spans: list[Span]) -> None:
        segment = text[start:end]
        stripped = segment.strip()
        if stripped:
            offset = start + len(segment) - len(segment.lstrip())
            spans.append((offset, offset + len(stripped)))

    @staticmethod
    def _joined_length(spans: list[Span]) -> int:
        """Length of the spans joined by single spaces."""
        if not spans:
            return 0
        return sum(end - start for start, end in spans) + len(spans) - 1

    def _overlap_seed(self, previous: list[Span], next_span: Span) -> list[Span]:
        """Pick the trailing sentences that open the next chunk.

        Args:
            previous: Sentences of the chunk just closed.
            next_span: Sentence that must fit after the seed.

        Returns:
            Shortest suffix reaching chunk_overlap, trimmed from the front
            until next_span fits within chunk_size.
        """
        seed: list[Span] = []
        for span in reversed(previous):
            if self._joined_length(seed) >= self.config.chunk_overlap:
                break
            seed.insert(0, span)

        while seed and self._joined_length(seed + [next_span]) > self.config.chunk_size:
            seed.pop(0)

        return seed

    def _chunk_from_spans(
        self,
        text: str,
        spans: list[Span],
        document: Document,
        index: int,
    ) -> Chunk:
        return self._create_chunk(
            content=" ".join(text[start:end] for start, end in spans),
            document=document,
            index=index,
            start_char=spans[0][0],
            end_char=spans[-1][1],
        )


_CHUNKERS: dict[ChunkingStrategy, type[Chunker]] = {
    ChunkingStrategy.CHARACTER: CharacterChunker,
    ChunkingStrategy.SENTENCE: SentenceChunker,
}


def create_chunker(
    strategy: ChunkingStrategy | str = ChunkingStrategy.CHARACTER,
    config: ChunkerConfig | None = None,
) -> Chunker:
    """Create a chunker for a strategy.

    Args:
        strategy: Chunking strategy or its name.
        config: Chunking configuration.

    Returns:
        Configured chunker.

    Raises:
        ConfigurationError: If the strategy is unknown or config is invalid.
    """
    try:
        chunker_class = _CHUNKERS[ChunkingStrategy(strategy)]
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown chunking strategy: {strategy}",
            details={"strategy": str(strategy)},
        ) from e
    return chunker_class(config)


def chunk_documents(
    documents: Iterable[Document],
    chunk_size: int = 1024,
    chunk_overlap: int = 50,
    strategy: ChunkingStrategy | str = ChunkingStrategy.CHARACTER,
) -> list[Chunk]:
    """Chunk documents with the given size, overlap and strategy.

    Args:
        documents: Documents to chunk.
        chunk_size: Maximum chunk size in characters.
        chunk_overlap: Overlap between consecutive chunks.
        strategy: Chunking strategy.

    Returns:
        Chunks in input order.
    """
    config = ChunkerConfig(chunk_size=chunk_size, chunk_overlap=chunk_overlap)
    return create_chunker(strategy, config).chunk_documents(documents)
