"""Document and chunk data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """A document with content and metadata.

    Attributes:
        content: The text content of the document.
        metadata: Caller-supplied metadata, copied into every chunk.
    """

    model_config = ConfigDict(strict=True)

    content: str = Field(description="Text content of the document")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Document metadata",
    )


class Chunk(BaseModel):
    """A chunk of text from a document.

    Attributes:
        content: The text content of the chunk.
        metadata: Metadata of the parent document, unchanged.
        index: Position of this chunk within its document.
        start_char: Starting character position in original document.
        end_char: Ending character position in original document.
    """

    content: str = Field(description="Text content of the chunk")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Parent document metadata",
    )
    index: int = Field(default=0, description="Chunk index in sequence")
    start_char: int = Field(default=0, description="Start position in original document")
    end_char: int = Field(default=0, description="End position in original document")
