"""Library exception hierarchy.

All custom exceptions inherit from LLMMemoryError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "MEM-1000"
    CONFIGURATION_ERROR = "MEM-1001"
    VALIDATION_ERROR = "MEM-1002"
    NOT_FOUND = "MEM-1003"
    CAPABILITY_ERROR = "MEM-1004"
    TEMPLATE_ERROR = "MEM-1005"

    # Document processing errors (2xxx)
    DOCUMENT_NOT_FOUND = "MEM-2000"
    DOCUMENT_PARSE_ERROR = "MEM-2001"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "MEM-3000"

    # Vector store errors (4xxx)
    VECTOR_STORE_ERROR = "MEM-4000"
    COLLECTION_NOT_FOUND = "MEM-4001"
    COLLECTION_EXISTS = "MEM-4002"
    RECORD_NOT_FOUND = "MEM-4003"
    DIMENSION_MISMATCH = "MEM-4004"
    METADATA_DECODE_ERROR = "MEM-4005"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "MEM-5000"
    LLM_TIMEOUT = "MEM-5001"
    LLM_RATE_LIMIT = "MEM-5002"


class LLMMemoryError(Exception):
    """Base exception for all llm-memory errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(LLMMemoryError):
    """Invalid parameters or missing credentials, raised at construction."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class ValidationError(LLMMemoryError):
    """Input validation error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.VALIDATION_ERROR, details)


class NotFoundError(LLMMemoryError):
    """A named backend, index or record does not exist."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class CapabilityError(LLMMemoryError):
    """The configured provider cannot perform the requested operation."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CAPABILITY_ERROR, details)


class TemplateError(LLMMemoryError):
    """Prompt template is malformed or references an undefined variable."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.TEMPLATE_ERROR, details)


class DeserializationError(LLMMemoryError):
    """Stored record metadata could not be decoded."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.METADATA_DECODE_ERROR, details)


class DocumentError(LLMMemoryError):
    """Document loading error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DOCUMENT_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ProviderError(LLMMemoryError):
    """Network, auth or rate-limit failure from an external backend."""


class EmbeddingError(ProviderError):
    """Embedding service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class VectorStoreError(ProviderError):
    """Vector store operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LLMError(ProviderError):
    """Chat provider error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)
