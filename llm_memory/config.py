"""Library configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded. Components receive their section explicitly
and only fall back to get_settings() when none is given.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ChunkingStrategy(str, Enum):
    """How documents are split into chunks."""

    CHARACTER = "character"
    SENTENCE = "sentence"


class DistanceMetric(str, Enum):
    """Vector distance metric of an index."""

    COSINE = "cosine"
    L2 = "l2"
    DOT = "dot"


class MemorySettings(BaseSettings):
    """Memory manager configuration: index, store backend and chunking."""

    model_config = SettingsConfigDict(env_prefix="MEMORY_")

    index_name: str = Field(
        default="llm_memory",
        description="Name of the vector index",
    )
    store: str = Field(
        default="qdrant",
        description="Registered vector store backend name",
    )
    chunk_size: int = Field(
        default=1024,
        description="Chunk size in characters",
    )
    chunk_overlap: int = Field(
        default=50,
        description="Overlap between consecutive chunks in characters",
    )
    chunk_strategy: ChunkingStrategy = Field(
        default=ChunkingStrategy.CHARACTER,
        description="Chunking strategy",
    )
    distance_metric: DistanceMetric = Field(
        default=DistanceMetric.COSINE,
        description="Distance metric used when the index is created",
    )
    query_limit: int = Field(
        default=3,
        ge=1,
        description="Default number of results returned by query",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding provider configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    provider: str = Field(
        default="openai",
        description="Registered embedding provider name",
    )
    model: str | None = Field(
        default=None,
        description="Embedding model name (provider default if unset)",
    )
    base_url: str | None = Field(
        default=None,
        description="Embedding API base URL (provider default if unset)",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Embedding provider API key",
    )
    batch_size: int = Field(
        default=32,
        description="Batch size for embedding requests",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )


class LLMSettings(BaseSettings):
    """Chat provider configuration."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    provider: str = Field(
        default="openrouter",
        description="Chat provider tag",
    )
    model: str | None = Field(
        default=None,
        description="Model name (provider default if unset)",
    )
    base_url: str | None = Field(
        default=None,
        description="Provider API base URL (provider default if unset)",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Provider API key",
    )
    timeout: float = Field(
        default=120.0,
        description="Request timeout in seconds",
    )
    temperature: float = Field(
        default=0.7,
        description="Sampling temperature",
    )
    max_tokens: int | None = Field(
        default=None,
        description="Maximum tokens in a completion",
    )


class ConversationSettings(BaseSettings):
    """Conversation window configuration."""

    model_config = SettingsConfigDict(env_prefix="CONVERSATION_")

    max_tokens: int = Field(
        default=4096,
        ge=1,
        description="Token budget of the conversation window",
    )
    tokenizer: str = Field(
        default="gpt2",
        description="Pretrained tokenizer used to count tokens",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL, or ':memory:' for the embedded store",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )


class Settings(BaseSettings):
    """Main library settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    memory: MemorySettings = Field(default_factory=MemorySettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    conversation: ConversationSettings = Field(default_factory=ConversationSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
