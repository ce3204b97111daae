"""Chat provider selection."""

from enum import Enum

import httpx

from llm_memory.config import LLMSettings, get_settings
from llm_memory.exceptions import ConfigurationError
from llm_memory.llm.providers import (
    ChatProvider,
    GeminiProvider,
    HuggingFaceProvider,
    MistralProvider,
    OpenAIProvider,
    OpenRouterProvider,
)


class ChatProviderName(str, Enum):
    """Supported chat provider tags."""

    OPENAI = "openai"
    OPENROUTER = "openrouter"
    MISTRAL = "mistral"
    GEMINI = "gemini"
    HUGGINGFACE = "huggingface"


CHAT_PROVIDERS: dict[ChatProviderName, type[ChatProvider]] = {
    ChatProviderName.OPENAI: OpenAIProvider,
    ChatProviderName.OPENROUTER: OpenRouterProvider,
    ChatProviderName.MISTRAL: MistralProvider,
    ChatProviderName.GEMINI: GeminiProvider,
    ChatProviderName.HUGGINGFACE: HuggingFaceProvider,
}


def create_chat_provider(
    name: str | None = None,
    settings: LLMSettings | None = None,
    client: httpx.AsyncClient | None = None,
) -> ChatProvider:
    """Create a chat provider by tag.

    Args:
        name: Provider tag. Defaults to the configured provider.
        settings: LLM configuration.
        client: HTTP client (for testing).

    Returns:
        Chat provider instance.

    Raises:
        ConfigurationError: If the tag is unsupported or credentials are missing.
    """
    settings = settings or get_settings().llm
    tag = name or settings.provider

    try:
        provider_name = ChatProviderName(tag)
    except ValueError as e:
        raise ConfigurationError(
            f"Unsupported chat provider '{tag}'",
            details={
                "provider": tag,
                "available": [member.value for member in ChatProviderName],
            },
        ) from e

    return CHAT_PROVIDERS[provider_name](settings=settings, client=client)
