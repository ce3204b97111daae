"""Chat providers, prompt templates and tokenizers."""

from llm_memory.llm.factory import CHAT_PROVIDERS, ChatProviderName, create_chat_provider
from llm_memory.llm.models import (
    ChatCompletion,
    FunctionCall,
    FunctionSpec,
    Message,
    Role,
)
from llm_memory.llm.prompts import DEFAULT_RAG_TEMPLATE, PromptTemplate
from llm_memory.llm.providers import (
    ChatProvider,
    GeminiProvider,
    HuggingFaceProvider,
    MistralProvider,
    OpenAICompatibleProvider,
    OpenAIProvider,
    OpenRouterProvider,
)
from llm_memory.llm.tokenizer import HuggingFaceTokenizer, Tokenizer

__all__ = [
    "CHAT_PROVIDERS",
    "DEFAULT_RAG_TEMPLATE",
    "ChatCompletion",
    "ChatProvider",
    "ChatProviderName",
    "FunctionCall",
    "FunctionSpec",
    "GeminiProvider",
    "HuggingFaceProvider",
    "HuggingFaceTokenizer",
    "Message",
    "MistralProvider",
    "OpenAICompatibleProvider",
    "OpenAIProvider",
    "OpenRouterProvider",
    "PromptTemplate",
    "Role",
    "Tokenizer",
    "create_chat_provider",
]
