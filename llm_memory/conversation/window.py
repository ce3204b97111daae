"""Token-bounded conversation with a chat provider.

The window keeps the newest messages whose token counts add up to at most
max_tokens. Older messages are dropped whole, never truncated.
"""

import json
from collections.abc import Mapping
from typing import Any

from llm_memory.config import Settings, get_settings
from llm_memory.exceptions import CapabilityError, ConfigurationError, LLMMemoryError
from llm_memory.llm.factory import create_chat_provider
from llm_memory.llm.models import FunctionSpec, Message, Role
from llm_memory.llm.prompts import PromptTemplate
from llm_memory.llm.providers import ChatProvider
from llm_memory.llm.tokenizer import HuggingFaceTokenizer, Tokenizer
from llm_memory.logging_config import get_logger
from llm_memory.observability.metrics import track_trim

logger = get_logger(__name__)

SCHEMA_FUNCTION_NAME = "format_response"


class ConversationWindowManager:
    """Renders prompts, keeps conversation history and talks to the provider.

    One instance holds one conversation; it is not safe for concurrent use.
    """

    def __init__(
        self,
        prompt_template: str,
        provider: ChatProvider | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        tokenizer: Tokenizer | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the conversation.

        Args:
            prompt_template: Jinja2 template rendered on every respond call.
            provider: Chat provider. Built from settings if not provided.
            model: Model name. Provider default if not provided.
            temperature: Sampling temperature.
            max_tokens: Token budget of the conversation window.
            tokenizer: Token counter. A pretrained tokenizer if not provided.
            settings: Library settings.

        Raises:
            ConfigurationError: If the budget is invalid, or the provider tag
                is unsupported or lacks credentials.
        """
        settings = settings or get_settings()

        self.max_tokens = (
            max_tokens if max_tokens is not None else settings.conversation.max_tokens
        )
        if self.max_tokens < 1:
            raise ConfigurationError(
                "max_tokens must be positive",
                details={"max_tokens": self.max_tokens},
            )

        self.template = PromptTemplate(prompt_template)
        self.provider = provider or create_chat_provider(settings=settings.llm)
        self._owns_provider = provider is None
        self.model = model or self.provider.default_model
        self.temperature = (
            temperature if temperature is not None else settings.llm.temperature
        )
        self.messages: list[Message] = []
        self._tokenizer = tokenizer
        self._tokenizer_name = settings.conversation.tokenizer

    @property
    def tokenizer(self) -> Tokenizer:
        """Token counter, created on first use."""
        if self._tokenizer is None:
            self._tokenizer = HuggingFaceTokenizer(self._tokenizer_name)
        return self._tokenizer

    def count_tokens(self, text: str) -> int:
        """Number of tokens in a piece of text."""
        return len(self.tokenizer.encode(text))

    def generate_prompt(self, variables: Mapping[str, Any]) -> str:
        """Render the prompt template.

        Raises:
            TemplateError: If the template is malformed or a placeholder is
                not supplied.
        """
        return self.template.render(variables)

    def trim_window(self) -> int:
        """Drop the oldest messages until the window fits the token budget.

        Returns:
            Number of messages dropped.
        """
        total = 0
        kept: list[Message] = []

        for message in reversed(self.messages):
            total += self.count_tokens(message.content)
            if total > self.max_tokens:
                break
            kept.append(message)

        kept.reverse()
        dropped = len(self.messages) - len(kept)
        self.messages = kept

        if dropped:
            logger.debug(
                f"Trimmed {dropped} messages from conversation",
                extra={"dropped": dropped, "max_tokens": self.max_tokens},
            )
            track_trim(dropped)

        return dropped

    async def respond(self, variables: Mapping[str, Any]) -> str | None:
        """Render a prompt, send the conversation and record the reply.

        The rendered prompt stays in history even when the call fails.

        Args:
            variables: Values for the prompt template.

        Returns:
            Reply text, or None if the prompt does not fit the budget or the
            provider call fails.

        Raises:
            TemplateError: If the prompt cannot be rendered.
        """
        prompt = self.generate_prompt(variables)
        self.messages.append(Message(role=Role.USER, content=prompt))
        self.trim_window()

        if not self.messages:
            logger.warning(
                "Prompt alone exceeds the conversation token budget",
                extra={"max_tokens": self.max_tokens},
            )
            return None

        try:
            completion = await self.provider.chat(
                self.model,
                list(self.messages),
                temperature=self.temperature,
            )
        except LLMMemoryError as e:
            logger.error(
                f"Chat request failed: {e.message}",
                extra={"error_code": e.code.value, "model": self.model},
            )
            return None
        except Exception as e:
            # Injected providers may raise outside the coded error hierarchy.
            logger.exception(f"Chat request failed: {e}", extra={"model": self.model})
            return None

        if completion.content is None:
            return None

        self.messages.append(Message(role=Role.ASSISTANT, content=completion.content))
        return completion.content

    async def respond_with_schema(
        self,
        context: Mapping[str, Any],
        schema: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Respond, then reformat the reply into a JSON-schema shaped object.

        Args:
            context: Values for the prompt template.
            schema: JSON schema of the expected object.

        Returns:
            Decoded object, or None if either call fails or the model does not
            return the formatting function call.

        Raises:
            CapabilityError: If the provider does not support function calling.
            TemplateError: If the prompt cannot be rendered.
        """
        if not self.provider.supports_function_calling:
            raise CapabilityError(
                f"Provider '{self.provider.name}' does not support function calling",
                details={"provider": self.provider.name},
            )

        reply = await self.respond(context)
        if reply is None:
            return None

        function = FunctionSpec(
            name=SCHEMA_FUNCTION_NAME,
            description="Format the content with the specified schema",
            parameters=schema,
        )

        try:
            completion = await self.provider.chat(
                self.model,
                [Message(role=Role.USER, content=reply)],
                temperature=self.temperature,
                functions=[function],
            )
        except LLMMemoryError as e:
            logger.error(
                f"Schema formatting request failed: {e.message}",
                extra={"error_code": e.code.value, "model": self.model},
            )
            return None
        except Exception as e:
            logger.exception(
                f"Schema formatting request failed: {e}",
                extra={"model": self.model},
            )
            return None

        call = completion.function_call
        if call is None or call.name != SCHEMA_FUNCTION_NAME:
            logger.info("Model did not return the formatting function call")
            return None

        try:
            arguments = json.loads(call.arguments)
        except json.JSONDecodeError as e:
            logger.warning(f"Function call arguments are not valid JSON: {e}")
            return None

        if not isinstance(arguments, dict):
            logger.warning("Function call arguments are not a JSON object")
            return None

        return arguments

    async def close(self) -> None:
        """Close the provider if it was created here."""
        if self._owns_provider:
            await self.provider.close()
