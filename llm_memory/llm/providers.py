"""Chat provider interface and HTTP implementations.

Every provider returns a ChatCompletion. OpenAI-compatible providers share one
request/response path; Gemini and Hugging Face adapt their native payloads.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from llm_memory.config import LLMSettings, get_settings
from llm_memory.exceptions import CapabilityError, ConfigurationError, ErrorCode, LLMError
from llm_memory.llm.models import ChatCompletion, FunctionCall, FunctionSpec, Message, Role
from llm_memory.logging_config import get_logger
from llm_memory.observability.metrics import track_llm_request

logger = get_logger(__name__)


class ChatProvider(ABC):
    """Abstract base class for chat providers.

    Subclasses set the provider tag, default endpoint and default model, and
    translate between Message lists and their provider's wire format.
    """

    name: str = ""
    DEFAULT_BASE_URL: str = ""
    DEFAULT_MODEL: str = ""
    supports_function_calling: bool = False

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            settings: LLM configuration.
            client: HTTP client (for testing).

        Raises:
            ConfigurationError: If the hosted API is used without an API key.
        """
        self._settings = settings or get_settings().llm
        self._client = client
        self._owns_client = client is None
        self._base_url = (self._settings.base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._api_key = (
            self._settings.api_key.get_secret_value() if self._settings.api_key else None
        )

        if self._api_key is None and self._settings.base_url is None:
            raise ConfigurationError(
                f"Missing API key for chat provider '{self.name}'",
                details={"provider": self.name, "setting": "LLM_API_KEY"},
            )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def default_model(self) -> str:
        """Model used when a call does not name one."""
        return self._settings.model or self.DEFAULT_MODEL

    async def chat(
        self,
        model: str | None,
        messages: list[Message],
        temperature: float | None = None,
        functions: list[FunctionSpec] | None = None,
    ) -> ChatCompletion:
        """Send a conversation and return the model's reply.

        Args:
            model: Model name; the provider default if None.
            messages: Conversation messages, oldest first.
            temperature: Sampling temperature override.
            functions: Functions the model is forced to choose from.

        Returns:
            Normalized chat completion.

        Raises:
            CapabilityError: If functions are given to a provider without
                function calling.
            LLMError: If the request fails or the response is malformed.
        """
        if functions and not self.supports_function_calling:
            raise CapabilityError(
                f"Provider '{self.name}' does not support function calling",
                details={"provider": self.name},
            )

        model = model or self.default_model
        if temperature is None:
            temperature = self._settings.temperature

        client = await self._get_client()
        url, payload = self._build_request(model, messages, temperature, functions)
        start_time = time.perf_counter()

        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()

        except httpx.TimeoutException as e:
            track_llm_request(
                self.name, model, time.perf_counter() - start_time, success=False
            )
            logger.error(f"LLM request timed out: {e}", extra={"provider": self.name})
            raise LLMError(
                "LLM request timed out",
                code=ErrorCode.LLM_TIMEOUT,
                details={"timeout": self._settings.timeout},
            ) from e

        except httpx.HTTPStatusError as e:
            track_llm_request(
                self.name, model, time.perf_counter() - start_time, success=False
            )
            status = e.response.status_code
            logger.error(
                f"LLM request failed: {status}",
                extra={"provider": self.name, "status": status},
            )

            if status == 429:
                raise LLMError(
                    "Rate limit exceeded",
                    code=ErrorCode.LLM_RATE_LIMIT,
                    details={"status_code": status},
                ) from e

            raise LLMError(
                f"LLM service returned {status}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"status_code": status},
            ) from e

        except httpx.RequestError as e:
            track_llm_request(
                self.name, model, time.perf_counter() - start_time, success=False
            )
            logger.error(f"LLM connection error: {e}", extra={"provider": self.name})
            raise LLMError(
                f"Failed to connect to LLM service: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"url": url},
            ) from e

        try:
            completion = self._parse_response(response.json(), model)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            track_llm_request(
                self.name, model, time.perf_counter() - start_time, success=False
            )
            raise LLMError(
                f"Invalid response from LLM: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        track_llm_request(
            self.name,
            model,
            time.perf_counter() - start_time,
            prompt_tokens=completion.prompt_tokens,
            completion_tokens=completion.completion_tokens,
        )
        return completion

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    @abstractmethod
    def _build_request(
        self,
        model: str,
        messages: list[Message],
        temperature: float,
        functions: list[FunctionSpec] | None,
    ) -> tuple[str, dict[str, Any]]:
        """Return endpoint URL and JSON payload for a chat request."""
        ...

    @abstractmethod
    def _parse_response(self, data: Any, model: str) -> ChatCompletion:
        """Convert a provider response body into a ChatCompletion."""
        ...


class OpenAICompatibleProvider(ChatProvider):
    """Provider for OpenAI-style `/chat/completions` APIs.

    Function calling goes through `tools`; both `tool_calls` and the legacy
    `function_call` reply fields are understood.
    """

    supports_function_calling = True

    def _tool_choice(self, functions: list[FunctionSpec]) -> Any:
        if len(functions) == 1:
            return {"type": "function", "function": {"name": functions[0].name}}
        return "auto"

    def _build_request(
        self,
        model: str,
        messages: list[Message],
        temperature: float,
        functions: list[FunctionSpec] | None,
    ) -> tuple[str, dict[str, Any]]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": msg.role.value, "content": msg.content} for msg in messages
            ],
            "temperature": temperature,
        }
        if self._settings.max_tokens is not None:
            payload["max_tokens"] = self._settings.max_tokens

        if functions:
            payload["tools"] = [
                {"type": "function", "function": spec.model_dump()} for spec in functions
            ]
            payload["tool_choice"] = self._tool_choice(functions)

        return f"{self._base_url}/chat/completions", payload

    def _parse_response(self, data: Any, model: str) -> ChatCompletion:
        message = data["choices"][0]["message"]
        usage = data.get("usage") or {}

        raw_call = None
        if message.get("tool_calls"):
            raw_call = message["tool_calls"][0]["function"]
        elif message.get("function_call"):
            raw_call = message["function_call"]

        function_call = None
        if raw_call is not None:
            arguments = raw_call.get("arguments", "{}")
            # Some providers return arguments already decoded.
            if not isinstance(arguments, str):
                arguments = json.dumps(arguments)
            function_call = FunctionCall(name=raw_call["name"], arguments=arguments)

        return ChatCompletion(
            role=Role.ASSISTANT,
            content=message.get("content"),
            function_call=function_call,
            model=data.get("model") or model,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        )


class OpenAIProvider(OpenAICompatibleProvider):
    """OpenAI chat completions."""

    name = "openai"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_MODEL = "gpt-4o-mini"


class OpenRouterProvider(OpenAICompatibleProvider):
    """OpenRouter, an OpenAI-compatible router over many hosted models."""

    name = "openrouter"
    DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
    DEFAULT_MODEL = "google/gemini-2.0-flash-001"


class MistralProvider(OpenAICompatibleProvider):
    """Mistral chat completions."""

    name = "mistral"
    DEFAULT_BASE_URL = "https://api.mistral.ai/v1"
    DEFAULT_MODEL = "mistral-large-latest"

    def _tool_choice(self, functions: list[FunctionSpec]) -> Any:
        # Mistral forces a call with "any" rather than a named function.
        return "any"


class GeminiProvider(ChatProvider):
    """Google Gemini `generateContent`, adapted to the canonical shape."""

    name = "gemini"
    DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL = "gemini-2.0-flash"

    def _headers(self) -> dict[str, str]:
        if self._api_key:
            return {"x-goog-api-key": self._api_key}
        return {}

    def _build_request(
        self,
        model: str,
        messages: list[Message],
        temperature: float,
        functions: list[FunctionSpec] | None,
    ) -> tuple[str, dict[str, Any]]:
        system_parts = [
            {"text": msg.content} for msg in messages if msg.role == Role.SYSTEM
        ]
        contents = [
            {
                "role": "model" if msg.role == Role.ASSISTANT else "user",
                "parts": [{"text": msg.content}],
            }
            for msg in messages
            if msg.role != Role.SYSTEM
        ]

        generation_config: dict[str, Any] = {"temperature": temperature}
        if self._settings.max_tokens is not None:
            generation_config["maxOutputTokens"] = self._settings.max_tokens

        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": generation_config,
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}

        return f"{self._base_url}/models/{model}:generateContent", payload

    def _parse_response(self, data: Any, model: str) -> ChatCompletion:
        parts = data["candidates"][0]["content"].get("parts", [])
        usage = data.get("usageMetadata") or {}

        return ChatCompletion(
            role=Role.ASSISTANT,
            content="".join(part.get("text", "") for part in parts),
            model=data.get("modelVersion") or model,
            prompt_tokens=usage.get("promptTokenCount", 0),
            completion_tokens=usage.get("candidatesTokenCount", 0),
            total_tokens=usage.get("totalTokenCount", 0),
        )


class HuggingFaceProvider(ChatProvider):
    """Hugging Face text-generation inference, adapted to the canonical shape.

    The conversation is flattened into a single `role: content` transcript
    ending with an open assistant turn.
    """

    name = "huggingface"
    DEFAULT_BASE_URL = "https://router.huggingface.co/hf-inference/models"
    DEFAULT_MODEL = "Qwen/Qwen2.5-Coder-32B-Instruct"

    @staticmethod
    def render_transcript(messages: list[Message]) -> str:
        lines = [f"{msg.role.value}: {msg.content}" for msg in messages]
        lines.append(f"{Role.ASSISTANT.value}:")
        return "\n".join(lines)

    def _build_request(
        self,
        model: str,
        messages: list[Message],
        temperature: float,
        functions: list[FunctionSpec] | None,
    ) -> tuple[str, dict[str, Any]]:
        parameters: dict[str, Any] = {
            "temperature": temperature,
            "return_full_text": False,
        }
        if self._settings.max_tokens is not None:
            parameters["max_new_tokens"] = self._settings.max_tokens

        payload = {
            "inputs": self.render_transcript(messages),
            "parameters": parameters,
        }
        return f"{self._base_url}/{model}", payload

    def _parse_response(self, data: Any, model: str) -> ChatCompletion:
        if isinstance(data, list):
            data = data[0]
        return ChatCompletion(
            role=Role.ASSISTANT,
            content=data["generated_text"].strip(),
            model=model,
        )
