"""Chat data models.

ChatCompletion mirrors the OpenAI chat-completion response; providers with a
different native shape adapt into it.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A message in a conversation.

    Attributes:
        role: The role of the message sender.
        content: The message content.
    """

    role: Role = Field(description="Message role")
    content: str = Field(description="Message content")


class FunctionSpec(BaseModel):
    """A function the model may be asked to call."""

    name: str = Field(description="Function name")
    description: str = Field(default="", description="What the function does")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="JSON schema of the function arguments",
    )


class FunctionCall(BaseModel):
    """A function invocation returned by the model."""

    name: str = Field(description="Function name")
    arguments: str = Field(default="{}", description="JSON-encoded arguments")


class ChatCompletion(BaseModel):
    """Normalized chat completion.

    Attributes:
        role: Role of the generated message.
        content: Generated text, if any.
        function_call: Function invocation, if the model made one.
        model: Model that produced the completion.
        prompt_tokens: Number of tokens in the prompt.
        completion_tokens: Number of tokens in the completion.
        total_tokens: Total tokens used.
    """

    role: Role = Field(default=Role.ASSISTANT, description="Message role")
    content: str | None = Field(default=None, description="Generated text")
    function_call: FunctionCall | None = Field(default=None, description="Function call")
    model: str = Field(description="Model used")
    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")
