"""Conversation window module."""

from llm_memory.conversation.window import SCHEMA_FUNCTION_NAME, ConversationWindowManager

__all__ = ["SCHEMA_FUNCTION_NAME", "ConversationWindowManager"]
