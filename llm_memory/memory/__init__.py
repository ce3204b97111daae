"""Memory manager module."""

from llm_memory.memory.manager import MemoryManager

__all__ = ["MemoryManager"]
