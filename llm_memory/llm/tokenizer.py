"""Token counting for conversation trimming."""

from typing import Protocol

from tokenizers import Tokenizer as PretrainedTokenizer

from llm_memory.logging_config import get_logger

logger = get_logger(__name__)


class Tokenizer(Protocol):
    """Anything that turns text into token ids."""

    def encode(self, text: str) -> list[int]:
        """Encode text to token ids."""
        ...


class HuggingFaceTokenizer:
    """Pretrained Hugging Face tokenizer, loaded on first use.

    Token counts only bound the conversation window, so any reasonable
    vocabulary (gpt2 by default) is good enough.
    """

    def __init__(self, name: str = "gpt2") -> None:
        self.name = name
        self._tokenizer: PretrainedTokenizer | None = None

    def _get_tokenizer(self) -> PretrainedTokenizer:
        if self._tokenizer is None:
            logger.info(f"Loading tokenizer: {self.name}")
            self._tokenizer = PretrainedTokenizer.from_pretrained(self.name)
        return self._tokenizer

    def encode(self, text: str) -> list[int]:
        """Encode text to token ids."""
        return self._get_tokenizer().encode(text, add_special_tokens=True).ids
