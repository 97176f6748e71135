"""Token estimation for messages."""

import math
from typing import Protocol, Sequence

import tiktoken
from loguru import logger

from anchor.compaction.types import (
    DEFAULT_ENCODING,
    MESSAGE_OVERHEAD_TOKENS,
    SUMMARY_OVERHEAD_TOKENS,
)
from anchor.session.types import Message


class Tokenizer(Protocol):
    """Anything that turns text into model tokens."""

    def encode(self, text: str) -> Sequence[int]: ...


class _TiktokenTokenizer:
    """tiktoken encoding that accepts special-token text as plain text."""

    def __init__(self, encoding_name: str):
        self._encoding = tiktoken.get_encoding(encoding_name)

    def encode(self, text: str) -> Sequence[int]:
        return self._encoding.encode(text, disallowed_special=())


def fallback_count(text: str) -> int:
    """Conservative estimate for mixed Latin/CJK text: two characters per token."""
    return math.ceil(len(text) / 2)


class TokenCounter:
    """
    Counts model tokens in text.

    Uses the injected tokenizer, or a tiktoken encoding loaded on first use.
    Any tokenizer failure (missing encoding files, offline environment,
    encoder error) falls back to ``fallback_count``, so counting never raises.
    """

    def __init__(
        self,
        tokenizer: Tokenizer | None = None,
        encoding_name: str = DEFAULT_ENCODING,
    ):
        self._tokenizer = tokenizer
        self._encoding_name = encoding_name
        self._load_failed = False
        self._warned = False

    def _get_tokenizer(self) -> Tokenizer | None:
        if self._tokenizer is None and not self._load_failed:
            try:
                self._tokenizer = _TiktokenTokenizer(self._encoding_name)
            except Exception as e:
                self._load_failed = True
                self._warn(f"could not load encoding {self._encoding_name}: {e}")
        return self._tokenizer

    def _warn(self, reason: str) -> None:
        if not self._warned:
            logger.warning(f"Token counting failed, using length-based fallback ({reason})")
            self._warned = True

    def count(self, text: str) -> int:
        """
        Count tokens in a text string.

        Args:
            text: The text to count.

        Returns:
            Non-negative token count.
        """
        if not text:
            return 0

        tokenizer = self._get_tokenizer()
        if tokenizer is None:
            return fallback_count(text)

        try:
            return len(tokenizer.encode(text))
        except Exception as e:
            self._warn(str(e))
            return fallback_count(text)


_default_counter = TokenCounter()


def get_default_counter() -> TokenCounter:
    """The shared counter used when none is passed explicitly."""
    return _default_counter


def count_tokens(text: str, counter: TokenCounter | None = None) -> int:
    """Count tokens in text with the given (or default) counter."""
    return (counter or _default_counter).count(text)


def estimate_total_tokens(
    messages: list[Message],
    summary: str | None = None,
    counter: TokenCounter | None = None,
) -> int:
    """
    Estimate tokens for a message list plus an optional summary.

    Args:
        messages: Messages to count.
        summary: Optional compaction summary sent ahead of the messages.
        counter: Token counter; the default counter when omitted.

    Returns:
        Total estimated token count, including formatting overhead.
    """
    counter = counter or _default_counter
    total = 0

    if summary:
        total += counter.count(summary) + SUMMARY_OVERHEAD_TOKENS

    for msg in messages:
        total += counter.count(msg.content) + MESSAGE_OVERHEAD_TOKENS

    return total
