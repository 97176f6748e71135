"""Summarizer collaborators for compaction."""

from typing import Protocol

from anchor.errors import SummarizationError
from anchor.providers.base import LLMProvider
from anchor.session.types import Message


class Summarizer(Protocol):
    """Turns a summarization prompt into summary text."""

    async def summarize(self, messages: list[Message]) -> str: ...


class ProviderSummarizer:
    """
    Summarizer backed by a chat completion provider.

    The request is always a single non-streaming completion.
    """

    def __init__(
        self,
        provider: LLMProvider,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.3,
    ):
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    async def summarize(self, messages: list[Message]) -> str:
        """
        Ask the provider for a summary.

        Raises:
            SummarizationError: If the provider fails or returns no text.
        """
        response = await self.provider.chat(
            messages=[m.to_api() for m in messages],
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

        if response.is_error:
            raise SummarizationError(response.content or "summarization request failed")

        summary = (response.content or "").strip()
        if not summary:
            raise SummarizationError("Summarizer returned an empty summary")

        return summary
