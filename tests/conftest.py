"""Shared fixtures for compaction tests."""

import asyncio
from typing import Callable

import pytest

from anchor.compaction.estimator import TokenCounter
from anchor.compaction.types import CompactionConfig
from anchor.providers.base import LLMProvider, LLMResponse
from anchor.session.types import ChatSession, Message


class CharTokenizer:
    """One token per character, so token arithmetic is exact in tests."""

    def encode(self, text: str) -> list[int]:
        return [ord(c) for c in text]


class FakeSummarizer:
    """Records prompts; returns ``reply`` or raises ``error``."""

    def __init__(self, reply: str = "Summary of the conversation"):
        self.reply = reply
        self.error: Exception | None = None
        self.delay = 0.0
        self.calls: list[list[Message]] = []

    async def summarize(self, messages: list[Message]) -> str:
        self.calls.append(messages)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply


class FakeProvider(LLMProvider):
    """Provider returning queued responses and recording requests."""

    def __init__(self, responses: list[LLMResponse] | None = None):
        super().__init__()
        self.responses = list(responses or [])
        self.requests: list[dict] = []

    async def chat(self, messages, model=None, max_tokens=4096, temperature=0.7) -> LLMResponse:
        self.requests.append({
            "messages": messages,
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if self.responses:
            return self.responses.pop(0)
        return LLMResponse(content="assistant reply")

    def get_default_model(self) -> str:
        return "fake-model"


@pytest.fixture
def counter() -> TokenCounter:
    return TokenCounter(tokenizer=CharTokenizer())


@pytest.fixture
def config() -> CompactionConfig:
    return CompactionConfig()


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


def _message(i: int, size: int) -> Message:
    role = "user" if i % 2 == 0 else "assistant"
    label = f"m{i}:"
    return Message(role=role, content=label + "x" * max(0, size - len(label)), timestamp=1_000 + i)


@pytest.fixture
def make_session() -> Callable[..., ChatSession]:
    """Build a session of ``count`` alternating messages of ``size`` characters."""

    def _make(count: int, size: int = 10, **kwargs) -> ChatSession:
        return ChatSession(
            id=kwargs.pop("id", "chat_test"),
            title=kwargs.pop("title", "Test chat"),
            messages=[_message(i, size) for i in range(count)],
            timestamp=1_700_000_000_000,
            **kwargs,
        )

    return _make


@pytest.fixture
def add_messages() -> Callable[[ChatSession, int, int], None]:
    """Append ``count`` more alternating messages to a session."""

    def _add(session: ChatSession, count: int, size: int = 10) -> None:
        start = len(session.messages)
        for i in range(start, start + count):
            session.append(_message(i, size))

    return _add
