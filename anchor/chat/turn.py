"""Chat turn controller: compact-then-send for one conversation turn."""

import asyncio
import functools
from typing import Any, Coroutine

from loguru import logger

from anchor.compaction.context import build_context_for_api
from anchor.compaction.estimator import TokenCounter
from anchor.compaction.service import CompactionService
from anchor.compaction.summarizer import ProviderSummarizer, Summarizer
from anchor.compaction.types import CompactionConfig, CompactionResult
from anchor.config.schema import Config
from anchor.errors import CompletionError
from anchor.providers.base import LLMProvider
from anchor.session.types import ChatSession, Message, now_ms


class ChatTurnController:
    """
    Runs a chat turn in two phases.

    1. ``prepare_turn`` compacts the session if needed and assembles the
       outbound context. This is the only phase that waits on the summarizer.
    2. ``send_turn`` sends that context to the completion provider and
       appends the reply.

    The caller must not start a turn on a session while another is in flight.
    """

    def __init__(
        self,
        provider: LLMProvider,
        summarizer: Summarizer | None = None,
        config: CompactionConfig | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        counter: TokenCounter | None = None,
    ):
        self.provider = provider
        self.model = model or provider.get_default_model()
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.compaction = CompactionService(
            summarizer=summarizer or ProviderSummarizer(provider, model=self.model),
            config=config,
            counter=counter,
        )
        self.last_compaction: CompactionResult | None = None
        self._compaction_tasks: set[asyncio.Task] = set()

    @classmethod
    def from_config(
        cls,
        config: Config,
        provider: LLMProvider,
        counter: TokenCounter | None = None,
    ) -> "ChatTurnController":
        """Build a controller from the application configuration."""
        compaction = config.chat.compaction
        summarizer = ProviderSummarizer(
            provider,
            model=config.summary_model,
            max_tokens=compaction.summary_max_tokens,
        )
        return cls(
            provider=provider,
            summarizer=summarizer,
            config=compaction.to_policy(),
            model=config.chat.model_name,
            max_tokens=config.chat.max_tokens,
            temperature=config.chat.temperature,
            counter=counter or TokenCounter(encoding_name=compaction.encoding),
        )

    async def _run_shielded(
        self,
        coro: Coroutine[Any, Any, CompactionResult | None],
        session: ChatSession,
    ) -> CompactionResult | None:
        """Run a compaction step that outlives cancellation of the caller."""
        task = asyncio.create_task(coro)
        self._compaction_tasks.add(task)
        task.add_done_callback(functools.partial(self._on_compaction_done, session.id))
        return await asyncio.shield(task)

    def _on_compaction_done(self, session_id: str, task: asyncio.Task) -> None:
        self._compaction_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error(f"Session {session_id}: compaction step failed: {exc}")

    async def _compact_if_needed(self, session: ChatSession) -> CompactionResult | None:
        result = await self.compaction.compact_if_needed(session)
        if result is not None and result.failed:
            logger.warning(
                f"Session {session.id}: compaction deferred, sending with current "
                f"context ({result.error})"
            )
        self.last_compaction = result
        return result

    async def prepare_turn(self, session: ChatSession) -> list[Message]:
        """
        Compact the session if required, then build the outbound context.

        Compaction runs shielded: cancelling the turn does not interrupt a
        pass that has started, so the session is never left half-updated.

        Args:
            session: Session whose newest message is the pending user turn.

        Returns:
            Messages to send to the model.
        """
        await self._run_shielded(self._compact_if_needed(session), session)
        return build_context_for_api(session)

    async def send_turn(self, session: ChatSession, context: list[Message]) -> Message:
        """
        Send the prepared context and append the assistant reply.

        Raises:
            CompletionError: If the provider reports an error. Nothing is
                appended in that case.
        """
        response = await self.provider.chat(
            messages=[m.to_api() for m in context],
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

        if response.is_error:
            logger.error(f"Session {session.id}: completion failed: {response.content}")
            raise CompletionError(response.content or "completion request failed")

        reply = Message(
            role="assistant",
            content=response.content or "",
            timestamp=now_ms(),
            model=response.model or self.model,
        )
        session.append(reply)
        return reply

    async def send_user_message(self, session: ChatSession, content: str) -> Message:
        """
        Append a user message and run a full turn.

        Returns:
            The assistant reply.
        """
        if not content.strip():
            raise ValueError("Message content cannot be empty")

        session.append(Message(role="user", content=content, timestamp=now_ms()))
        context = await self.prepare_turn(session)
        return await self.send_turn(session, context)

    async def compact_now(self, session: ChatSession) -> CompactionResult:
        """Run a compaction pass regardless of the token threshold."""
        result = await self._run_shielded(self.compaction.compact(session), session)
        self.last_compaction = result
        return result
