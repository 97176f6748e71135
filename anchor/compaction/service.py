"""Compaction service binding the engine to a summarizer and policy."""

from loguru import logger

from anchor.compaction.compactor import perform_compact
from anchor.compaction.estimator import TokenCounter, estimate_total_tokens
from anchor.compaction.summarizer import Summarizer
from anchor.compaction.trigger import should_compact
from anchor.compaction.types import CompactionConfig, CompactionResult
from anchor.session.types import ChatSession


class CompactionService:
    """
    Service for managing context compaction.

    Handles:
    - Deciding when a session's uncompacted tail is too large
    - Running a compaction pass and storing its result on the session
    - Counting passes and failures for the caller's diagnostics
    """

    def __init__(
        self,
        summarizer: Summarizer,
        config: CompactionConfig | None = None,
        counter: TokenCounter | None = None,
    ):
        """
        Initialize the compaction service.

        Args:
            summarizer: Collaborator producing summaries.
            config: Compaction configuration.
            counter: Token counter; the shared default when omitted.
        """
        self.summarizer = summarizer
        self.config = config or CompactionConfig()
        self.counter = counter
        self._compaction_count = 0
        self._failure_count = 0

    def estimate_tokens(self, session: ChatSession) -> int:
        """Estimate tokens of the full message log, ignoring any summary."""
        return estimate_total_tokens(session.messages, counter=self.counter)

    def should_compact(self, session: ChatSession) -> bool:
        """Check if compaction should be triggered for the session."""
        return should_compact(session, self.config, self.counter)

    async def compact(self, session: ChatSession) -> CompactionResult:
        """
        Run one compaction pass and apply it to the session.

        Args:
            session: Session to compact in place.

        Returns:
            CompactionResult describing the pass.
        """
        result = await perform_compact(session, self.summarizer, self.config, self.counter)
        session.apply_compaction(result)

        if result.failed:
            self._failure_count += 1
        elif result.messages_compacted:
            self._compaction_count += 1

        return result

    async def compact_if_needed(self, session: ChatSession) -> CompactionResult | None:
        """
        Compact the session if its tail exceeds the threshold.

        Returns:
            The CompactionResult, or None when no compaction was needed.
        """
        if not self.should_compact(session):
            return None

        logger.info(
            f"Compacting session {session.id}: {len(session.messages)} messages, "
            f"summary up to {session.summary_up_to_index}"
        )
        return await self.compact(session)

    @property
    def compaction_count(self) -> int:
        """Get the number of successful compactions performed."""
        return self._compaction_count

    @property
    def failure_count(self) -> int:
        """Get the number of compaction passes whose summarizer failed."""
        return self._failure_count
