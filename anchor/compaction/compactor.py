"""Fold the oldest messages of a session into its running summary."""

import asyncio
from datetime import datetime

from loguru import logger

from anchor.compaction.estimator import TokenCounter, estimate_total_tokens
from anchor.compaction.prompt import build_summary_prompt
from anchor.compaction.summarizer import Summarizer
from anchor.compaction.trigger import tail_tokens
from anchor.compaction.types import (
    FALLBACK_SUMMARY_TEMPLATE,
    CompactionConfig,
    CompactionResult,
)
from anchor.errors import SummarizationError
from anchor.session.types import ChatSession, Message


def select_messages_to_compact(
    session: ChatSession,
    keep_recent_count: int,
) -> tuple[int, int]:
    """
    Find the slice of messages to fold into the summary.

    Returns:
        ``(start_index, compact_up_to)``: the first unsummarized message and
        the exclusive end of the slice. The slice is empty when
        ``compact_up_to <= start_index``.
    """
    compact_up_to = len(session.messages) - keep_recent_count
    previous = session.summary_up_to_index
    start_index = (previous if previous is not None else -1) + 1
    return start_index, compact_up_to


def fallback_summary() -> str:
    """Placeholder summary used when the first compaction pass fails."""
    return FALLBACK_SUMMARY_TEMPLATE.format(
        started=datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    )


async def _run_summarizer(
    summarizer: Summarizer,
    prompt: list[Message],
    timeout: float | None,
) -> str:
    if timeout is None:
        summary = await summarizer.summarize(prompt)
    else:
        summary = await asyncio.wait_for(summarizer.summarize(prompt), timeout)

    if not isinstance(summary, str) or not summary.strip():
        raise SummarizationError("Summarizer returned an empty summary")
    return summary


async def perform_compact(
    session: ChatSession,
    summarizer: Summarizer,
    config: CompactionConfig | None = None,
    counter: TokenCounter | None = None,
) -> CompactionResult:
    """
    Run one compaction pass.

    Summarizes the messages between the current summary and the recent
    window, merging any previous summary. The session itself is not
    modified; apply the result with ``ChatSession.apply_compaction``.

    Summarizer failures (including timeouts) never propagate. The previous
    summary state is kept, or a placeholder is produced when none exists,
    and the result is flagged as ``failed``.

    Args:
        session: Session to compact.
        summarizer: Collaborator producing the summary text.
        config: Compaction policy; defaults when omitted.
        counter: Token counter used for the before/after statistics.

    Returns:
        CompactionResult with the new summary state.
    """
    config = config or CompactionConfig()
    start_index, compact_up_to = select_messages_to_compact(
        session, config.keep_recent_count
    )
    tokens_before = tail_tokens(session, counter)

    if compact_up_to <= start_index:
        logger.warning(
            f"Session {session.id}: nothing to compact "
            f"(start {start_index}, end {compact_up_to}), keeping current state"
        )
        return CompactionResult(
            summary=session.compact_summary,
            summary_up_to_index=session.summary_up_to_index,
            tokens_before=tokens_before,
            tokens_after=tokens_before,
        )

    to_compact = session.messages[start_index:compact_up_to]
    prompt = build_summary_prompt(session.compact_summary, to_compact)

    try:
        summary = await _run_summarizer(
            summarizer, prompt, config.summary_timeout_seconds
        )
    except asyncio.TimeoutError:
        error = f"summarizer timed out after {config.summary_timeout_seconds}s"
    except Exception as e:
        error = str(e) or type(e).__name__
    else:
        new_index = compact_up_to - 1
        tokens_after = estimate_total_tokens(
            session.messages[compact_up_to:], summary, counter
        )
        logger.info(
            f"Session {session.id}: compacted messages {start_index}-{new_index} "
            f"({tokens_before} -> {tokens_after} tokens)"
        )
        return CompactionResult(
            summary=summary,
            summary_up_to_index=new_index,
            messages_compacted=len(to_compact),
            tokens_before=tokens_before,
            tokens_after=tokens_after,
        )

    logger.warning(f"Compacting failed for session {session.id}: {error}")

    # Keep the previous summary and retry on a later turn
    if session.compact_summary is not None:
        return CompactionResult(
            summary=session.compact_summary,
            summary_up_to_index=session.summary_up_to_index,
            tokens_before=tokens_before,
            tokens_after=tokens_before,
            failed=True,
            error=error,
        )

    placeholder = fallback_summary()
    return CompactionResult(
        summary=placeholder,
        summary_up_to_index=0,
        messages_compacted=1,
        tokens_before=tokens_before,
        tokens_after=estimate_total_tokens(session.messages[1:], placeholder, counter),
        failed=True,
        error=error,
    )
