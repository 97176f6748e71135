"""Decide when a session needs compaction."""

from loguru import logger

from anchor.compaction.estimator import TokenCounter, estimate_total_tokens
from anchor.compaction.types import CompactionConfig
from anchor.session.types import ChatSession


def tail_tokens(session: ChatSession, counter: TokenCounter | None = None) -> int:
    """Estimated tokens of the summary plus the uncompacted tail."""
    return estimate_total_tokens(session.recent_window, session.compact_summary, counter)


def should_compact(
    session: ChatSession,
    config: CompactionConfig | None = None,
    counter: TokenCounter | None = None,
) -> bool:
    """
    Check if compaction must run before the next turn.

    Args:
        session: The session to evaluate.
        config: Compaction policy; defaults when omitted.
        counter: Token counter; the default counter when omitted.

    Returns:
        True if the summary plus uncompacted tail exceeds the threshold.
    """
    config = config or CompactionConfig()

    # Don't compact tiny conversations
    if len(session.messages) < config.min_messages_to_compact:
        return False

    total = tail_tokens(session, counter)
    needed = total > config.compact_threshold
    logger.debug(
        f"Session {session.id}: {total} tail tokens "
        f"(threshold {config.compact_threshold}), compact={needed}"
    )
    return needed
