"""Assemble the outbound message list for a model turn."""

from anchor.compaction.types import SUMMARY_CONTEXT_PREFIX
from anchor.session.types import ChatSession, Message


def summary_message(summary: str) -> Message:
    """Wrap a compaction summary as the leading system message."""
    return Message(role="system", content=f"{SUMMARY_CONTEXT_PREFIX}{summary}")


def build_context_for_api(session: ChatSession) -> list[Message]:
    """
    Build the exact message list to send for the next turn.

    Without a summary this is the full history. With one, it is the summary
    as a system message followed by the recent window in original order.
    """
    if session.compact_summary is None:
        return list(session.messages)

    return [summary_message(session.compact_summary), *session.recent_window]
