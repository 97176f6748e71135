"""Types for compaction system."""

from dataclasses import dataclass


# Constants
COMPACT_THRESHOLD = 64_000  # tokens in the uncompacted tail
KEEP_RECENT_COUNT = 5  # newest messages that always stay verbatim
MIN_MESSAGES_TO_COMPACT = 10  # never compact shorter conversations

SUMMARY_OVERHEAD_TOKENS = 20  # system-message wrapper around the summary
MESSAGE_OVERHEAD_TOKENS = 4  # role and formatting per message

DEFAULT_ENCODING = "cl100k_base"
DEFAULT_SUMMARY_TIMEOUT_SECONDS = 60.0

SUMMARY_CONTEXT_PREFIX = "Previous conversation summary:\n\n"
FALLBACK_SUMMARY_TEMPLATE = "[Auto-summary failed. Conversation started at {started}]"


@dataclass
class CompactionConfig:
    """Policy knobs for compaction."""

    compact_threshold: int = COMPACT_THRESHOLD
    keep_recent_count: int = KEEP_RECENT_COUNT
    min_messages_to_compact: int = MIN_MESSAGES_TO_COMPACT

    # Upper bound on a single summarizer call
    summary_timeout_seconds: float | None = DEFAULT_SUMMARY_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.keep_recent_count < 0:
            raise ValueError("keep_recent_count must be >= 0")
        if self.min_messages_to_compact < 0:
            raise ValueError("min_messages_to_compact must be >= 0")
        if self.compact_threshold < 0:
            raise ValueError("compact_threshold must be >= 0")


@dataclass
class CompactionResult:
    """
    Result of a compaction pass.

    ``summary`` and ``summary_up_to_index`` are both None only when an
    uncompacted session had nothing to fold. ``failed`` marks a pass where
    the summarizer errored and the previous (or placeholder) state was kept.
    """

    summary: str | None
    summary_up_to_index: int | None
    messages_compacted: int = 0
    tokens_before: int = 0
    tokens_after: int = 0
    failed: bool = False
    error: str | None = None
