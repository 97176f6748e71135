"""Compaction system for context management."""

from anchor.compaction.estimator import (
    TokenCounter,
    Tokenizer,
    count_tokens,
    estimate_total_tokens,
    fallback_count,
)
from anchor.compaction.trigger import should_compact, tail_tokens
from anchor.compaction.prompt import build_summary_prompt, format_messages
from anchor.compaction.compactor import perform_compact
from anchor.compaction.context import build_context_for_api
from anchor.compaction.summarizer import ProviderSummarizer, Summarizer
from anchor.compaction.service import CompactionService
from anchor.compaction.types import (
    COMPACT_THRESHOLD,
    KEEP_RECENT_COUNT,
    MIN_MESSAGES_TO_COMPACT,
    CompactionConfig,
    CompactionResult,
)

__all__ = [
    # Estimator
    "TokenCounter",
    "Tokenizer",
    "count_tokens",
    "estimate_total_tokens",
    "fallback_count",
    # Trigger
    "should_compact",
    "tail_tokens",
    # Prompt
    "build_summary_prompt",
    "format_messages",
    # Compactor
    "perform_compact",
    # Context
    "build_context_for_api",
    # Summarizer
    "Summarizer",
    "ProviderSummarizer",
    # Service
    "CompactionService",
    # Types
    "COMPACT_THRESHOLD",
    "KEEP_RECENT_COUNT",
    "MIN_MESSAGES_TO_COMPACT",
    "CompactionConfig",
    "CompactionResult",
]
