"""Exception types shared across anchor."""


class AnchorError(Exception):
    """Base class for anchor errors."""


class InvariantViolation(AnchorError):
    """Session state breaks a compaction invariant (usually corrupted persisted data)."""


class SummarizationError(AnchorError):
    """The summarizer collaborator could not produce a summary."""


class CompletionError(AnchorError):
    """An ordinary chat completion request failed."""
