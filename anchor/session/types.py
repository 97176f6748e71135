"""Types for chat sessions."""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, get_args

from anchor.errors import InvariantViolation

if TYPE_CHECKING:
    from anchor.compaction.types import CompactionResult

Role = Literal["user", "assistant", "system"]

SessionState = Literal["uncompacted", "compacted"]

_ROLES: tuple[str, ...] = get_args(Role)


def now_ms() -> int:
    """Current time as integer epoch milliseconds."""
    return int(time.time() * 1000)


def _epoch_ms(value: Any, field_name: str) -> int:
    """Coerce a stored epoch-ms value; fractional values are truncated."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvariantViolation(f"{field_name} must be epoch milliseconds, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class Message:
    """A single chat message. Immutable once appended to a session."""

    role: Role
    content: str
    timestamp: int | None = None  # epoch ms
    model: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting optional fields that are unset."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.timestamp is not None:
            data["timestamp"] = self.timestamp
        if self.model is not None:
            data["model"] = self.model
        return data

    def to_api(self) -> dict[str, str]:
        """OpenAI wire shape: role and content only."""
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        if not isinstance(data, dict):
            raise InvariantViolation(f"Message must be an object, got {type(data).__name__}")
        role = data.get("role")
        if role not in _ROLES:
            raise InvariantViolation(f"Unknown message role: {role!r}")
        content = data.get("content")
        if not isinstance(content, str):
            raise InvariantViolation(
                f"Message content must be a string, got {type(content).__name__}"
            )
        timestamp = data.get("timestamp")
        model = data.get("model")
        if model is not None and not isinstance(model, str):
            raise InvariantViolation(f"Message model must be a string, got {model!r}")
        return cls(
            role=role,
            content=content,
            timestamp=_epoch_ms(timestamp, "Message timestamp") if timestamp is not None else None,
            model=model,
        )


@dataclass
class ChatSession:
    """
    A conversation and its compaction state.

    ``messages`` is the full, append-only history used for display.
    ``compact_summary`` and ``summary_up_to_index`` describe the prefix of
    that history which has been folded into a summary for modeling purposes.
    """

    id: str
    title: str = "New Chat"
    messages: list[Message] = field(default_factory=list)
    timestamp: int = field(default_factory=now_ms)
    compact_summary: str | None = None
    summary_up_to_index: int | None = None

    @property
    def state(self) -> SessionState:
        return "uncompacted" if self.compact_summary is None else "compacted"

    @property
    def recent_window(self) -> list[Message]:
        """Messages after the summarized prefix (all messages when uncompacted)."""
        if self.summary_up_to_index is None:
            return list(self.messages)
        return self.messages[self.summary_up_to_index + 1:]

    def append(self, message: Message) -> None:
        """Append a message to the log."""
        self.messages.append(message)
        self.timestamp = now_ms()

    def validate(self) -> None:
        """
        Check the compaction invariants.

        Raises:
            InvariantViolation: If the summary and its index are not set
                together, the summary is not non-blank text, or the index
                points outside ``messages``.
        """
        if self.compact_summary is not None and (
            not isinstance(self.compact_summary, str) or not self.compact_summary.strip()
        ):
            raise InvariantViolation(
                f"Session {self.id}: compactSummary must be non-empty text, "
                f"got {self.compact_summary!r}"
            )
        has_summary = self.compact_summary is not None
        has_index = self.summary_up_to_index is not None
        if has_summary != has_index:
            raise InvariantViolation(
                f"Session {self.id}: compactSummary and summaryUpToIndex "
                "must be set together"
            )
        if has_index and not 0 <= self.summary_up_to_index < len(self.messages):
            raise InvariantViolation(
                f"Session {self.id}: summaryUpToIndex {self.summary_up_to_index} "
                f"is outside messages (length {len(self.messages)})"
            )

    def apply_compaction(self, result: "CompactionResult") -> None:
        """
        Store the outcome of a compaction pass.

        Only the summary fields change; the message log is left untouched.
        A result without a summary (nothing was folded) is ignored.

        Raises:
            InvariantViolation: If the result would move the index backwards
                or outside ``messages``.
        """
        if result.summary is None or result.summary_up_to_index is None:
            return

        new_index = result.summary_up_to_index
        if not 0 <= new_index < len(self.messages):
            raise InvariantViolation(
                f"Session {self.id}: compaction index {new_index} is outside "
                f"messages (length {len(self.messages)})"
            )
        if self.summary_up_to_index is not None and new_index < self.summary_up_to_index:
            raise InvariantViolation(
                f"Session {self.id}: compaction index moved backwards "
                f"({self.summary_up_to_index} -> {new_index})"
            )

        self.compact_summary = result.summary
        self.summary_up_to_index = new_index

    def update_summary(self, summary: str) -> None:
        """Replace the summary text after a manual edit, keeping its index."""
        if self.compact_summary is None:
            raise InvariantViolation(f"Session {self.id} has no summary to edit")
        if not summary.strip():
            raise InvariantViolation("Summary text cannot be empty")
        self.compact_summary = summary

    def clear(self) -> None:
        """Drop the whole conversation, including any summary."""
        self.messages = []
        self.compact_summary = None
        self.summary_up_to_index = None
        self.timestamp = now_ms()

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys of the persisted chat format."""
        data: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "timestamp": self.timestamp,
        }
        if self.compact_summary is not None:
            data["compactSummary"] = self.compact_summary
            data["summaryUpToIndex"] = self.summary_up_to_index
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatSession":
        """
        Restore a session from its persisted form.

        Raises:
            InvariantViolation: If the stored compaction state is corrupted.
        """
        raw_messages = data.get("messages") or []
        if not isinstance(raw_messages, list):
            raise InvariantViolation("Session messages must be a list")

        index = data.get("summaryUpToIndex")
        if index is not None and (isinstance(index, bool) or not isinstance(index, int)):
            raise InvariantViolation(f"summaryUpToIndex must be an integer, got {index!r}")

        timestamp = data.get("timestamp")
        session = cls(
            id=str(data.get("id") or f"chat_{now_ms()}"),
            title=data.get("title") or "New Chat",
            messages=[Message.from_dict(m) for m in raw_messages],
            timestamp=_epoch_ms(timestamp, "Session timestamp") if timestamp is not None else now_ms(),
            compact_summary=data.get("compactSummary"),
            summary_up_to_index=index,
        )
        session.validate()
        return session
