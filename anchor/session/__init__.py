"""Chat session data model."""

from anchor.session.types import ChatSession, Message, Role, SessionState, now_ms

__all__ = ["ChatSession", "Message", "Role", "SessionState", "now_ms"]
