"""Chat turn orchestration."""

from anchor.chat.turn import ChatTurnController

__all__ = ["ChatTurnController"]
