"""
anchor - Conversation context compaction for OpenAI-compatible chat clients
"""

__version__ = "0.1.0"
__logo__ = "⚓"
