"""Tests for summary prompt construction."""

from anchor.compaction.prompt import (
    SUMMARIZE_SYSTEM_PROMPT,
    build_summary_prompt,
    format_messages,
)
from anchor.session.types import Message


MSGS = [
    Message(role="user", content="How do I reverse a list?"),
    Message(role="assistant", content="Use reversed() or slicing."),
]


class TestFormatMessages:
    def test_numbered_lines(self):
        assert format_messages(MSGS) == (
            "**user** (msg 1): How do I reverse a list?\n\n"
            "**assistant** (msg 2): Use reversed() or slicing."
        )

    def test_empty(self):
        assert format_messages([]) == ""


class TestBuildSummaryPrompt:
    def test_first_compaction(self):
        prompt = build_summary_prompt(None, MSGS)
        assert len(prompt) == 2
        assert prompt[0].role == "system"
        assert prompt[0].content == SUMMARIZE_SYSTEM_PROMPT
        assert prompt[1].role == "user"
        assert prompt[1].content == format_messages(MSGS)

    def test_instructions(self):
        system = build_summary_prompt(None, MSGS)[0].content
        assert "markdown" in system
        assert "ONE cohesive summary" in system
        assert "Output ONLY the summary" in system

    def test_merges_previous_summary(self):
        prompt = build_summary_prompt("- user likes Python", MSGS)
        content = prompt[1].content
        assert prompt[1].role == "user"
        assert content.startswith("Previous summary:\n\n- user likes Python")
        assert "\n\n---\n\n" in content
        assert "**user** (msg 1): How do I reverse a list?" in content
        assert content.endswith("Create a new integrated summary.")
        # Previous summary comes before the new messages
        assert content.index("user likes Python") < content.index("(msg 1)")

    def test_deterministic(self):
        assert build_summary_prompt("prev", MSGS) == build_summary_prompt("prev", MSGS)

    def test_message_numbering_is_relative_to_slice(self):
        later = [Message(role="user", content=f"q{i}") for i in range(7, 10)]
        content = build_summary_prompt(None, later)[1].content
        assert "(msg 1): q7" in content
        assert "(msg 3): q9" in content
        assert "(msg 8)" not in content
