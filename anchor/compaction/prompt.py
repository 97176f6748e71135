"""Prompt construction for the summarizer."""

from anchor.session.types import Message


SUMMARIZE_SYSTEM_PROMPT = """You are a conversation summarizer. Create a concise but comprehensive summary of the conversation below.

IMPORTANT:
- Remember what the user has said and the related assistant responses, and summarize them in a way that preserves the key technical details, decisions, and context
- Use markdown formatting
- Be concise but don't lose critical information
- If there's a previous summary, integrate it with the new messages into ONE cohesive summary
- Output ONLY the summary, no meta-commentary"""

MERGE_USER_PROMPT = """Previous summary:

{previous_summary}

---

New messages to add:

{conversation}

Create a new integrated summary."""


def format_messages(messages: list[Message]) -> str:
    """Render messages as numbered markdown lines, 1-based within the slice."""
    return "\n\n".join(
        f"**{msg.role}** (msg {i}): {msg.content}"
        for i, msg in enumerate(messages, 1)
    )


def build_summary_prompt(
    previous_summary: str | None,
    messages: list[Message],
) -> list[Message]:
    """
    Build the request sent to the summarizer.

    Args:
        previous_summary: Summary from an earlier pass, merged into the new one.
        messages: Messages being folded into the summary, in order.

    Returns:
        A system instruction message followed by one user message.
    """
    conversation = format_messages(messages)

    if previous_summary:
        content = MERGE_USER_PROMPT.format(
            previous_summary=previous_summary,
            conversation=conversation,
        )
    else:
        content = conversation

    return [
        Message(role="system", content=SUMMARIZE_SYSTEM_PROMPT),
        Message(role="user", content=content),
    ]
