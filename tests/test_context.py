"""Tests for outbound context assembly."""

from anchor.compaction.context import build_context_for_api
from anchor.session.types import Message


class TestBuildContextForAPI:
    def test_no_summary_returns_full_history(self, make_session):
        session = make_session(8)
        assert build_context_for_api(session) == session.messages

    def test_summary_then_recent_window(self, make_session):
        session = make_session(12)
        session.compact_summary = "## Summary\n- details"
        session.summary_up_to_index = 6

        context = build_context_for_api(session)

        assert len(context) == 6
        assert context[0] == Message(
            role="system",
            content="Previous conversation summary:\n\n## Summary\n- details",
        )
        assert context[1:] == session.messages[7:]

    def test_idempotent(self, make_session):
        session = make_session(12)
        session.compact_summary = "summary"
        session.summary_up_to_index = 6
        assert build_context_for_api(session) == build_context_for_api(session)

    def test_does_not_modify_session(self, make_session):
        session = make_session(12)
        session.compact_summary = "summary"
        session.summary_up_to_index = 6
        before = list(session.messages)

        context = build_context_for_api(session)
        context.append(Message(role="user", content="extra"))

        assert session.messages == before

    def test_summary_covering_all_but_last(self, make_session):
        session = make_session(3)
        session.compact_summary = "summary"
        session.summary_up_to_index = 1
        context = build_context_for_api(session)
        assert [m.role for m in context] == ["system", "user"]
        assert context[1] == session.messages[2]
