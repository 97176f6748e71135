"""Tests for the compaction trigger."""

from anchor.compaction.trigger import should_compact, tail_tokens
from anchor.compaction.types import CompactionConfig


class TestShouldCompact:
    def test_short_conversation_never_compacts(self, make_session, counter):
        session = make_session(5, size=100_000)
        assert tail_tokens(session, counter) > 64_000
        assert should_compact(session, counter=counter) is False

    def test_any_short_conversation_is_exempt(self, make_session, counter):
        for count in range(10):
            session = make_session(count, size=50_000)
            assert should_compact(session, counter=counter) is False

    def test_over_threshold(self, make_session, counter):
        session = make_session(12, size=6_000)
        assert should_compact(session, counter=counter) is True

    def test_under_threshold(self, make_session, counter):
        session = make_session(12, size=1_000)
        assert should_compact(session, counter=counter) is False

    def test_threshold_is_exclusive(self, make_session, counter):
        session = make_session(10, size=96)
        # 10 messages * (96 + 4) = 1000 tokens
        assert tail_tokens(session, counter) == 1_000
        assert should_compact(session, CompactionConfig(compact_threshold=1_000), counter) is False
        assert should_compact(session, CompactionConfig(compact_threshold=999), counter) is True

    def test_counts_only_uncompacted_tail(self, make_session, counter):
        session = make_session(20, size=6_000)
        session.compact_summary = "short summary"
        session.summary_up_to_index = 14
        # Summary (13 + 20) + 5 messages * 6004
        assert tail_tokens(session, counter) == 33 + 5 * 6_004
        assert should_compact(session, counter=counter) is False

    def test_summary_counts_toward_threshold(self, make_session, counter):
        session = make_session(12, size=10)
        session.compact_summary = "s" * 70_000
        session.summary_up_to_index = 6
        assert should_compact(session, counter=counter) is True

    def test_custom_minimum(self, make_session, counter):
        session = make_session(4, size=10)
        policy = CompactionConfig(compact_threshold=10, min_messages_to_compact=3)
        assert should_compact(session, policy, counter) is True
