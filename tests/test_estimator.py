"""Tests for token counting and estimation."""

from anchor.compaction.estimator import (
    TokenCounter,
    count_tokens,
    estimate_total_tokens,
    fallback_count,
)
from anchor.session.types import Message


class BrokenTokenizer:
    def __init__(self):
        self.calls = 0

    def encode(self, text: str) -> list[int]:
        self.calls += 1
        raise RuntimeError("tokenizer unavailable")


# ── TokenCounter ────────────────────────────────────────────────────


class TestTokenCounter:
    def test_empty_text(self, counter):
        assert counter.count("") == 0

    def test_uses_injected_tokenizer(self, counter):
        assert counter.count("hello") == 5

    def test_fallback_when_tokenizer_raises(self):
        tokenizer = BrokenTokenizer()
        counter = TokenCounter(tokenizer=tokenizer)
        assert counter.count("abcde") == 3
        assert counter.count("abcdef") == 3
        assert tokenizer.calls == 2

    def test_fallback_when_encoding_cannot_load(self):
        counter = TokenCounter(encoding_name="no-such-encoding")
        assert counter.count("abcd") == 2
        # Loading is not retried on every call
        assert counter.count("abcdefg") == 4

    def test_default_encoding_counts_text(self):
        counter = TokenCounter()
        tokens = counter.count("hello world")
        # Real tokenizer or the length-based fallback, never more than the fallback
        assert 0 < tokens <= fallback_count("hello world")

    def test_special_token_text_is_counted(self):
        counter = TokenCounter()
        assert counter.count("<|endoftext|>") > 0


class TestFallbackCount:
    def test_rounds_up(self):
        assert fallback_count("a") == 1
        assert fallback_count("abc") == 2

    def test_cjk_text(self):
        assert fallback_count("你好世界") == 2


# ── estimate_total_tokens ───────────────────────────────────────────


class TestEstimateTotalTokens:
    def test_empty(self):
        assert estimate_total_tokens([], None) == 0

    def test_single_message_default_counter(self):
        msgs = [Message(role="user", content="x")]
        assert estimate_total_tokens(msgs) == count_tokens("x") + 4

    def test_per_message_overhead(self, counter):
        msgs = [
            Message(role="user", content="abc"),
            Message(role="assistant", content="de"),
        ]
        assert estimate_total_tokens(msgs, counter=counter) == (3 + 4) + (2 + 4)

    def test_summary_overhead(self, counter):
        msgs = [Message(role="user", content="abc")]
        assert estimate_total_tokens(msgs, "summary", counter) == (7 + 20) + (3 + 4)

    def test_summary_only(self, counter):
        assert estimate_total_tokens([], "sum", counter) == 23

    def test_empty_summary_adds_nothing(self, counter):
        assert estimate_total_tokens([], "", counter) == 0
