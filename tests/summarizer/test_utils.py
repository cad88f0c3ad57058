"""Unit tests for token estimation and shrinking helpers."""

from __future__ import annotations

from summarize_it.summarizer._utils import (
    chars_per_token,
    estimate_tokens,
    shrink_text,
    truncate_to_tokens,
)


class TestEstimateTokens:
    """Tests for estimate_tokens function."""

    def test_empty_string_is_one_token(self) -> None:
        """Test that the estimate never drops below one."""
        assert estimate_tokens("") == 1

    def test_latin_text_uses_four_chars_per_token(self) -> None:
        """Test Latin text at ~4 characters per token."""
        assert estimate_tokens("a" * 400) == 100
        assert estimate_tokens("a" * 401) == 101  # rounds up

    def test_cjk_text_is_denser(self) -> None:
        """Test that mostly-CJK text uses 1.8 characters per token."""
        text = "漢" * 181
        assert chars_per_token(text) == 1.8
        assert estimate_tokens(text) == 101  # ceil(181 / 1.8)

    def test_mixed_text_uses_middle_ratio(self) -> None:
        """Test that a 20% CJK share uses 2.5 characters per token."""
        text = "日本" + "abcdefgh"  # 2 of 10 characters are CJK
        assert chars_per_token(text) == 2.5
        assert estimate_tokens(text) == 4

    def test_threshold_is_exclusive(self) -> None:
        """Test that exactly 10% CJK still counts as Latin."""
        text = "日" + "a" * 9
        assert chars_per_token(text) == 4.0

    def test_hangul_and_kana_count_as_cjk(self) -> None:
        """Test Korean and Japanese kana are recognized."""
        assert chars_per_token("한국어입니다") == 1.8
        assert chars_per_token("ひらがなカタカナ") == 1.8


class TestTruncateToTokens:
    """Tests for truncate_to_tokens function."""

    def test_short_text_unchanged(self) -> None:
        """Test text within the limit is returned unchanged."""
        assert truncate_to_tokens("Hello world.", 10) == "Hello world."

    def test_long_text_is_prefix_within_limit(self) -> None:
        """Test that truncation keeps a prefix within the budget."""
        text = "word " * 1000
        result = truncate_to_tokens(text, 200)
        assert text.startswith(result)
        assert estimate_tokens(result) <= 200
        assert len(result) == 800


class TestShrinkText:
    """Tests for shrink_text function."""

    def test_cuts_at_sentence_end(self) -> None:
        """Test that shrinking prefers a sentence boundary."""
        text = "This is one sentence. " * 50
        result = shrink_text(text, 0.5)
        assert result.endswith(".")
        assert text.startswith(result)
        assert len(result) <= len(text) // 2 + 4

    def test_hard_cut_without_sentence_end(self) -> None:
        """Test the character cut when no sentence end is available."""
        text = "a" * 1000
        result = shrink_text(text, 0.7)
        assert result == "a" * len(result)
        assert 690 <= len(result) <= 700

    def test_always_makes_progress(self) -> None:
        """Test that even tiny ratios shorten the text."""
        assert len(shrink_text("abcd", 0.99)) < 4
        assert shrink_text("a", 0.5) == "a"

    def test_ignores_early_sentence_end(self) -> None:
        """Test that a sentence end in the first half of the budget is not used."""
        text = "Hi. " + "b" * 996
        result = shrink_text(text, 0.5)
        assert len(result) == 500
