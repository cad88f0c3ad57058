"""Unit tests for sentence-aware chunking."""

from __future__ import annotations

import pytest

from summarize_it.summarizer._segment import RegexSentenceSegmenter
from summarize_it.summarizer._utils import estimate_tokens
from summarize_it.summarizer.chunker import split_into_chunks


class _NoSentences:
    """Segmenter that never finds a boundary."""

    def segment(self, text: str) -> list[str]:  # noqa: ARG002
        return []


def _numbered_sentences(count: int) -> list[str]:
    return [f"Sentence number {i} talks about topic {i}." for i in range(count)]


def _sentences_of(text: str) -> list[str]:
    return [s.strip() for s in RegexSentenceSegmenter().segment(text)]


class TestSplitIntoChunks:
    """Tests for split_into_chunks function."""

    def test_short_document_is_single_chunk(self) -> None:
        """Test that a document under the target yields one chunk."""
        text = "One short sentence. Another short sentence. A third."
        chunks = split_into_chunks(text, target_tokens=1000, overlap_tokens=200, hard_max_tokens=2000)
        assert len(chunks) == 1
        assert chunks[0].text == text
        assert chunks[0].ordinal == 0

    def test_chunks_respect_target_and_hard_max(self) -> None:
        """Test that no chunk is estimated above the limits."""
        text = " ".join(_numbered_sentences(200))
        chunks = split_into_chunks(text, target_tokens=200, overlap_tokens=60, hard_max_tokens=300)
        assert len(chunks) > 1
        assert [c.ordinal for c in chunks] == list(range(len(chunks)))
        for chunk in chunks:
            assert estimate_tokens(chunk.text) <= 200

    def test_chunks_reconstruct_sentence_order(self) -> None:
        """Test that dropping repeated overlap restores the original sentences."""
        sentences = _numbered_sentences(200)
        chunks = split_into_chunks(
            " ".join(sentences),
            target_tokens=200,
            overlap_tokens=60,
            hard_max_tokens=300,
        )
        seen = [s for chunk in chunks for s in _sentences_of(chunk.text)]
        assert list(dict.fromkeys(seen)) == sentences

    def test_overlap_is_bounded_by_a_third_of_target(self) -> None:
        """Test that consecutive chunks share at most target/3 tokens."""
        chunks = split_into_chunks(
            " ".join(_numbered_sentences(200)),
            target_tokens=200,
            overlap_tokens=500,  # capped at 200 // 3
            hard_max_tokens=300,
        )
        for previous, current in zip(chunks, chunks[1:], strict=False):
            before = _sentences_of(previous.text)
            shared = [s for s in _sentences_of(current.text) if s in before]
            assert shared == before[len(before) - len(shared) :]
            if shared:
                assert estimate_tokens(" ".join(shared)) <= 200 // 3

    def test_overlap_seeds_next_chunk(self) -> None:
        """Test that the next chunk starts with the tail of the previous one."""
        chunks = split_into_chunks(
            " ".join(_numbered_sentences(100)),
            target_tokens=200,
            overlap_tokens=30,
            hard_max_tokens=300,
        )
        first, second = _sentences_of(chunks[0].text), _sentences_of(chunks[1].text)
        assert second[0] in first

    def test_zero_overlap(self) -> None:
        """Test that chunks are disjoint without overlap."""
        chunks = split_into_chunks(
            " ".join(_numbered_sentences(100)),
            target_tokens=200,
            overlap_tokens=0,
            hard_max_tokens=300,
        )
        seen = [s for chunk in chunks for s in _sentences_of(chunk.text)]
        assert seen == _numbered_sentences(100)

    def test_deterministic(self) -> None:
        """Test that identical input yields identical chunks."""
        text = " ".join(_numbered_sentences(150))
        kwargs = {"target_tokens": 150, "overlap_tokens": 40, "hard_max_tokens": 250}
        assert split_into_chunks(text, **kwargs) == split_into_chunks(text, **kwargs)

    def test_oversized_sentence_is_hard_split(self) -> None:
        """Test that a sentence above hard max becomes several windows."""
        long_sentence = ("lorem " * 1000).strip() + "."
        text = f"This is the intro. {long_sentence} This is the end."
        chunks = split_into_chunks(text, target_tokens=250, overlap_tokens=50, hard_max_tokens=300)
        assert chunks[0].text == "This is the intro."
        assert chunks[-1].text == "This is the end."
        assert len(chunks) >= 5
        for chunk in chunks:
            assert estimate_tokens(chunk.text) <= 300

    def test_no_sentences_falls_back_to_windows(self) -> None:
        """Test character windows with overlap when segmentation finds nothing."""
        text = "Alpha beta gamma. " * 300
        chunks = split_into_chunks(
            text,
            target_tokens=150,
            overlap_tokens=30,
            hard_max_tokens=200,
            segmenter=_NoSentences(),
        )
        assert len(chunks) > 1
        assert chunks[0].text.startswith("Alpha")
        for chunk in chunks:
            assert estimate_tokens(chunk.text) <= 200
        # windows prefer to end on a sentence boundary
        assert chunks[0].text.endswith(".")
        # and overlap the previous window
        assert chunks[1].text[:20] in chunks[0].text

    def test_cjk_text_uses_denser_estimate(self) -> None:
        """Test that CJK chunks are bounded by the CJK-aware estimate."""
        text = "今日は晴れで、公園を散歩しました。" * 200
        chunks = split_into_chunks(text, target_tokens=200, overlap_tokens=50, hard_max_tokens=300)
        assert len(chunks) > 1
        for chunk in chunks:
            assert estimate_tokens(chunk.text) <= 200

    def test_blank_text_rejected(self) -> None:
        """Test that blank text is refused."""
        with pytest.raises(ValueError, match="blank"):
            split_into_chunks("   ", target_tokens=100, overlap_tokens=10, hard_max_tokens=200)
