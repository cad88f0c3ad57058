"""Sentence-aware chunking with tail overlap and a hard size bound.

Sentences are packed greedily into blocks of at most ``target_tokens``.
Each new block is seeded with the tail of the previous one so the model
keeps context across the cut. Nothing is ever emitted above
``hard_max_tokens``: oversized sentences are split into character windows,
and text the segmenter cannot handle is windowed with a preference for
cutting at sentence ends.
"""

from __future__ import annotations

import logging

from summarize_it.summarizer._segment import RegexSentenceSegmenter, SentenceSegmenter
from summarize_it.summarizer._utils import chars_per_token, estimate_tokens, last_sentence_end
from summarize_it.summarizer.models import Chunk

logger = logging.getLogger(__name__)

# Fallback windows: look for a sentence end in the last 15% of the window,
# and overlap successive windows by 20%.
_CUT_SEARCH_FRACTION = 0.15
_WINDOW_OVERLAP_FRACTION = 0.2


def split_into_chunks(
    text: str,
    *,
    target_tokens: int,
    overlap_tokens: int,
    hard_max_tokens: int,
    segmenter: SentenceSegmenter | None = None,
) -> list[Chunk]:
    """Split text into sentence-aligned, overlapping, size-bounded chunks.

    Args:
        text: The text to chunk. Must not be blank.
        target_tokens: Preferred token count per chunk.
        overlap_tokens: Tokens of trailing context carried into the next chunk,
            capped at a third of the effective target.
        hard_max_tokens: No chunk is ever estimated above this.
        segmenter: Sentence segmenter, defaults to ``RegexSentenceSegmenter``.

    Returns:
        Chunks in document order with 0-based ordinals.

    """
    if not text.strip():
        msg = "Cannot chunk blank text"
        raise ValueError(msg)
    if hard_max_tokens < 1:
        msg = f"hard_max_tokens must be positive, got {hard_max_tokens}"
        raise ValueError(msg)

    segmenter = segmenter or RegexSentenceSegmenter()
    sentences = [s for s in segmenter.segment(text) if s.strip()]

    if not sentences:
        logger.info("Segmentation produced no sentences, using character windows")
        blocks = _window_split(text, hard_max_tokens)
    else:
        limit = max(1, min(target_tokens, hard_max_tokens))
        overlap = max(0, min(overlap_tokens, limit // 3))
        blocks = _pack_sentences(sentences, limit, overlap, hard_max_tokens)
        if len(blocks) == 1 and estimate_tokens(blocks[0]) > hard_max_tokens:
            blocks = _window_split(text, hard_max_tokens)

    return [Chunk(ordinal=i, text=block) for i, block in enumerate(blocks)]


def _measure(parts: list[str]) -> int:
    return estimate_tokens("".join(parts).strip())


def _pack_sentences(
    sentences: list[str],
    limit: int,
    overlap: int,
    hard_max_tokens: int,
) -> list[str]:
    blocks: list[str] = []
    current: list[str] = []
    seeded = 0  # leading sentences of ``current`` that repeat the previous block

    for sentence in sentences:
        if estimate_tokens(sentence.strip()) > hard_max_tokens:
            if len(current) > seeded:
                blocks.append("".join(current).strip())
            blocks.extend(_hard_windows(sentence, hard_max_tokens))
            # An oversized sentence is always larger than the overlap, so the
            # next block starts without a seed.
            current, seeded = [], 0
            continue

        if _measure([*current, sentence]) <= limit:
            current.append(sentence)
            continue

        if len(current) > seeded:
            blocks.append("".join(current).strip())
            current = _tail_overlap(current, overlap)
            seeded = len(current)
        # Make room for the sentence by dropping overlap from the front.
        while seeded and _measure([*current, sentence]) > limit:
            current.pop(0)
            seeded -= 1
        current.append(sentence)

    if len(current) > seeded:
        blocks.append("".join(current).strip())
    return blocks


def _tail_overlap(block: list[str], overlap: int) -> list[str]:
    """Trailing sentences of the flushed block whose combined estimate fits ``overlap``."""
    if overlap <= 0:
        return []
    seed: list[str] = []
    for sentence in reversed(block):
        candidate = [sentence, *seed]
        if _measure(candidate) > overlap:
            break
        seed = candidate
    return seed


def _hard_windows(text: str, max_tokens: int) -> list[str]:
    """Split ``text`` into consecutive character windows of at most ``max_tokens``."""
    size = max(1, int(max_tokens * chars_per_token(text)))
    while True:
        pieces = [text[i : i + size].strip() for i in range(0, len(text), size)]
        pieces = [p for p in pieces if p]
        if size == 1 or all(estimate_tokens(p) <= max_tokens for p in pieces):
            return pieces
        size = max(1, size * 9 // 10)


def _window_split(text: str, max_tokens: int) -> list[str]:
    """Overlapping character windows that prefer to end on a sentence boundary."""
    window = max(1, int(max_tokens * chars_per_token(text)))
    search = max(1, int(window * _CUT_SEARCH_FRACTION))
    step_back = int(window * _WINDOW_OVERLAP_FRACTION)

    pieces: list[str] = []
    start = 0
    while start < len(text):
        end = min(len(text), start + window)
        if end < len(text):
            cut = last_sentence_end(text, max(start + 1, end - search), end)
            if cut >= 0:
                end = cut + 1
        piece = text[start:end].strip()
        if piece and estimate_tokens(piece) > max_tokens:
            pieces.extend(_hard_windows(piece, max_tokens))
        elif piece:
            pieces.append(piece)
        if end >= len(text):
            break
        start = max(start + 1, end - step_back)
    return pieces
