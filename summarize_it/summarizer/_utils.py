"""Token estimation and text-shrinking helpers."""

from __future__ import annotations

import math
import re

# Scripts that pack more meaning per character than Latin text: Hangul Jamo,
# CJK punctuation, kana, CJK ideographs (with extensions A and B and the
# compatibility block), Hangul syllables and full-width forms.
_CJK_RE = re.compile(
    "[\u1100-\u11ff\u3000-\u303f\u3040-\u309f\u30a0-\u30ff\u3130-\u318f"
    "\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af\uf900-\ufaff\uff00-\uffef"
    "\U00020000-\U0002a6df]",
)

SENTENCE_ENDINGS = ".!?。！？"


def chars_per_token(text: str) -> float:
    """Approximate characters per token for the script mixture of ``text``."""
    if not text:
        return 4.0
    ratio = len(_CJK_RE.findall(text)) / len(text)
    if ratio > 0.3:  # noqa: PLR2004
        return 1.8
    if ratio > 0.1:  # noqa: PLR2004
        return 2.5
    return 4.0


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text`` from its length and script mixture."""
    return max(1, math.ceil(len(text) / chars_per_token(text)))


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Return the longest prefix of ``text`` estimated at ``max_tokens`` or fewer."""
    if estimate_tokens(text) <= max_tokens:
        return text
    size = min(len(text), max(1, int(max_tokens * chars_per_token(text))))
    prefix = text[:size]
    while size > 1 and estimate_tokens(prefix) > max_tokens:
        size = max(1, size * 9 // 10)
        prefix = text[:size]
    return prefix


def last_sentence_end(text: str, start: int, end: int) -> int:
    """Index of the last sentence-ending mark in ``text[start:end]``, or -1."""
    return max(text.rfind(mark, start, end) for mark in SENTENCE_ENDINGS)


def shrink_text(text: str, ratio: float) -> str:
    """Cut ``text`` to about ``ratio`` of its estimated token size.

    Prefers to cut right after the last sentence-ending mark inside the new
    budget, as long as that keeps at least half of it; otherwise cuts hard
    at the character budget. The result is always shorter than ``text``
    when ``text`` has more than one character.
    """
    if len(text) <= 1:
        return text
    target_tokens = max(1, int(estimate_tokens(text) * ratio))
    limit = min(len(text) - 1, max(1, int(target_tokens * chars_per_token(text))))
    cut = last_sentence_end(text, limit // 2, limit)
    if cut >= 0:
        return text[: cut + 1]
    return text[:limit]
