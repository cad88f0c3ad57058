"""Sentence segmentation used by the chunker."""

from __future__ import annotations

import re
from typing import Protocol

# A boundary sits after terminal punctuation (and any closing quotes or
# brackets) followed by whitespace, right after a CJK terminator, or at a
# blank line.
_BOUNDARY_RE = re.compile(
    r"(?<=[.!?])[\"'”’)\]]*\s+"
    r"|(?<=[。！？])[」』”’）]*\s*"
    r"|\n[ \t]*\n\s*",
)


class SentenceSegmenter(Protocol):
    """Splits text into ordered sentence spans."""

    def segment(self, text: str) -> list[str]:
        """Return the sentences of ``text`` in order; may be empty."""
        ...


class RegexSentenceSegmenter:
    """Punctuation-based segmenter.

    Spans keep their trailing whitespace, so joining them reproduces the input
    minus any leading blank lines.
    """

    def segment(self, text: str) -> list[str]:
        spans: list[str] = []
        start = 0
        for match in _BOUNDARY_RE.finditer(text):
            end = match.end()
            if end > start:
                spans.append(text[start:end])
                start = end
        if start < len(text):
            spans.append(text[start:])
        return [span for span in spans if span.strip()]
