"""Shrink prompt input until prompt and response fit the context window."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from summarize_it.summarizer._utils import estimate_tokens, shrink_text
from summarize_it.summarizer.models import TokenBudget

logger = logging.getLogger(__name__)

MIN_RESPONSE_TOKENS = 64
MIN_SHRINK_CHARS = 800
SHRINK_RATIO = 0.8


@dataclass(frozen=True)
class PromptFit:
    """Variable text and response budget that fit next to a prompt.

    ``overflow`` is set when shrinking stopped at the character floor before
    the prompt fit; such a prompt must not be sent.
    """

    text: str
    response_tokens: int
    overflow: bool = False


def _allowed_response(prefix: str, text: str, suffix: str, budget: TokenBudget) -> int:
    prompt_tokens = estimate_tokens(prefix + text + suffix) + budget.prompt_overhead_tokens
    return max(0, budget.max_context_tokens - prompt_tokens - budget.safety_margin)


def fits_unshrunk(prefix: str, text: str, suffix: str, budget: TokenBudget) -> bool:
    """Whether ``fit_prompt`` would send all of ``text`` without overflowing."""
    return _allowed_response(prefix, text, suffix, budget) >= MIN_RESPONSE_TOKENS


def fit_prompt(
    prefix: str,
    text: str,
    suffix: str,
    preferred_response_tokens: int,
    budget: TokenBudget,
) -> PromptFit:
    """Shrink ``text`` until ``prefix + text + suffix`` leaves room for a response.

    Args:
        prefix: Fixed prompt text before the variable part.
        text: The variable text, shrunk to ~80% per round if needed.
        suffix: Fixed prompt text after the variable part.
        preferred_response_tokens: Response budget to use when it fits.
        budget: Context-window accounting.

    Returns:
        The fitted text and a response budget of at least 64 tokens.

    """
    allowed = _allowed_response(prefix, text, suffix, budget)
    while allowed < MIN_RESPONSE_TOKENS and len(text) > MIN_SHRINK_CHARS:
        shrunk = shrink_text(text, SHRINK_RATIO)
        logger.debug("Shrinking prompt input from %d to %d chars", len(text), len(shrunk))
        text = shrunk
        allowed = _allowed_response(prefix, text, suffix, budget)

    response_tokens = max(MIN_RESPONSE_TOKENS, min(preferred_response_tokens, allowed))
    overflow = (
        estimate_tokens(prefix + text + suffix)
        + budget.prompt_overhead_tokens
        + response_tokens
        + budget.safety_margin
        > budget.max_context_tokens
    )
    if overflow:
        logger.warning(
            "Prompt still exceeds the context window after shrinking to %d chars",
            len(text),
        )
    return PromptFit(text=text, response_tokens=response_tokens, overflow=overflow)
