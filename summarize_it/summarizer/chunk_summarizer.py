"""Adaptive per-chunk summarization with retry, shrink and degrade."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from summarize_it.summarizer._fit import fit_prompt
from summarize_it.summarizer._prompts import CHUNK_SUMMARY_PROMPT, split_prompt
from summarize_it.summarizer._utils import shrink_text, truncate_to_tokens
from summarize_it.summarizer.client import generate
from summarize_it.summarizer.models import (
    ChunkSummary,
    GenerationError,
    GenerationErrorKind,
    GenerationRequest,
    OutputKind,
)

if TYPE_CHECKING:
    from summarize_it.summarizer.client import GenerativeClient
    from summarize_it.summarizer.models import Chunk, SummarizerConfig, TokenBudget

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 4
PLACEHOLDER_TOKENS = 200

# Content errors; a smaller input gets the same answer.
_NOT_RETRIED = frozenset(
    {GenerationErrorKind.SAFETY_FILTERED, GenerationErrorKind.UNSUPPORTED_LANGUAGE},
)
_SHRINK_RATIOS = {
    GenerationErrorKind.CONTEXT_WINDOW_EXCEEDED: 0.5,
    GenerationErrorKind.TIMEOUT: 0.7,
    GenerationErrorKind.UNKNOWN: 0.7,
}


async def summarize_adaptively(
    text: str,
    *,
    ordinal: int,
    template: str,
    fields: dict[str, object],
    client: GenerativeClient,
    budget: TokenBudget,
    response_tokens: int,
    timeout: float,
) -> ChunkSummary:
    """Summarize ``text``, shrinking it on size and timeout failures.

    Makes up to ``MAX_ATTEMPTS`` attempts. Context-window failures halve the
    text; timeouts and unknown failures cut it to 70%. When every attempt
    fails, the first ~200 tokens of the current text are returned verbatim
    as a degraded summary.

    Raises:
        GenerationError: ``SAFETY_FILTERED`` or ``UNSUPPORTED_LANGUAGE``,
            which are never retried.

    """
    prefix, suffix = split_prompt(template, **fields)
    for attempt in range(1, MAX_ATTEMPTS + 1):
        fit = fit_prompt(prefix, text, suffix, response_tokens, budget)
        text = fit.text
        try:
            if fit.overflow:
                msg = "Prompt does not fit the context window"
                raise GenerationError(GenerationErrorKind.CONTEXT_WINDOW_EXCEEDED, msg)
            response = await generate(
                client,
                GenerationRequest(
                    prompt=prefix + text + suffix,
                    max_response_tokens=fit.response_tokens,
                    output=OutputKind.SUMMARY,
                ),
                timeout=timeout,
            )
        except GenerationError as e:
            if e.kind in _NOT_RETRIED:
                raise
            ratio = _SHRINK_RATIOS[e.kind]
            logger.warning(
                "Section %d attempt %d/%d failed (%s), shrinking input to %d%%",
                ordinal + 1,
                attempt,
                MAX_ATTEMPTS,
                e.code,
                int(ratio * 100),
            )
            text = shrink_text(text, ratio)
            continue
        return ChunkSummary(ordinal=ordinal, text=response.text)

    logger.warning(
        "Section %d failed %d attempts, using a truncated excerpt",
        ordinal + 1,
        MAX_ATTEMPTS,
    )
    return ChunkSummary(
        ordinal=ordinal,
        text=truncate_to_tokens(text, PLACEHOLDER_TOKENS).strip(),
        degraded=True,
    )


async def summarize_chunk(
    chunk: Chunk,
    *,
    language: str,
    total: int,
    client: GenerativeClient,
    config: SummarizerConfig,
) -> ChunkSummary:
    """Summarize one chunk of a document in ``language``."""
    return await summarize_adaptively(
        chunk.text,
        ordinal=chunk.ordinal,
        template=CHUNK_SUMMARY_PROMPT,
        fields={"ordinal": chunk.ordinal + 1, "total": total, "language": language},
        client=client,
        budget=config.budget,
        response_tokens=config.budget.chunk_response_budget,
        timeout=config.chunk_timeout,
    )
