"""Reduce phase: stitch, group-reduce, sentiment and final synthesis."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from summarize_it.summarizer._fit import fit_prompt
from summarize_it.summarizer._prompts import (
    FINAL_SUMMARY_PROMPT,
    GROUP_SUMMARY_PROMPT,
    SENTIMENT_PROMPT,
    split_prompt,
)
from summarize_it.summarizer._utils import estimate_tokens
from summarize_it.summarizer.chunk_summarizer import summarize_adaptively
from summarize_it.summarizer.client import generate
from summarize_it.summarizer.models import (
    ChunkSummary,
    GenerationError,
    GenerationErrorKind,
    GenerationRequest,
    GenerationResponse,
    OutputKind,
    SentimentLabel,
)

if TYPE_CHECKING:
    from summarize_it.summarizer.client import GenerativeClient
    from summarize_it.summarizer.models import Chunk, SummarizerConfig

logger = logging.getLogger(__name__)

SENTIMENT_SOURCE_CHUNKS = 2
SENTIMENT_RESPONSE_TOKENS = 16

# A negator followed by at most three words and then a label, or a "non-" prefix.
_NEGATED_LABEL_RE = re.compile(
    r"\b(?:not|no|isn't|never|hardly|neither|nor)\b(?:\s+[\w']+){0,3}?\s+(?:positive|negative)\b"
    r"|\bnon-?(?:positive|negative)\b",
)


def stitch(summaries: list[ChunkSummary]) -> str:
    """Join summaries in ordinal order, separated by blank lines."""
    ordered = sorted(summaries, key=lambda s: s.ordinal)
    return "\n\n".join(s.text.strip() for s in ordered)


def needs_group_reduction(stitched: str, target_chunk_tokens: int) -> bool:
    """Whether ``stitched`` is too long to go straight to final synthesis."""
    return estimate_tokens(stitched) > 2 * target_chunk_tokens


async def reduce_groups(
    summaries: list[ChunkSummary],
    *,
    language: str,
    client: GenerativeClient,
    config: SummarizerConfig,
) -> list[ChunkSummary]:
    """Summarize consecutive groups of chunk summaries, one pass only.

    Each group goes through the same adaptive retry path as a chunk, with
    the stage deadline.
    """
    ordered = sorted(summaries, key=lambda s: s.ordinal)
    total = len(ordered)
    groups = [ordered[i : i + config.group_size] for i in range(0, total, config.group_size)]
    logger.info("Group reduction: %d summaries in %d groups", total, len(groups))

    reduced: list[ChunkSummary] = []
    for index, group in enumerate(groups):
        reduced.append(
            await summarize_adaptively(
                stitch(group),
                ordinal=index,
                template=GROUP_SUMMARY_PROMPT,
                fields={
                    "first": group[0].ordinal + 1,
                    "last": group[-1].ordinal + 1,
                    "total": total,
                    "language": language,
                },
                client=client,
                budget=config.budget,
                response_tokens=config.budget.chunk_response_budget,
                timeout=config.stage_timeout,
            ),
        )
    return reduced


def parse_sentiment(raw: str | None) -> SentimentLabel:
    """Parse a free-form sentiment answer, ignoring negated labels.

    Anything that does not name exactly one of positive or negative is
    ``Neutral``.
    """
    if not raw:
        return SentimentLabel.NEUTRAL
    answer = _NEGATED_LABEL_RE.sub(" ", raw.lower())
    positive = "positive" in answer
    negative = "negative" in answer
    if positive and not negative:
        return SentimentLabel.POSITIVE
    if negative and not positive:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


async def generate_stage(
    template: str,
    text: str,
    *,
    fields: dict[str, object],
    output: OutputKind,
    response_tokens: int,
    client: GenerativeClient,
    config: SummarizerConfig,
) -> GenerationResponse:
    """One stage-level call: fitted, deadline-bound and without a smaller fallback.

    ``UNKNOWN`` failures are retried once with the same input; every other
    failure is terminal.

    Raises:
        GenerationError: The classified failure, including
            ``CONTEXT_WINDOW_EXCEEDED`` when the input cannot be fitted.

    """
    prefix, suffix = split_prompt(template, **fields)
    fit = fit_prompt(prefix, text, suffix, response_tokens, config.budget)
    if fit.overflow:
        msg = "Input does not fit the context window even after shrinking"
        raise GenerationError(GenerationErrorKind.CONTEXT_WINDOW_EXCEEDED, msg)
    request = GenerationRequest(
        prompt=prefix + fit.text + suffix,
        max_response_tokens=fit.response_tokens,
        output=output,
    )
    try:
        return await generate(client, request, timeout=config.stage_timeout)
    except GenerationError as e:
        if e.kind is not GenerationErrorKind.UNKNOWN:
            raise
        logger.warning("Stage call failed (%s), retrying once: %s", e.code, e)
    return await generate(client, request, timeout=config.stage_timeout)


def _drop_repeated_lead(previous: str, current: str) -> str:
    """Strip the start of ``current`` that repeats the end of ``previous``.

    Only whole-word overlaps count, which is how the chunker seeds a chunk
    with the tail of the one before it.
    """
    for size in range(min(len(previous), len(current)), 0, -1):
        lead = current[:size]
        if (
            previous.endswith(lead)
            and (size == len(previous) or previous[-size - 1].isspace())
            and (size == len(current) or current[size].isspace())
        ):
            return current[size:].lstrip()
    return current


async def detect_sentiment(
    chunks: list[Chunk],
    *,
    client: GenerativeClient,
    config: SummarizerConfig,
) -> SentimentLabel:
    """Classify sentiment from the original text of the first one or two chunks.

    The overlap that opens the second chunk is sent only once.
    """
    parts = [c.text for c in chunks[:SENTIMENT_SOURCE_CHUNKS]]
    for i in range(1, len(parts)):
        parts[i] = _drop_repeated_lead(parts[i - 1], parts[i])
    source = "\n\n".join(p for p in parts if p)
    response = await generate_stage(
        SENTIMENT_PROMPT,
        source,
        fields={},
        output=OutputKind.LABEL,
        response_tokens=SENTIMENT_RESPONSE_TOKENS,
        client=client,
        config=config,
    )
    label = parse_sentiment(response.text)
    logger.debug("Sentiment answer %r parsed as %s", response.text, label.value)
    return label


async def synthesize(
    stitched: str,
    *,
    language: str,
    client: GenerativeClient,
    config: SummarizerConfig,
) -> str:
    """Turn the stitched summaries into one cohesive final summary."""
    response = await generate_stage(
        FINAL_SUMMARY_PROMPT,
        stitched,
        fields={"language": language},
        output=OutputKind.SUMMARY,
        response_tokens=config.budget.final_response_budget,
        client=client,
        config=config,
    )
    return response.text
