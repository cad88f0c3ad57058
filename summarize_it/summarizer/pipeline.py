"""Route a document through single-shot or map-reduce summarization.

Algorithm:
1. Empty input returns a fixed "No readable content." result (no LLM call)
2. If the whole document fits the context window, one call produces summary
   and sentiment together
3. Otherwise split into chunks and summarize them one by one (map phase)
4. If the stitched summaries are still long, reduce them once in groups
5. Detect sentiment from the original opening chunks and synthesize the
   final summary (reduce phase)

Chunks are processed sequentially: the first chunk is a canary, and a
safety-filter rejection there ends the run before any more budget is spent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from summarize_it.summarizer._fit import fits_unshrunk
from summarize_it.summarizer._prompts import SINGLE_SHOT_PROMPT, split_prompt
from summarize_it.summarizer._utils import estimate_tokens
from summarize_it.summarizer.chunk_summarizer import summarize_chunk
from summarize_it.summarizer.chunker import split_into_chunks
from summarize_it.summarizer.client import PydanticAIClient
from summarize_it.summarizer.models import (
    NO_CONTENT_SUMMARY,
    ChunkSummary,
    Document,
    GenerationError,
    GenerationErrorKind,
    OutputKind,
    SentimentLabel,
    SummarizerConfig,
    SummaryResult,
)
from summarize_it.summarizer.reducer import (
    detect_sentiment,
    generate_stage,
    needs_group_reduction,
    parse_sentiment,
    reduce_groups,
    stitch,
    synthesize,
)

if TYPE_CHECKING:
    from summarize_it.summarizer._segment import SentenceSegmenter
    from summarize_it.summarizer.client import GenerativeClient

logger = logging.getLogger(__name__)

__all__ = ["summarize"]


def fits_single_shot(text: str, language: str, config: SummarizerConfig) -> bool:
    """Whether ``text`` can be summarized in one call without cutting any of it.

    Besides the plain size check, the rendered single-shot prompt must leave
    the fitter room for a response, otherwise it would drop the document's
    tail and the map-reduce path is used instead.
    """
    budget = config.budget
    if (
        estimate_tokens(text) + budget.prompt_overhead_tokens + budget.final_response_budget
        > budget.max_context_tokens
    ):
        return False
    prefix, suffix = split_prompt(SINGLE_SHOT_PROMPT, language=language)
    return fits_unshrunk(prefix, text, suffix, budget)


async def summarize(
    document: Document,
    config: SummarizerConfig,
    *,
    client: GenerativeClient | None = None,
    segmenter: SentenceSegmenter | None = None,
) -> SummaryResult:
    """Summarize a document and classify its sentiment.

    Args:
        document: The text and the language to summarize it in.
        config: Summarizer configuration.
        client: Generative client, defaults to ``PydanticAIClient(config)``.
        segmenter: Sentence segmenter used for chunking.

    Returns:
        SummaryResult with a non-empty summary, sentiment and routing metadata.

    Raises:
        GenerationError: A classified failure that could not be recovered,
            e.g. ``SAFETY_FILTERED`` or a timeout of the final synthesis.

    """
    language = document.language_name
    text = document.text.strip()
    if not text:
        return SummaryResult(
            summary_text=NO_CONTENT_SUMMARY,
            sentiment=SentimentLabel.NOT_APPLICABLE,
            language=language,
            route="empty",
        )

    client = client or PydanticAIClient(config)
    input_tokens = estimate_tokens(text)

    if fits_single_shot(text, language, config):
        logger.info("Summarizing %d tokens in a single call (%s)", input_tokens, language)
        return await _single_shot(text, language, input_tokens, client, config)

    logger.info("Summarizing %d tokens with map-reduce (%s)", input_tokens, language)
    return await _map_reduce(text, language, input_tokens, client, config, segmenter)


async def _single_shot(
    text: str,
    language: str,
    input_tokens: int,
    client: GenerativeClient,
    config: SummarizerConfig,
) -> SummaryResult:
    response = await generate_stage(
        SINGLE_SHOT_PROMPT,
        text,
        fields={"language": language},
        output=OutputKind.SUMMARY_AND_SENTIMENT,
        response_tokens=config.budget.final_response_budget,
        client=client,
        config=config,
    )
    return SummaryResult(
        summary_text=response.text,
        sentiment=parse_sentiment(response.sentiment),
        language=language,
        route="single_shot",
        input_tokens=input_tokens,
    )


async def _map_reduce(
    text: str,
    language: str,
    input_tokens: int,
    client: GenerativeClient,
    config: SummarizerConfig,
    segmenter: SentenceSegmenter | None,
) -> SummaryResult:
    chunks = split_into_chunks(
        text,
        target_tokens=config.target_chunk_tokens,
        overlap_tokens=config.chunk_overlap,
        hard_max_tokens=config.budget.chunk_hard_max_tokens,
        segmenter=segmenter,
    )
    logger.info("Map phase: processing %d chunks", len(chunks))

    summaries: list[ChunkSummary] = []
    for chunk in chunks:
        try:
            summary = await summarize_chunk(
                chunk,
                language=language,
                total=len(chunks),
                client=client,
                config=config,
            )
        except GenerationError as e:
            if chunk.ordinal == 0 and e.kind is GenerationErrorKind.SAFETY_FILTERED:
                logger.warning("First chunk was safety filtered, aborting the whole document")
            raise
        summaries.append(summary)

    stitched = stitch(summaries)
    group_reduced = needs_group_reduction(stitched, config.target_chunk_tokens)
    if group_reduced:
        groups = await reduce_groups(summaries, language=language, client=client, config=config)
        stitched = stitch(groups)

    sentiment = await detect_sentiment(chunks, client=client, config=config)
    final = await synthesize(stitched, language=language, client=client, config=config)

    return SummaryResult(
        summary_text=final,
        sentiment=sentiment,
        language=language,
        route="map_reduce",
        input_tokens=input_tokens,
        chunk_count=len(chunks),
        degraded_chunks=sum(1 for s in summaries if s.degraded),
        group_reduced=group_reduced,
    )
