"""Hierarchical summarization for documents longer than the model's context window.

This module reduces a document to a short summary plus a sentiment label:
1. If the document fits the context window, one call returns both
2. Otherwise split into sentence-aligned chunks and summarize each (map phase)
3. Reduce the chunk summaries once in groups when they are still too long
4. Detect sentiment from the original opening and synthesize the final summary

Example:
    from summarize_it.summarizer import Document, SummarizerConfig, summarize

    config = SummarizerConfig(
        openai_base_url="http://localhost:11434/v1",
        model="llama3.1:8b",
    )
    result = await summarize(Document(text=article, language="French"), config)
    print(result.summary_text, result.sentiment.value)

"""

from summarize_it.summarizer.client import GenerativeClient, PydanticAIClient
from summarize_it.summarizer.models import (
    Document,
    GenerationError,
    GenerationErrorKind,
    SentimentLabel,
    SummarizationError,
    SummarizerConfig,
    SummaryResult,
    TokenBudget,
)
from summarize_it.summarizer.pipeline import summarize

__all__ = [
    "Document",
    "GenerationError",
    "GenerationErrorKind",
    "GenerativeClient",
    "PydanticAIClient",
    "SentimentLabel",
    "SummarizationError",
    "SummarizerConfig",
    "SummaryResult",
    "TokenBudget",
    "summarize",
]
