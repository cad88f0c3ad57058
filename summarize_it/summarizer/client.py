"""Generative client protocol, deadline handling and the pydantic-ai backend."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel

from summarize_it.summarizer._prompts import SYSTEM_PROMPT
from summarize_it.summarizer.models import (
    GenerationError,
    GenerationErrorKind,
    GenerationRequest,
    GenerationResponse,
    OutputKind,
)

if TYPE_CHECKING:
    from summarize_it.summarizer.models import SummarizerConfig

logger = logging.getLogger(__name__)

# Substrings of provider error messages, checked in this order.
_ERROR_MARKERS: tuple[tuple[GenerationErrorKind, tuple[str, ...]], ...] = (
    (
        GenerationErrorKind.SAFETY_FILTERED,
        ("safety", "content_filter", "content filter", "blocked", "deny", "guardrail"),
    ),
    (
        GenerationErrorKind.CONTEXT_WINDOW_EXCEEDED,
        (
            "context window",
            "context_length",
            "context length",
            "maximum context",
            "too many tokens",
            "prompt is too long",
        ),
    ),
    (
        GenerationErrorKind.UNSUPPORTED_LANGUAGE,
        ("unsupported language", "unsupportedlanguage", "unsupported locale"),
    ),
    (GenerationErrorKind.TIMEOUT, ("timed out", "timeout")),
)


class SummaryOnly(BaseModel):
    """Structured output for summary generation."""

    summary_text: str


class SummaryAndSentiment(BaseModel):
    """Structured output for a summary with its sentiment."""

    summary_text: str
    sentiment: str


class GenerativeClient(Protocol):
    """Performs one bounded generation call."""

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run ``request``, raising ``GenerationError`` on failure."""
        ...


def classify_exception(exc: BaseException) -> GenerationErrorKind:
    """Map a provider exception to a ``GenerationErrorKind``."""
    if isinstance(exc, GenerationError):
        return exc.kind
    if isinstance(exc, TimeoutError):
        return GenerationErrorKind.TIMEOUT
    description = f"{type(exc).__name__}: {exc}".lower()
    for kind, markers in _ERROR_MARKERS:
        if any(marker in description for marker in markers):
            return kind
    return GenerationErrorKind.UNKNOWN


async def generate(
    client: GenerativeClient,
    request: GenerationRequest,
    *,
    timeout: float,
) -> GenerationResponse:
    """Run one generative call that is cancelled once ``timeout`` seconds pass.

    Raises:
        GenerationError: ``TIMEOUT`` when the deadline expires, ``UNKNOWN`` for
            an empty response, otherwise the client's classified error.

    """
    try:
        async with asyncio.timeout(timeout):
            response = await client.generate(request)
    except TimeoutError as e:
        msg = f"Generation did not finish within {timeout:.1f}s"
        raise GenerationError(GenerationErrorKind.TIMEOUT, msg) from e
    if not response.text.strip():
        msg = "Model returned an empty response"
        raise GenerationError(GenerationErrorKind.UNKNOWN, msg)
    return response


class PydanticAIClient:
    """``GenerativeClient`` backed by an OpenAI-compatible endpoint via pydantic-ai."""

    def __init__(self, config: SummarizerConfig) -> None:
        self.config = config

    def _build_agent(self, request: GenerationRequest):  # noqa: ANN202
        from pydantic_ai import Agent  # noqa: PLC0415
        from pydantic_ai.models.openai import OpenAIChatModel  # noqa: PLC0415
        from pydantic_ai.providers.openai import OpenAIProvider  # noqa: PLC0415
        from pydantic_ai.settings import ModelSettings  # noqa: PLC0415

        provider = OpenAIProvider(
            api_key=self.config.api_key,
            base_url=self.config.openai_base_url,
        )
        # Greedy sampling: the provider only exposes it through temperature 0.
        model = OpenAIChatModel(
            model_name=self.config.model,
            provider=provider,
            settings=ModelSettings(
                temperature=request.temperature,
                max_tokens=request.max_response_tokens,
            ),
        )
        output_type: type = {
            OutputKind.SUMMARY: SummaryOnly,
            OutputKind.SUMMARY_AND_SENTIMENT: SummaryAndSentiment,
            OutputKind.LABEL: str,
        }[request.output]
        return Agent(
            model=model,
            system_prompt=SYSTEM_PROMPT,
            output_type=output_type,
            retries=1,
        )

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Run ``request`` and return the generated text.

        Raises:
            GenerationError: Classified provider failure; schema-violating
                output is ``UNKNOWN``.

        """
        agent = self._build_agent(request)
        try:
            result = await agent.run(request.prompt)
        except Exception as e:
            kind = classify_exception(e)
            logger.debug("Generation failed (%s): %s", kind.code, e)
            msg = f"Generation failed: {e}"
            raise GenerationError(kind, msg) from e

        output = result.output
        if isinstance(output, SummaryAndSentiment):
            return GenerationResponse(
                text=output.summary_text.strip(),
                sentiment=output.sentiment.strip(),
            )
        if isinstance(output, SummaryOnly):
            return GenerationResponse(text=output.summary_text.strip())
        return GenerationResponse(text=str(output).strip())
