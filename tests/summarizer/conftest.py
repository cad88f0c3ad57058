"""Fixtures for summarizer tests: a scripted generative client."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from summarize_it.summarizer.models import (
    GenerationRequest,
    GenerationResponse,
    OutputKind,
    SummarizerConfig,
)

SECTION_SUMMARY = (
    "The committee reviewed the listed items, approved most of them, and recorded "
    "the outcomes together with the follow-up actions for the next meeting. "
    "Budget figures were confirmed and two proposals were deferred for more analysis."
)

SLOW = object()  # script item: block until cancelled


def default_response(request: GenerationRequest) -> GenerationResponse:
    """Canned answer for each output kind."""
    if request.output is OutputKind.SUMMARY_AND_SENTIMENT:
        return GenerationResponse(text="A short summary.", sentiment="Positive")
    if request.output is OutputKind.LABEL:
        return GenerationResponse(text="Negative")
    return GenerationResponse(text=SECTION_SUMMARY)


class FakeClient:
    """Generative client that replays a script and records every request.

    Script items are consumed one per call: a ``str`` or
    ``GenerationResponse`` is returned, an exception is raised and ``SLOW``
    blocks until the call is cancelled. Once the script is exhausted the
    ``default`` callable answers.
    """

    def __init__(
        self,
        script: list[object] | None = None,
        default: Callable[[GenerationRequest], GenerationResponse] = default_response,
    ) -> None:
        self.script = list(script or [])
        self.default = default
        self.requests: list[GenerationRequest] = []
        self.cancelled = 0

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        self.requests.append(request)
        item = self.script.pop(0) if self.script else self.default(request)
        if item is SLOW:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled += 1
                raise
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return GenerationResponse(text=item)
        return item  # type: ignore[return-value]

    def prompts_starting_with(self, prefix: str) -> list[str]:
        return [r.prompt for r in self.requests if r.prompt.startswith(prefix)]


@pytest.fixture
def make_client() -> Callable[..., FakeClient]:
    """Factory for scripted fake clients."""
    return FakeClient


@pytest.fixture
def slow() -> object:
    """Script item that blocks until the call is cancelled."""
    return SLOW


@pytest.fixture
def config() -> SummarizerConfig:
    """Default summarizer config pointing at a local server."""
    return SummarizerConfig(
        openai_base_url="http://localhost:11434/v1",
        model="llama3.1:8b",
    )


@pytest.fixture
def section_summary() -> str:
    """Text the fake client returns for every summary request."""
    return SECTION_SUMMARY


@pytest.fixture
def respond() -> Callable[[GenerationRequest], GenerationResponse]:
    """The fake client's default answer function."""
    return default_response
