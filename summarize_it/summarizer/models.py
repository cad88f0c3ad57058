"""Data models for hierarchical summarization."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_LANGUAGE = "English"
NO_CONTENT_SUMMARY = "No readable content."


class SummarizationError(Exception):
    """Base class for summarization failures."""


class GenerationErrorKind(str, Enum):
    """Classified failure of a single generative call."""

    UNSUPPORTED_LANGUAGE = "unsupported_language"
    SAFETY_FILTERED = "safety_filter"
    CONTEXT_WINDOW_EXCEEDED = "context_window"
    TIMEOUT = "timeout"
    UNKNOWN = "generation_error"

    @property
    def code(self) -> str:
        """Stable error code reported to callers."""
        return self.value


class GenerationError(SummarizationError):
    """Raised when a generative call fails with a classified error."""

    def __init__(self, kind: GenerationErrorKind, message: str = "") -> None:
        self.kind = kind
        super().__init__(message or kind.name.replace("_", " ").lower())

    @property
    def code(self) -> str:
        return self.kind.code


class SentimentLabel(str, Enum):
    """Overall tone of a document."""

    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"
    NOT_APPLICABLE = "NA"


class OutputKind(str, Enum):
    """Shape of the output requested from the generative service."""

    SUMMARY = "summary"
    SUMMARY_AND_SENTIMENT = "summary_and_sentiment"
    LABEL = "label"


@dataclass(frozen=True)
class TokenBudget:
    """Context-window accounting shared by every generative call.

    A prompt may only be dispatched while
    ``prompt_tokens + response_budget + safety_margin <= max_context_tokens``.
    """

    max_context_tokens: int = 4096
    prompt_overhead_tokens: int = 600
    chunk_response_budget: int = 400
    final_response_budget: int = 500
    safety_margin: int = 128

    def __post_init__(self) -> None:
        """Reject budgets that leave no room for input text."""
        reserved = self.prompt_overhead_tokens + self.safety_margin
        largest_response = max(self.chunk_response_budget, self.final_response_budget)
        if min(self.prompt_overhead_tokens, self.safety_margin) < 0:
            msg = "Token overhead and safety margin must not be negative"
            raise ValueError(msg)
        if self.chunk_response_budget <= 0 or self.final_response_budget <= 0:
            msg = "Response budgets must be positive"
            raise ValueError(msg)
        if reserved + largest_response >= self.max_context_tokens:
            msg = (
                f"max_context_tokens={self.max_context_tokens} leaves no room for input "
                f"after {reserved + largest_response} reserved tokens"
            )
            raise ValueError(msg)

    @property
    def chunk_hard_max_tokens(self) -> int:
        """Largest chunk that still fits next to a chunk prompt and response."""
        return (
            self.max_context_tokens
            - self.prompt_overhead_tokens
            - self.chunk_response_budget
            - self.safety_margin
        )


@dataclass
class SummarizerConfig:
    """Configuration for summarization operations.

    Example:
        config = SummarizerConfig(
            openai_base_url="http://localhost:11434/v1",
            model="llama3.1:8b",
        )
        result = await summarize(Document(text=article), config)
        print(result.summary_text, result.sentiment)

    """

    openai_base_url: str
    model: str
    api_key: str | None = None
    budget: TokenBudget = field(default_factory=TokenBudget)
    target_chunk_tokens: int = 1200
    chunk_overlap: int = 200
    group_size: int = 3
    chunk_timeout: float = 20.0
    stage_timeout: float = 60.0

    def __post_init__(self) -> None:
        """Normalize the base URL and validate chunking settings."""
        self.openai_base_url = self.openai_base_url.rstrip("/")
        if self.api_key is None:
            self.api_key = "not-needed"
        if self.target_chunk_tokens <= 0:
            msg = "target_chunk_tokens must be positive"
            raise ValueError(msg)
        if self.chunk_overlap < 0:
            msg = "chunk_overlap must not be negative"
            raise ValueError(msg)
        if self.group_size < 2:
            msg = "group_size must be at least 2"
            raise ValueError(msg)
        if self.chunk_timeout <= 0 or self.stage_timeout <= 0:
            msg = "Timeouts must be positive"
            raise ValueError(msg)


@dataclass(frozen=True)
class Document:
    """A document to summarize and the language to summarize it in."""

    text: str
    language: str = DEFAULT_LANGUAGE

    @property
    def language_name(self) -> str:
        return self.language.strip() or DEFAULT_LANGUAGE


@dataclass(frozen=True)
class Chunk:
    """A slice of a document sized for one generative call."""

    ordinal: int
    text: str


@dataclass(frozen=True)
class ChunkSummary:
    """Summary of one chunk (or of one group of chunk summaries)."""

    ordinal: int
    text: str
    degraded: bool = False


@dataclass(frozen=True)
class GenerationRequest:
    """A single bounded generative call."""

    prompt: str
    max_response_tokens: int
    output: OutputKind = OutputKind.SUMMARY
    sampling_mode: Literal["greedy"] = "greedy"
    temperature: float = 0.0


@dataclass(frozen=True)
class GenerationResponse:
    """Text returned by the generative service.

    ``sentiment`` is only set for ``OutputKind.SUMMARY_AND_SENTIMENT``.
    """

    text: str
    sentiment: str | None = None


class SummaryResult(BaseModel):
    """Result of summarization.

    Contains the summary, the detected sentiment and metadata about how the
    document was processed.
    """

    summary_text: str = Field(..., min_length=1, description="The final summary text")
    sentiment: SentimentLabel = Field(..., description="Overall sentiment of the document")
    language: str = Field(default=DEFAULT_LANGUAGE, description="Language of the summary")
    route: Literal["empty", "single_shot", "map_reduce"] = Field(
        default="single_shot",
        description="Which pipeline path produced the summary",
    )
    input_tokens: int = Field(default=0, ge=0, description="Estimated tokens of the input")
    chunk_count: int = Field(default=0, ge=0, description="Number of chunks summarized")
    degraded_chunks: int = Field(
        default=0,
        ge=0,
        description="Chunks that fell back to a truncated excerpt",
    )
    group_reduced: bool = Field(
        default=False,
        description="Whether a group-reduction pass ran before synthesis",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the summary was created",
    )

    @field_validator("summary_text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "summary_text must not be blank"
            raise ValueError(msg)
        return v

    def to_payload(self) -> dict[str, str]:
        """Flatten to the ``summary``/``sentiment``/``language`` response payload."""
        return {
            "summary": self.summary_text,
            "sentiment": self.sentiment.value,
            "language": self.language,
        }
