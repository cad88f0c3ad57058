"""Command line interface for summarize-it."""

from __future__ import annotations

import asyncio
import json
import sys
import time
from enum import Enum
from pathlib import Path  # noqa: TC003

import typer

from summarize_it.config import load_config
from summarize_it.core.utils import (
    console,
    create_status,
    err_console,
    print_command_line_args,
    print_error_message,
    print_input_panel,
    print_output_panel,
    print_with_style,
    setup_logging,
)
from summarize_it.summarizer import (
    Document,
    GenerationError,
    GenerationErrorKind,
    SummarizerConfig,
    SummaryResult,
    TokenBudget,
    summarize,
)
from summarize_it.summarizer._utils import estimate_tokens

app = typer.Typer(
    name="summarize-it",
    help="Summarize long documents with a context-limited language model.",
    add_completion=True,
)

# English renderings of classified errors; the error code is always shown too.
ERROR_MESSAGES = {
    GenerationErrorKind.UNSUPPORTED_LANGUAGE: "Language {language} is not supported.",
    GenerationErrorKind.SAFETY_FILTERED: (
        "Content blocked by the model's safety filters. This document may contain "
        "sensitive content that cannot be processed."
    ),
    GenerationErrorKind.CONTEXT_WINDOW_EXCEEDED: (
        "Document too long to process. The model has limits on input length. "
        "Please try a shorter document."
    ),
    GenerationErrorKind.TIMEOUT: "The model did not respond in time.",
    GenerationErrorKind.UNKNOWN: "Generation failed: {error}",
}


class OutputFormat(str, Enum):
    """Output format for the summarization result."""

    text = "text"
    json = "json"


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Summarize long documents with a context-limited language model."""
    if ctx.invoked_subcommand is None:
        console.print("[bold red]No command specified.[/bold red]")
        console.print("[bold yellow]Running --help for your convenience.[/bold yellow]")
        console.print(ctx.get_help())
        raise typer.Exit
    import dotenv  # noqa: PLC0415

    dotenv.load_dotenv()


def set_config_defaults(ctx: typer.Context, config_file: str | None) -> None:
    """Use ``[defaults]`` and the command's own table as option defaults.

    Keys that name no option of the command are dropped with a warning, so
    a misspelled setting does not go unnoticed.
    """
    config = load_config(config_file)
    defaults = dict(config.get("defaults", {}))
    if ctx.command.name:
        defaults.update(config.get(ctx.command.name, {}))

    options = {param.name for param in getattr(ctx.command, "params", [])}
    unknown = sorted(set(defaults) - options) if options else []
    if unknown:
        err_console.print(
            f"[yellow]Ignoring unknown config options: {', '.join(unknown)}[/yellow]",
        )
    ctx.default_map = {k: v for k, v in defaults.items() if k not in unknown}


def _config_callback(ctx: typer.Context, value: str | None) -> str | None:
    set_config_defaults(ctx, value)
    return value


def _read_input(file_path: Path | None) -> str | None:
    """Read input from file or stdin."""
    if file_path:
        if not file_path.exists():
            print_error_message(
                f"File not found: {file_path}",
                "Please check the file path and try again.",
            )
            return None
        return file_path.read_text(encoding="utf-8")

    if sys.stdin.isatty():
        print_error_message(
            "No input provided",
            "Provide a file path or pipe content via stdin.",
        )
        return None

    return sys.stdin.read()


def error_payload(error: GenerationError, language: str) -> dict[str, str]:
    """Response payload for a classified error, rendered in English."""
    template = ERROR_MESSAGES[error.kind]
    return {
        "summary": template.format(language=language, error=error),
        "sentiment": "NA",
        "language": language,
        "error": error.code,
    }


def _display_result(
    result: SummaryResult,
    elapsed: float,
    output_format: OutputFormat,
    *,
    quiet: bool,
) -> None:
    if output_format == OutputFormat.json:
        print(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))
        return
    if quiet:
        print(result.summary_text)
        print(f"Sentiment: {result.sentiment.value}")
        return

    details = f"{result.route.replace('_', '-')}"
    if result.chunk_count:
        details += f" | {result.chunk_count} chunks"
    if result.degraded_chunks:
        details += f" | {result.degraded_chunks} truncated"
    print_output_panel(
        result.summary_text,
        title=f"Summary ({result.language})",
        subtitle=f"[dim]{details} | {elapsed:.2f}s[/dim]",
    )
    print_with_style(f"Sentiment: {result.sentiment.value}", style="bold cyan")


async def _async_summarize(
    document: Document,
    config: SummarizerConfig,
    output_format: OutputFormat,
    *,
    quiet: bool,
) -> None:
    """Asynchronous summarization entry point."""
    show_progress = not quiet and output_format == OutputFormat.text
    status = create_status(f"Summarizing with {config.model}...") if show_progress else None
    start_time = time.monotonic()
    try:
        if status is None:
            result = await summarize(document, config)
        else:
            with status:
                result = await summarize(document, config)
    except GenerationError as e:
        payload = error_payload(e, document.language_name)
        if output_format == OutputFormat.json:
            print(json.dumps(payload, ensure_ascii=False, indent=2))
        else:
            print_error_message(
                f"{payload['summary']} [{payload['error']}]",
                f"Check that your LLM server is running at {config.openai_base_url}"
                if e.kind is GenerationErrorKind.UNKNOWN
                else None,
            )
        raise typer.Exit(1) from e

    _display_result(result, time.monotonic() - start_time, output_format, quiet=quiet)


@app.command("summarize")
def summarize_command(
    *,
    file_path: Path | None = typer.Argument(  # noqa: B008
        None,
        help="Path to file to summarize. If not provided, reads from stdin.",
    ),
    language: str = typer.Option(
        "English",
        "--language",
        "-l",
        help="Language to write the summary in.",
        rich_help_panel="Content Options",
    ),
    # --- LLM Configuration ---
    openai_base_url: str = typer.Option(
        "http://localhost:11434/v1",
        "--openai-base-url",
        envvar="OPENAI_BASE_URL",
        help="Base URL of an OpenAI-compatible API.",
        rich_help_panel="LLM Configuration",
    ),
    model: str = typer.Option(
        "llama3.1:8b",
        "--model",
        "-m",
        help="Model name.",
        rich_help_panel="LLM Configuration",
    ),
    api_key: str | None = typer.Option(
        None,
        "--api-key",
        envvar="OPENAI_API_KEY",
        help="API key, if the server needs one.",
        rich_help_panel="LLM Configuration",
    ),
    # --- Token Budget ---
    max_context_tokens: int = typer.Option(
        4096,
        "--max-context-tokens",
        help="Context window of the model (prompt plus response).",
        rich_help_panel="Token Budget",
    ),
    prompt_overhead_tokens: int = typer.Option(
        600,
        "--prompt-overhead-tokens",
        help="Tokens reserved for instructions and formatting.",
        rich_help_panel="Token Budget",
    ),
    chunk_response_tokens: int = typer.Option(
        400,
        "--chunk-response-tokens",
        help="Response budget for each chunk summary.",
        rich_help_panel="Token Budget",
    ),
    final_response_tokens: int = typer.Option(
        500,
        "--final-response-tokens",
        help="Response budget for the final summary.",
        rich_help_panel="Token Budget",
    ),
    safety_margin: int = typer.Option(
        128,
        "--safety-margin",
        help="Extra tokens kept free in every call.",
        rich_help_panel="Token Budget",
    ),
    # --- Chunking Options ---
    chunk_size: int = typer.Option(
        1200,
        "--chunk-size",
        help="Target token count per chunk.",
        rich_help_panel="Chunking Options",
    ),
    chunk_overlap: int = typer.Option(
        200,
        "--chunk-overlap",
        help="Token overlap between chunks for context continuity.",
        rich_help_panel="Chunking Options",
    ),
    group_size: int = typer.Option(
        3,
        "--group-size",
        help="Chunk summaries per group when a group-reduction pass is needed.",
        rich_help_panel="Chunking Options",
    ),
    chunk_timeout: float = typer.Option(
        20.0,
        "--chunk-timeout",
        help="Seconds allowed for each chunk call.",
        rich_help_panel="Chunking Options",
    ),
    stage_timeout: float = typer.Option(
        60.0,
        "--stage-timeout",
        help="Seconds allowed for single-shot, group, sentiment and final calls.",
        rich_help_panel="Chunking Options",
    ),
    # --- Output Options ---
    output_format: OutputFormat = typer.Option(  # noqa: B008
        OutputFormat.text,
        "--output",
        "-o",
        help="Output format: 'text' (rendered summary) or 'json' (response payload).",
        rich_help_panel="Output Options",
    ),
    # --- General Options ---
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Set logging level.",
        rich_help_panel="General Options",
    ),
    log_file: str | None = typer.Option(
        None,
        "--log-file",
        help="Path to a file to write logs to.",
        rich_help_panel="General Options",
    ),
    quiet: bool = typer.Option(
        False,  # noqa: FBT003
        "--quiet",
        "-q",
        help="Suppress console output from rich.",
        rich_help_panel="General Options",
    ),
    config_file: str | None = typer.Option(
        None,
        "--config",
        help="Path to a TOML configuration file.",
        callback=_config_callback,
        is_eager=True,
        rich_help_panel="General Options",
    ),
    print_args: bool = typer.Option(
        False,  # noqa: FBT003
        "--print-args",
        help="Print the command line arguments, including variables taken from the configuration file.",
        rich_help_panel="General Options",
    ),
) -> None:
    """Summarize a document and classify its sentiment.

    Short documents are summarized in one call. Longer ones are split into
    sentence-aligned chunks, summarized chunk by chunk, reduced and
    synthesized into one final summary.

    Examples:
        # Summarize a file
        summarize-it summarize article.txt

        # Summarize in French from stdin
        cat article.txt | summarize-it summarize --language French

        # Emit the JSON payload
        summarize-it summarize report.md --output json

    """
    if print_args:
        print_command_line_args(locals())

    setup_logging(log_level, log_file, quiet=quiet)

    try:
        budget = TokenBudget(
            max_context_tokens=max_context_tokens,
            prompt_overhead_tokens=prompt_overhead_tokens,
            chunk_response_budget=chunk_response_tokens,
            final_response_budget=final_response_tokens,
            safety_margin=safety_margin,
        )
        config = SummarizerConfig(
            openai_base_url=openai_base_url,
            model=model,
            api_key=api_key,
            budget=budget,
            target_chunk_tokens=chunk_size,
            chunk_overlap=chunk_overlap,
            group_size=group_size,
            chunk_timeout=chunk_timeout,
            stage_timeout=stage_timeout,
        )
    except ValueError as e:
        print_error_message(str(e), "Check the token budget and chunking options.")
        raise typer.Exit(1) from e

    content = _read_input(file_path)
    if content is None:
        raise typer.Exit(1)

    if not quiet and output_format == OutputFormat.text and content.strip():
        preview = content[:500]
        if len(content) > 500:  # noqa: PLR2004
            preview += f"\n... [{len(content) - 500} more characters]"
        print_input_panel(preview, title=f"Input (~{estimate_tokens(content):,} tokens)")

    asyncio.run(
        _async_summarize(
            Document(text=content, language=language),
            config,
            output_format,
            quiet=quiet,
        ),
    )
