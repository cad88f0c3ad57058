"""Console output and logging helpers for the command line."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

if TYPE_CHECKING:
    from rich.status import Status

console = Console()
err_console = Console(stderr=True)


def setup_logging(log_level: str, log_file: str | None, *, quiet: bool) -> None:
    """Configure the root logger with a Rich handler and an optional log file.

    In quiet mode only errors reach the console; the log file still receives
    everything at ``log_level``.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    handlers: list[logging.Handler] = []

    rich_handler = RichHandler(
        console=err_console,
        show_path=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(logging.ERROR if quiet else level)
    handlers.append(rich_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=True,
    )
    # Suppress noisy logs from HTTP libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def print_with_style(message: str, style: str = "bold green") -> None:
    """Print a message with a Rich style."""
    console.print(Text(message, style=style))


def print_error_message(message: str, suggestion: str | None = None) -> None:
    """Print an error panel with an optional suggestion."""
    body = Text(message, style="bold red")
    if suggestion:
        body.append(f"\n\n💡 {suggestion}", style="yellow")
    err_console.print(Panel(body, title="Error", border_style="red"))


def print_input_panel(text: str, title: str = "Input") -> None:
    """Print the input text in a panel."""
    console.print(Panel(Text(text), title=f"[bold blue]{title}[/bold blue]", border_style="blue"))


def print_output_panel(text: str, title: str = "Output", subtitle: str = "") -> None:
    """Print the output text in a panel."""
    console.print(
        Panel(
            Text(text),
            title=f"[bold green]{title}[/bold green]",
            subtitle=subtitle or None,
            border_style="green",
        ),
    )


def create_status(message: str, style: str = "bold yellow") -> Status:
    """Create a spinner status for long-running work."""
    return console.status(Text(message, style=style), spinner="dots")


def print_command_line_args(args: dict[str, object]) -> None:
    """Print the resolved command line arguments, hiding secrets."""
    console.print("[bold]Command line arguments:[/bold]")
    for key, value in sorted(args.items()):
        shown = "***" if "key" in key and value else value
        console.print(f"  {key}: {shown}")
    sys.stdout.flush()
