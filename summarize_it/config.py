"""Config file loading for the command line.

The file is TOML with a ``[defaults]`` table for every command and one table
per command name. Keys may use dashes like the command line options::

    [defaults]
    openai-base-url = "http://localhost:11434/v1"

    [summarize]
    chunk-size = 1000
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from summarize_it.core.utils import err_console

CONFIG_PATH = Path.home() / ".config" / "summarize-it" / "config.toml"
CONFIG_PATH_2 = Path("summarize-it-config.toml")
CONFIG_TABLES = ("defaults", "summarize")


def find_config_file(config_path_str: str | None = None) -> Path | None:
    """Return the explicit path, else the first existing default location."""
    if config_path_str:
        return Path(config_path_str).expanduser()
    return next((p for p in (CONFIG_PATH, CONFIG_PATH_2) if p.exists()), None)


def load_config(config_path_str: str | None = None) -> dict[str, dict[str, Any]]:
    """Load the known tables of the config file, with dashes in keys turned into underscores.

    A missing explicit file, invalid TOML and unknown tables are reported on
    stderr; they never stop the command.
    """
    config_path = find_config_file(config_path_str)
    if config_path is None:
        return {}
    if not config_path.exists():
        err_console.print(f"[bold red]Config file not found at {config_path}[/bold red]")
        return {}

    try:
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        err_console.print(f"[bold red]Invalid config file {config_path}: {e}[/bold red]")
        return {}

    config: dict[str, dict[str, Any]] = {}
    for name, table in raw.items():
        if name not in CONFIG_TABLES or not isinstance(table, dict):
            err_console.print(f"[yellow]Ignoring '{name}' in {config_path}[/yellow]")
            continue
        config[name] = {key.replace("-", "_"): value for key, value in table.items()}
    return config
