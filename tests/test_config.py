"""Test the config loading."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from typer import Context
from typer.main import get_command

from summarize_it.cli import app, set_config_defaults
from summarize_it.config import find_config_file, load_config

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Provides a config file with dashed keys."""
    config_content = """
title = "ignored, not a table"

[defaults]
log-level = "INFO"
openai-base-url = "http://localhost:8000/v1"
model = "default-model"

[summarize]
model = "summarize-model"
chunk-size = 900
quiet = true

[autocorrect]
model = "other-tool"
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path


def _summarize_context() -> Context:
    return Context(command=get_command(app).commands["summarize"])


def test_config_loader_key_replacement(config_file: Path) -> None:
    """Test that dashed keys are replaced with underscores."""
    config = load_config(str(config_file))
    assert config["defaults"]["log_level"] == "INFO"
    assert config["defaults"]["openai_base_url"] == "http://localhost:8000/v1"
    assert config["summarize"]["chunk_size"] == 900


def test_unknown_tables_are_ignored(config_file: Path) -> None:
    """Test that only [defaults] and [summarize] are kept."""
    assert set(load_config(str(config_file))) == {"defaults", "summarize"}


def test_missing_explicit_config(tmp_path: Path) -> None:
    """Test that a missing explicit file yields no defaults."""
    assert load_config(str(tmp_path / "missing.toml")) == {}


def test_invalid_toml(tmp_path: Path) -> None:
    """Test that a broken file yields no defaults instead of a traceback."""
    config_path = tmp_path / "broken.toml"
    config_path.write_text("[summarize\nmodel = ")
    assert load_config(str(config_path)) == {}


def test_explicit_path_wins(tmp_path: Path) -> None:
    """Test that an explicit path is used even when it does not exist."""
    assert find_config_file(str(tmp_path / "x.toml")) == tmp_path / "x.toml"


def test_set_config_defaults_without_command_table(config_file: Path) -> None:
    """Test that only [defaults] applies when the command has no name."""
    mock_main_command = MagicMock()
    mock_main_command.name = None
    ctx = Context(command=mock_main_command)

    set_config_defaults(ctx, str(config_file))

    assert ctx.default_map == {
        "log_level": "INFO",
        "openai_base_url": "http://localhost:8000/v1",
        "model": "default-model",
    }


def test_set_config_defaults_for_summarize(config_file: Path) -> None:
    """Test that the command table overrides [defaults]."""
    ctx = _summarize_context()

    set_config_defaults(ctx, str(config_file))

    assert ctx.default_map == {
        "log_level": "INFO",
        "openai_base_url": "http://localhost:8000/v1",
        "model": "summarize-model",
        "chunk_size": 900,
        "quiet": True,
    }


def test_unknown_options_are_dropped(tmp_path: Path) -> None:
    """Test that a misspelled option does not reach the defaults."""
    config_path = tmp_path / "config.toml"
    config_path.write_text('[summarize]\nchunk-sise = 900\nmodel = "m"\n')
    ctx = _summarize_context()

    set_config_defaults(ctx, str(config_path))

    assert ctx.default_map == {"model": "m"}
