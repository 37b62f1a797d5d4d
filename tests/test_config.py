"""Test the config loading."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest
import typer
from pydantic import ValidationError
from typer import Context
from typer.testing import CliRunner

from spark_cli.cli import app, set_config_defaults
from spark_cli.config import Delivery, General, SparkLLM, load_config

if TYPE_CHECKING:
    from pathlib import Path

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Provides a config file with dashed keys."""
    config_content = """
top-level = "ignored"

[defaults]
log-level = "INFO"
model = "x1"
api-key = "default-key"

[chat]
model = "4.0Ultra"
hide-thinking = true
chunk-divisor = 30
"""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_content)
    return config_path


def test_config_loader_key_replacement(config_file: Path) -> None:
    """Test that dashed keys are replaced with underscores."""
    config = load_config(str(config_file))
    assert config["defaults"]["log_level"] == "INFO"
    assert config["defaults"]["api_key"] == "default-key"
    assert config["chat"]["hide_thinking"] is True
    assert config["chat"]["chunk_divisor"] == 30
    # Only tables are kept
    assert "top-level" not in config
    assert "top_level" not in config


def test_config_loader_missing_explicit_path(tmp_path: Path) -> None:
    """A missing explicit path yields no config."""
    assert load_config(str(tmp_path / "nope.toml")) == {}


def test_set_config_defaults(config_file: Path) -> None:
    """Test that [chat] overrides [defaults]."""
    group = typer.main.get_command(app)
    ctx = Context(command=group.commands["chat"])
    set_config_defaults(ctx, str(config_file))
    assert ctx.default_map == {
        "log_level": "INFO",
        "model": "4.0Ultra",  # Overridden by [chat]
        "api_key": "default-key",
        "hide_thinking": True,
        "chunk_divisor": 30,
    }

    # Any command without its own table only gets [defaults].
    ctx = Context(command=group)
    set_config_defaults(ctx, str(config_file))
    assert ctx.default_map == {
        "log_level": "INFO",
        "model": "x1",
        "api_key": "default-key",
    }


def test_model_validation() -> None:
    """Out-of-range values are rejected."""
    with pytest.raises(ValidationError):
        SparkLLM(temperature=3.0)
    with pytest.raises(ValidationError):
        SparkLLM(request_timeout=0)
    with pytest.raises(ValidationError):
        Delivery(chunk_divisor=0)
    with pytest.raises(ValidationError):
        Delivery(frame_interval=-0.1)
    with pytest.raises(ValidationError, match="Unsupported language"):
        General(language="fr")
    assert General(language="zh").language == "zh"


def test_chat_help_includes_config_option(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure the chat command wires the config option."""
    monkeypatch.setenv("NO_COLOR", "1")
    result = runner.invoke(app, ["chat", "--help"])
    assert result.exit_code == 0
    # Strip ANSI color codes for more reliable testing
    clean_output = re.sub(r"\x1b\[[0-9;]*m", "", result.stdout)
    assert "--config" in clean_output
