"""Pydantic models for command configuration and config file loading."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from spark_cli.constants import (
    CHUNK_DIVISOR,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    FRAME_INTERVAL,
    REQUEST_TIMEOUT,
)
from spark_cli.core.utils import console
from spark_cli.locales import DEFAULT_LANGUAGE, MESSAGES

# --- Config File Loading ---

CONFIG_PATH = Path.home() / ".config" / "spark-cli" / "config.toml"
CONFIG_PATH_2 = Path("spark-cli-config.toml")


def _replace_dashed_keys(cfg: dict[str, Any]) -> dict[str, Any]:
    """Replace dashed keys with underscores in the config options."""
    return {k.replace("-", "_"): v for k, v in cfg.items()}


def load_config(config_path_str: str | None = None) -> dict[str, Any]:
    """Load the TOML configuration file and process it for nested structures."""
    if config_path_str:
        config_path = Path(config_path_str).expanduser()
    elif CONFIG_PATH.exists():
        config_path = CONFIG_PATH
    elif CONFIG_PATH_2.exists():
        config_path = CONFIG_PATH_2
    else:
        return {}

    if config_path.exists():
        with config_path.open("rb") as f:
            cfg = tomllib.load(f)
            return {k: _replace_dashed_keys(v) for k, v in cfg.items() if isinstance(v, dict)}

    # Report error only if an explicit path was given
    console.print(
        f"[bold red]Config file not found at {config_path_str}[/bold red]",
    )
    return {}


# --- Panel: Spark Endpoint ---


class SparkLLM(BaseModel):
    """Endpoint, credentials, and sampling defaults for Spark."""

    model: str = DEFAULT_MODEL
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    max_tokens: int | None = Field(default=None, ge=0)
    stream: bool = True
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)


# --- Panel: Delivery ---


class Delivery(BaseModel):
    """How streamed text is paced and shown."""

    frame_interval: float = Field(default=FRAME_INTERVAL, ge=0)
    chunk_divisor: int = Field(default=CHUNK_DIVISOR, ge=1)
    hide_thinking: bool = False


# --- Panel: General Options ---


class General(BaseModel):
    """General configuration parameters for logging and I/O."""

    log_level: str = "WARNING"
    log_file: str | None = None
    quiet: bool = False
    language: str = DEFAULT_LANGUAGE

    @field_validator("language")
    @classmethod
    def _known_language(cls, v: str) -> str:
        if v not in MESSAGES:
            msg = f"Unsupported language {v!r}, expected one of {sorted(MESSAGES)}"
            raise ValueError(msg)
        return v
