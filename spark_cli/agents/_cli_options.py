"""Shared CLI options for Spark commands."""

from __future__ import annotations

import typer

from spark_cli import constants
from spark_cli.cli import set_config_defaults

# --- Endpoint Options ---
MODEL = typer.Option(
    constants.DEFAULT_MODEL,
    "--model",
    "-m",
    help="Name of the Spark model to use.",
)
API_KEY = typer.Option(
    None,
    "--api-key",
    envvar="SPARK_API_KEY",
    help="Spark API password, sent as a bearer token.",
)
BASE_URL = typer.Option(
    None,
    "--base-url",
    envvar="SPARK_BASE_URL",
    help=f"Custom endpoint base URL (default: {constants.SPARK_BASE_URL}).",
)
REQUEST_TIMEOUT = typer.Option(
    constants.REQUEST_TIMEOUT,
    "--timeout",
    min=0.001,
    help="Seconds to wait for the first byte of the response.",
)

# --- Request Options ---
SYSTEM = typer.Option(
    None,
    "--system",
    "-s",
    help="System prompt to send before the user message.",
)
STREAM = typer.Option(
    True,
    "--stream/--no-stream",
    help="Stream the answer as it is generated.",
)
TEMPERATURE = typer.Option(
    constants.DEFAULT_TEMPERATURE,
    "--temperature",
    min=0.0,
    max=2.0,
    help="Sampling temperature.",
)
TOP_P = typer.Option(
    None,
    "--top-p",
    min=0.0,
    max=1.0,
    help=f"Nucleus sampling probability (default: {constants.DEFAULT_TOP_P}).",
)
MAX_TOKENS = typer.Option(
    None,
    "--max-tokens",
    min=1,
    help=f"Maximum tokens to generate (capped at {constants.MAX_TOKENS_LIMIT}).",
)

# --- Display Options ---
FRAME_INTERVAL = typer.Option(
    constants.FRAME_INTERVAL,
    "--frame-interval",
    min=0.0,
    help="Seconds between display updates while streaming.",
)
CHUNK_DIVISOR = typer.Option(
    constants.CHUNK_DIVISOR,
    "--chunk-divisor",
    min=1,
    help="Each update reveals 1/N of the buffered text (at least one character).",
)
HIDE_THINKING = typer.Option(
    False,
    "--hide-thinking",
    help="Do not show the model's reasoning, only its answer.",
)

# --- General Options ---
LANGUAGE = typer.Option(
    "en",
    "--language",
    help='Language of error messages ("en" or "zh").',
)
LOG_LEVEL = typer.Option(
    "WARNING",
    "--log-level",
    help="Set the log level (e.g., DEBUG, INFO, WARNING).",
)
LOG_FILE = typer.Option(
    None,
    "--log-file",
    help="Path to a file to write logs to.",
)
QUIET = typer.Option(
    False,
    "--quiet",
    "-q",
    help="Suppress all output except for the final result.",
)
CONFIG_FILE = typer.Option(
    None,
    "--config-file",
    callback=set_config_defaults,
    is_eager=True,
    help="Path to a custom config file.",
)
