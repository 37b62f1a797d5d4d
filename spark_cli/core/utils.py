"""Console output and logging setup shared by the commands."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text

console = Console()
err_console = Console(stderr=True)


def setup_logging(log_level: str, log_file: str | None, *, quiet: bool) -> None:
    """Configure the root logger.

    Logs go to ``log_file`` when given, otherwise to stderr through Rich so
    they never mix with the answer on stdout. Quiet mode only lets warnings
    and errors through.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if quiet:
        level = max(level, logging.WARNING)

    handler: logging.Handler
    if log_file:
        handler = logging.FileHandler(log_file, mode="w")
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
        )
    else:
        handler = RichHandler(
            console=err_console,
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    # httpx logs every request at info level.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def print_with_style(message: str, style: str = "bold green") -> None:
    """Print a message with a given style."""
    console.print(message, style=style, markup=False)


def print_error_message(message: str, suggestion: str | None = None) -> None:
    """Print an error panel to stderr."""
    body = Text(message)
    if suggestion:
        body.append(f"\n\n💡 {suggestion}", style="yellow")
    err_console.print(Panel(body, title="❌ Error", border_style="bold red"))

