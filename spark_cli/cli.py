"""Shared CLI functionality for the Spark CLI."""

from __future__ import annotations

import typer

from spark_cli import __version__
from spark_cli.config import load_config
from spark_cli.core.utils import console

app = typer.Typer(
    name="spark-cli",
    help="Chat with iFlytek Spark models from the command line, with live streamed answers.",
    add_completion=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"spark-cli {__version__}")
        raise typer.Exit


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(  # noqa: ARG001
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Chat with iFlytek Spark models."""
    if ctx.invoked_subcommand is None:
        console.print("[bold red]No command specified.[/bold red]")
        console.print("[bold yellow]Running --help for your convenience.[/bold yellow]")
        console.print(ctx.get_help())
        raise typer.Exit
    import dotenv  # noqa: PLC0415

    dotenv.load_dotenv()


def set_config_defaults(ctx: typer.Context, config_file: str | None) -> None:
    """Set the default values for the CLI based on the config file."""
    config = load_config(config_file)
    wildcard_config = config.get("defaults", {})
    # Executed inside the subcommand, so the command is the sub command.
    subcommand = ctx.command.name

    if not subcommand:
        ctx.default_map = wildcard_config
        return

    command_config = config.get(subcommand, {})
    defaults = {**wildcard_config, **command_config}
    ctx.default_map = defaults


# Import commands from other modules to register them
from spark_cli.agents import chat  # noqa: E402, F401
