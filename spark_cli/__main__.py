"""Run the CLI with ``python -m spark_cli``."""

from spark_cli.cli import app

app()
