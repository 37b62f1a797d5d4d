"""Send a prompt to a Spark model and show the answer as it streams in.

Usage:
    spark-cli chat [PROMPT]

If no prompt is given it is read from stdin.

Environment variables:
    SPARK_API_KEY: The Spark API password used as bearer token.
    SPARK_BASE_URL: A custom endpoint base URL.

Example:
    spark-cli chat "Why is the sky blue?" --model x1
    echo "Summarize this" | spark-cli chat --no-stream -q

Press Ctrl-C while streaming to stop the answer; what has arrived so far is kept.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

import spark_cli.agents._cli_options as opts
from spark_cli.cli import app
from spark_cli.config import Delivery, General, SparkLLM
from spark_cli.core.assembler import strip_thinking
from spark_cli.core.controller import StreamCallbacks
from spark_cli.core.errors import Unauthorized
from spark_cli.core.utils import (
    console,
    print_error_message,
    print_with_style,
    setup_logging,
)
from spark_cli.services.spark import ChatOptions, chat

if TYPE_CHECKING:
    from spark_cli.core.controller import StreamController
    from spark_cli.core.errors import SparkError
    from spark_cli.core.session import ResponseMetadata


@dataclass
class ChatOutcome:
    """What a chat call ended with."""

    text: str | None = None
    error: SparkError | None = None
    cancelled: bool = False
    elapsed: float = 0.0


def _render(text: str, *, hide_thinking: bool) -> str:
    return strip_thinking(text) if hide_thinking else text


def _answer_panel(text: str, model: str, subtitle: str = "") -> Panel:
    return Panel(
        Text(text),
        title=f"🤖 {model}",
        subtitle=subtitle or None,
        border_style="green",
    )


def _build_messages(prompt: str, system: str | None) -> list[dict[str, str]]:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})
    return messages


async def _async_chat(
    options: ChatOptions,
    llm_cfg: SparkLLM,
    delivery_cfg: Delivery,
    general_cfg: General,
) -> ChatOutcome:
    """Run one chat call, rendering partial output unless quiet."""
    outcome = ChatOutcome()
    loop = asyncio.get_running_loop()
    live = None if general_cfg.quiet else Live(console=console, auto_refresh=False)

    def on_partial(text: str, _fragment: str) -> None:
        if live is not None:
            live.update(
                _answer_panel(_render(text, hide_thinking=delivery_cfg.hide_thinking), options.model),
                refresh=True,
            )

    def on_done(text: str, _metadata: ResponseMetadata | None) -> None:
        outcome.text = text

    def on_error(error: SparkError) -> None:
        outcome.error = error

    def on_controller(controller: StreamController) -> None:
        with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
            loop.add_signal_handler(signal.SIGINT, controller.cancel)

    callbacks = StreamCallbacks(on_done=on_done, on_partial=on_partial, on_error=on_error)
    start = time.monotonic()
    with live if live is not None else contextlib.nullcontext():
        try:
            controller = await chat(
                options,
                llm_cfg,
                callbacks,
                delivery_cfg=delivery_cfg,
                language=general_cfg.language,
                on_controller=on_controller,
            )
        finally:
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                loop.remove_signal_handler(signal.SIGINT)
        outcome.elapsed = time.monotonic() - start
        outcome.cancelled = controller.session.cancelled

        if live is not None and outcome.text is not None:
            note = " (stopped)" if outcome.cancelled else ""
            live.update(
                _answer_panel(
                    _render(outcome.text, hide_thinking=delivery_cfg.hide_thinking),
                    options.model,
                    subtitle=f"[dim]took {outcome.elapsed:.2f}s{note}[/dim]",
                ),
                refresh=True,
            )
    return outcome


def _read_prompt(prompt: str | None) -> str:
    if prompt is not None:
        return prompt
    if sys.stdin.isatty():
        return ""
    return sys.stdin.read().strip()


@app.command("chat")
def chat_command(
    *,
    prompt: str | None = typer.Argument(
        None,
        help="The message to send. If not provided, reads from stdin.",
    ),
    system: str | None = opts.SYSTEM,
    model: str = opts.MODEL,
    api_key: str | None = opts.API_KEY,
    base_url: str | None = opts.BASE_URL,
    stream: bool = opts.STREAM,
    temperature: float = opts.TEMPERATURE,
    top_p: float | None = opts.TOP_P,
    max_tokens: int | None = opts.MAX_TOKENS,
    timeout: float = opts.REQUEST_TIMEOUT,
    frame_interval: float = opts.FRAME_INTERVAL,
    chunk_divisor: int = opts.CHUNK_DIVISOR,
    hide_thinking: bool = opts.HIDE_THINKING,
    language: str = opts.LANGUAGE,
    log_level: str = opts.LOG_LEVEL,
    log_file: str | None = opts.LOG_FILE,
    quiet: bool = opts.QUIET,
    config_file: str | None = opts.CONFIG_FILE,  # noqa: ARG001
) -> None:
    """Chat with a Spark model, streaming the answer to the terminal."""
    setup_logging(log_level, log_file, quiet=quiet)

    try:
        general_cfg = General(log_level=log_level, log_file=log_file, quiet=quiet, language=language)
        llm_cfg = SparkLLM(
            model=model,
            api_key=api_key,
            base_url=base_url,
            temperature=temperature,
            top_p=top_p,
            max_tokens=max_tokens,
            stream=stream,
            request_timeout=timeout,
        )
        delivery_cfg = Delivery(
            frame_interval=frame_interval,
            chunk_divisor=chunk_divisor,
            hide_thinking=hide_thinking,
        )
    except ValidationError as e:
        print_error_message(str(e))
        raise typer.Exit(2) from e

    text = _read_prompt(prompt)
    if not text:
        print_error_message("No prompt given.", "Pass it as an argument or pipe it on stdin.")
        raise typer.Exit(2)

    options = ChatOptions(
        messages=_build_messages(text, system),
        model=llm_cfg.model,
        stream=llm_cfg.stream,
        temperature=llm_cfg.temperature,
        top_p=llm_cfg.top_p,
        max_tokens=llm_cfg.max_tokens,
    )
    outcome = asyncio.run(_async_chat(options, llm_cfg, delivery_cfg, general_cfg))

    if outcome.error is not None:
        suggestion = None
        if isinstance(outcome.error, Unauthorized):
            suggestion = "Set SPARK_API_KEY or pass --api-key."
        print_error_message(str(outcome.error), suggestion)
        raise typer.Exit(1)
    if outcome.text is None:
        if not quiet:
            print_with_style("⏹️ Cancelled before any output.", style="yellow")
        raise typer.Exit(130)
    if quiet:
        print(_render(outcome.text, hide_thinking=hide_thinking))
