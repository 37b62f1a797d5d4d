"""Fakes for the HTTP transport and the stream callbacks."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Self

from spark_cli.core.controller import StreamCallbacks


class Recorder:
    """Collects every callback a stream controller fires."""

    def __init__(self) -> None:
        self.partials: list[tuple[str, str]] = []
        self.done: list[tuple[str, Any]] = []
        self.errors: list[Exception] = []

    def on_partial(self, text: str, fragment: str) -> None:
        self.partials.append((text, fragment))

    def on_done(self, text: str, metadata: Any) -> None:
        self.done.append((text, metadata))

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)

    @property
    def callbacks(self) -> StreamCallbacks:
        return StreamCallbacks(
            on_done=self.on_done,
            on_partial=self.on_partial,
            on_error=self.on_error,
        )

    @property
    def terminal_count(self) -> int:
        return len(self.done) + len(self.errors)


class DummyStreamResponse:
    """httpx.Response stand-in that yields SSE lines and can hang at the end."""

    def __init__(
        self,
        lines: list[str] | None = None,
        *,
        status_code: int = 200,
        content_type: str = "text/event-stream",
        body: bytes = b"",
        hang: bool = False,
    ) -> None:
        self._lines = lines or []
        self.status_code = status_code
        self.headers = {"content-type": content_type}
        self._body = body
        self._hang = hang
        self.closed = False

    async def aiter_lines(self) -> Any:
        for line in self._lines:
            yield line
        if self._hang:
            await asyncio.Event().wait()

    async def aread(self) -> bytes:
        return self._body

    @property
    def text(self) -> str:
        return self._body.decode(errors="ignore")

    def json(self) -> Any:
        return json.loads(self._body)

    async def aclose(self) -> None:
        self.closed = True

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *_args: object) -> None:
        await self.aclose()


def sse_lines(*payloads: str) -> list[str]:
    """Frame payloads as SSE lines, each event followed by a blank line."""
    lines: list[str] = []
    for payload in payloads:
        lines.extend([f"data: {payload}", ""])
    return lines


def sender(response: Any) -> Any:
    """A ``send`` factory for StreamController.run that returns ``response``."""

    async def send() -> Any:
        return response

    return send
