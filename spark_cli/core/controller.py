"""Drive one chat call from HTTP response to terminal callback.

The controller wires the pieces together::

    transport -> decode_event -> StreamAssembler -> DeliveryScheduler -> caller

and owns the lifecycle (:class:`~spark_cli.core.session.StreamState`). Every
path out of a call, whether a finish signal, the transport closing, a
cancellation or an error, goes through one latch on the session, so the
caller sees exactly one of ``on_done`` / ``on_error``.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from spark_cli.constants import (
    CHUNK_DIVISOR,
    EVENT_STREAM_CONTENT_TYPE,
    FRAME_INTERVAL,
    PLAIN_TEXT_CONTENT_TYPE,
    REQUEST_TIMEOUT,
)
from spark_cli.core.assembler import StreamAssembler, merge_message
from spark_cli.core.errors import (
    DecodeError,
    ProtocolError,
    SparkError,
    TransportError,
    Unauthorized,
    pretty_object,
)
from spark_cli.core.scheduler import DeliveryScheduler
from spark_cli.core.session import (
    TERMINAL_STATES,
    ResponseMetadata,
    StreamSession,
    StreamState,
)
from spark_cli.core.sse import decode_event, iter_sse_data
from spark_cli.locales import DEFAULT_LANGUAGE, get_message

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    SendRequest = Callable[[], Awaitable[httpx.Response]]

logger = logging.getLogger(__name__)


@dataclass
class StreamCallbacks:
    """Caller hooks for one chat call."""

    on_done: Callable[[str, ResponseMetadata | None], None]
    on_partial: Callable[[str, str], None] | None = None
    on_error: Callable[[SparkError], None] | None = None


class StreamController:
    """Run a single chat call and report its outcome exactly once."""

    def __init__(
        self,
        callbacks: StreamCallbacks,
        *,
        interval: float = FRAME_INTERVAL,
        divisor: int = CHUNK_DIVISOR,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.callbacks = callbacks
        self.language = language
        self.session = StreamSession()
        self.assembler = StreamAssembler(self.session.state, language=language)
        self.scheduler = DeliveryScheduler(
            self.session,
            on_drained=self._on_drained,
            on_partial=callbacks.on_partial,
            interval=interval,
            divisor=divisor,
        )
        self._reader: asyncio.Task[None] | None = None

    @property
    def status(self) -> StreamState:
        """Current lifecycle state."""
        return self.session.status

    @property
    def text(self) -> str:
        """All text assembled so far, delivered or not."""
        return self.session.state.text

    def _transition(self, status: StreamState) -> None:
        logger.debug("Stream %s -> %s", self.session.status, status)
        self.session.status = status

    # --- Driving a call ---

    async def run(
        self,
        send: SendRequest,
        *,
        timeout: float = REQUEST_TIMEOUT,
        stream: bool = True,
    ) -> None:
        """Send the request and process the response until the call ends.

        Args:
            send: Coroutine factory that performs the request and returns the
                response once its headers have arrived.
            timeout: Bound on the time to first byte, in seconds. Reading the
                stream afterwards is not bounded.
            stream: Whether to consume the response as an event stream or as
                a single JSON body.

        """
        if self.session.status is StreamState.CANCELLED:
            return
        if self.session.status is not StreamState.IDLE:
            msg = "A StreamController drives a single call"
            raise RuntimeError(msg)

        self._transition(StreamState.OPEN)
        self.scheduler.start()
        self._reader = asyncio.create_task(self._read(send, timeout, stream=stream))
        try:
            await asyncio.wait({self._reader})
        finally:
            if not self._reader.done():
                # Our own task was cancelled: settle the outcome before it propagates.
                self.cancel()
                self._reader.cancel()
                self.scheduler.tick()
                self.scheduler.stop()

        if not self._reader.cancelled() and (exc := self._reader.exception()) is not None:
            self.scheduler.stop()
            raise exc
        await self.scheduler.join()

    async def _read(self, send: SendRequest, timeout: float, *, stream: bool) -> None:
        response: httpx.Response | None = None
        try:
            response = await self._open(send, timeout)
            if stream:
                await self._consume_stream(response)
            else:
                await self._consume_body(response)
        except SparkError as exc:
            self.fail(exc)
        except httpx.HTTPError as exc:
            self.fail(TransportError(str(exc) or type(exc).__name__))
        finally:
            if response is not None:
                await response.aclose()

    async def _open(self, send: SendRequest, timeout: float) -> httpx.Response:
        try:
            response = await asyncio.wait_for(send(), timeout)
        except TimeoutError as exc:
            logger.warning("Request timed out, aborting")
            raise TransportError(get_message("timeout", self.language, timeout=timeout)) from exc
        self.session.metadata = ResponseMetadata.from_response(response)
        logger.debug("Response content type: %s", self.session.metadata.content_type)
        self._transition(StreamState.STREAMING)
        return response

    async def _consume_stream(self, response: httpx.Response) -> None:
        if not await self.on_open(response):
            return
        async with contextlib.aclosing(iter_sse_data(response.aiter_lines())) as events:
            async for data in events:
                self.feed(data)
                if self.session.state.finished:
                    break
        self.end()

    async def _consume_body(self, response: httpx.Response) -> None:
        await response.aread()
        if response.status_code != 200:  # noqa: PLR2004
            raise await self._protocol_error(response)
        try:
            body = response.json()
        except ValueError as exc:
            raise DecodeError(response.text) from exc
        if not isinstance(body, dict):
            raise DecodeError(response.text)
        self.session.state.pending_text += merge_message(body, language=self.language, raw=response.text)
        self._finalize()

    async def on_open(self, response: httpx.Response) -> bool:
        """Inspect the first response metadata.

        Returns:
            True if the response is an event stream to consume. A plain-text
            response is read whole and finalizes the call.

        Raises:
            ProtocolError: On a non-200 status or an unexpected content type.

        """
        content_type = response.headers.get("content-type", "")
        ok = response.status_code == 200  # noqa: PLR2004
        if ok and content_type.startswith(PLAIN_TEXT_CONTENT_TYPE):
            await response.aread()
            self.session.state.pending_text += response.text
            self._finalize()
            return False
        if not ok or not content_type.startswith(EVENT_STREAM_CONTENT_TYPE):
            raise await self._protocol_error(response)
        return True

    async def _protocol_error(self, response: httpx.Response) -> ProtocolError:
        status = response.status_code
        if status == 401:  # noqa: PLR2004
            info = get_message("unauthorized", self.language)
            return Unauthorized(f"Request failed with status {status}: {info}", status_code=status)
        await response.aread()
        info = response.text
        with contextlib.suppress(ValueError):
            info = pretty_object(json.loads(info))
        return ProtocolError(f"Request failed with status {status}: {info}", status_code=status)

    # --- Events from the transport ---

    def feed(self, raw: str) -> None:
        """Decode one raw event and apply it in arrival order."""
        session = self.session
        if session.terminated or session.cancelled or session.state.finished:
            return
        try:
            delta = decode_event(raw)
            if delta.is_noop:
                return
            self.assembler.apply(delta)
        except SparkError as exc:
            self.fail(exc)
            return
        if session.state.finished:
            logger.debug("Finish signal received")
            self._finalize()

    def end(self) -> None:
        """Handle the transport's end-of-stream notification."""
        self._finalize()

    def fail(self, error: SparkError) -> None:
        """End the call with ``error``. Ignored once the outcome is decided."""
        session = self.session
        if session.terminated:
            return
        session.terminated = True
        session.error = error
        session.state.finished = True
        self.assembler.close()
        self._transition(StreamState.FAILED)
        self.scheduler.stop()
        logger.error("Chat request failed: %s", error)
        if self.callbacks.on_error is not None:
            self.callbacks.on_error(error)

    def cancel(self) -> None:
        """Abort the call, keeping any text that was already decoded."""
        session = self.session
        if session.cancelled or session.status in TERMINAL_STATES:
            return
        session.cancelled = True
        logger.info("Stream cancelled")
        if self._reader is not None and not self._reader.done():
            self._reader.cancel()
        self.assembler.close()
        self._transition(StreamState.CANCELLED)

    # --- Termination ---

    def _finalize(self) -> None:
        if self.session.status in TERMINAL_STATES:
            return
        self.assembler.close()
        self.session.state.finished = True
        self._transition(StreamState.FINALIZING)

    def _on_drained(self) -> None:
        session = self.session
        if session.terminated:
            return
        session.terminated = True
        text = session.state.delivered_text
        if session.cancelled:
            if not text:
                logger.info("Stream cancelled before any output")
                return
        else:
            self._transition(StreamState.DONE)
        self.callbacks.on_done(text, session.metadata)
