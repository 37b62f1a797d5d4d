"""Server-sent event framing and chat-completion event decoding."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from spark_cli.constants import (
    DATA_PREFIX,
    DONE_SENTINEL,
    HIDE_CONTINUE,
    STATUS_COMPLETE,
)
from spark_cli.core.errors import DecodeError

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delta:
    """One decoded increment of model output."""

    role: str | None = None
    content: str = ""
    reasoning: str = ""
    error_code: Any = None
    error_message: str | None = None
    finish: bool = False
    usage: dict[str, Any] | None = None

    @property
    def is_noop(self) -> bool:
        """Whether applying this delta can change any state."""
        return (
            not self.content
            and not self.reasoning
            and not self.error_code
            and not self.finish
            and self.usage is None
        )


NOOP = Delta()


async def iter_sse_data(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Yield the ``data`` payload of each event in a stream of SSE lines.

    Multi-line ``data`` fields are joined with newlines, comment lines and
    other fields (``event``, ``id``, ``retry``) are skipped, and an event
    is dispatched on the blank line that terminates it. A trailing event
    without a final blank line is still delivered.
    """
    buffer: list[str] = []
    async for line in lines:
        line = line.rstrip("\r")  # noqa: PLW2901
        if not line:
            if buffer:
                yield "\n".join(buffer)
                buffer.clear()
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field != "data":
            continue
        buffer.append(value.removeprefix(" "))
    if buffer:
        yield "\n".join(buffer)


def parse_chunk(text: str, raw: str) -> dict[str, Any]:
    """Parse one event payload, already stripped of framing, into a JSON object.

    Raises:
        DecodeError: If the payload is not a JSON object. The error keeps
            the unstripped ``raw`` text for diagnostics.

    """
    try:
        chunk = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Parse error: %s", raw)  # noqa: TRY400
        raise DecodeError(raw) from exc
    if not isinstance(chunk, dict):
        logger.error("Unexpected event payload: %s", raw)
        raise DecodeError(raw)
    return chunk


def is_error_code(code: Any) -> bool:
    """Whether a payload ``code`` field signals an application error.

    The server sends ``0`` (sometimes as the string ``"0"``) on success; a
    missing or empty code is success too.
    """
    if code is None or code == "":
        return False
    try:
        return int(code) != 0
    except (TypeError, ValueError):
        return True


def expect_shape(value: Any, kind: type | tuple[type, ...], raw: str) -> Any:
    """Return ``value`` if it is a ``kind``, else raise :class:`DecodeError`."""
    if not isinstance(value, kind):
        logger.error("Unexpected event shape: %s", raw)
        raise DecodeError(raw)
    return value


def decode_event(raw: str) -> Delta:
    """Turn one raw SSE payload into a :class:`Delta`.

    Raises:
        DecodeError: If the payload is not JSON or does not have the shape
            of a chat-completion chunk.

    """
    if not raw or not raw.strip():
        return NOOP

    text = raw.strip()
    if text.startswith(DATA_PREFIX):
        text = text[len(DATA_PREFIX) :].strip()
    if not text:
        return NOOP
    if text == DONE_SENTINEL:
        return Delta(finish=True)

    chunk = parse_chunk(text, raw)

    code = chunk.get("code")
    if is_error_code(code):
        logger.error("API error: %s", chunk)
        return Delta(error_code=code, error_message=chunk.get("message"))

    choices = expect_shape(chunk.get("choices") or [], list, raw)
    choice = expect_shape(choices[0] if choices else {}, dict, raw)
    delta = expect_shape(choice.get("delta") or {}, dict, raw)

    suggest = expect_shape(delta.get("security_suggest") or {}, dict, raw)
    if suggest.get("action") == HIDE_CONTINUE:
        logger.info("Content hidden by safety review, continuing: %s", suggest)
        return NOOP

    usage = expect_shape(chunk.get("usage") or {}, dict, raw) or None
    if usage:
        logger.debug("Usage: %s", usage)

    role = delta.get("role")
    return Delta(
        role=role if isinstance(role, str) else None,
        content=expect_shape(delta.get("content") or "", str, raw),
        reasoning=expect_shape(delta.get("reasoning_content") or "", str, raw),
        finish=bool(choice.get("finish_reason")) or chunk.get("status") == STATUS_COMPLETE,
        usage=usage,
    )
