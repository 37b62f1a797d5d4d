"""Assemble decoded deltas into displayable text with thinking blocks.

Reasoning fragments are wrapped in ``<think>`` markers so downstream
consumers can tell the model's narrative apart from its answer. Every block
that is opened is closed again, whether the stream moves on to content,
reports usage, or ends abruptly.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from spark_cli.constants import HIDE_CONTINUE, THINK_CLOSE, THINK_OPEN
from spark_cli.core.errors import ApplicationError
from spark_cli.core.sse import expect_shape, is_error_code
from spark_cli.locales import DEFAULT_LANGUAGE

if TYPE_CHECKING:
    from spark_cli.core.sse import Delta

logger = logging.getLogger(__name__)

_THINK_BLOCK_RE = re.compile(
    re.escape(THINK_OPEN) + r".*?(?:" + re.escape(THINK_CLOSE) + r"|\Z)",
    re.DOTALL,
)


@dataclass
class AssemblerState:
    """Text produced so far, split at the delivery cursor.

    ``delivered_text + pending_text`` is always the full assembled text.
    """

    delivered_text: str = ""
    pending_text: str = ""
    is_thinking: bool = False
    finished: bool = False

    @property
    def text(self) -> str:
        """Everything assembled so far, delivered or not."""
        return self.delivered_text + self.pending_text


class StreamAssembler:
    """Apply deltas, in arrival order, to an :class:`AssemblerState`."""

    def __init__(
        self,
        state: AssemblerState | None = None,
        *,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.state = state if state is not None else AssemblerState()
        self.language = language

    def apply(self, delta: Delta) -> None:
        """Fold one delta into the state.

        Raises:
            ApplicationError: If the delta carries a non-zero error code.
                The state is marked finished first.

        """
        state = self.state
        if state.finished:
            return

        if delta.error_code:
            state.finished = True
            raise ApplicationError(delta.error_code, delta.error_message, language=self.language)

        if delta.reasoning:
            if not state.is_thinking:
                state.is_thinking = True
                state.pending_text += THINK_OPEN + delta.reasoning
            else:
                state.pending_text += delta.reasoning
            # Reasoning wins over content in the same delta.
            return

        if delta.content:
            if state.is_thinking:
                state.is_thinking = False
                state.pending_text += THINK_CLOSE
            state.pending_text += delta.content

        if delta.usage is not None:
            self.close()

        if delta.finish:
            state.finished = True

    def close(self) -> None:
        """Terminate an open thinking block."""
        if self.state.is_thinking:
            self.state.is_thinking = False
            self.state.pending_text += THINK_CLOSE


def merge_message(
    body: dict[str, Any],
    *,
    language: str = DEFAULT_LANGUAGE,
    raw: str | None = None,
) -> str:
    """Build the final text of a non-streaming response body.

    Raises:
        ApplicationError: If the body carries a non-zero error code.
        DecodeError: If the body does not have the shape of a chat
            completion. The error keeps ``raw``, or the body re-encoded.

    """
    if raw is None:
        raw = json.dumps(body, ensure_ascii=False)

    code = body.get("code")
    if is_error_code(code):
        raise ApplicationError(code, body.get("message"), language=language)

    choices = expect_shape(body.get("choices") or [], list, raw)
    choice = expect_shape(choices[0] if choices else {}, dict, raw)
    message = expect_shape(choice.get("message") or {}, dict, raw)

    suggest = expect_shape(message.get("security_suggest") or {}, dict, raw)
    if suggest.get("action") == HIDE_CONTINUE:
        logger.info("Part of the response was hidden by safety review: %s", suggest)

    text = ""
    reasoning = expect_shape(message.get("reasoning_content") or "", str, raw)
    if reasoning:
        text += THINK_OPEN + reasoning + THINK_CLOSE
    text += expect_shape(message.get("content") or "", str, raw)
    return text


def strip_thinking(text: str) -> str:
    """Remove thinking blocks, including an unterminated trailing one."""
    return _THINK_BLOCK_RE.sub("", text)
