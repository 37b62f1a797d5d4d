"""Error types raised while talking to the Spark chat endpoint.

Every failure that ends a chat call is a :class:`SparkError`. The stream
controller catches these once and routes them to the caller's error
callback; nothing here is retried.
"""

from __future__ import annotations

import json
from typing import Any

from spark_cli.locales import DEFAULT_LANGUAGE, get_message


class SparkError(Exception):
    """Base class for all chat call failures."""


class TransportError(SparkError):
    """The connection failed or timed out before the first byte arrived."""


class ProtocolError(SparkError):
    """The server answered with an unexpected status or content type."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class Unauthorized(ProtocolError):
    """The server rejected the credentials (HTTP 401)."""


class ApplicationError(SparkError):
    """A decoded payload carried a non-zero error code."""

    def __init__(
        self,
        code: Any,
        message: str | None = None,
        *,
        language: str = DEFAULT_LANGUAGE,
    ) -> None:
        self.code = code
        self.message = message
        prefix = get_message("api_error", language)
        detail = message or get_message("unknown_error", language)
        label = get_message("error_code", language)
        super().__init__(f"{prefix}: {detail} ({label}: {code})")


class DecodeError(SparkError):
    """An event payload was neither valid JSON nor the completion sentinel."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"Failed to parse response: {raw}")


def pretty_object(obj: Any) -> str:
    """Render a decoded JSON body as a fenced ``json`` block for display."""
    text = obj if isinstance(obj, str) else json.dumps(obj, indent=2, ensure_ascii=False)
    if text == "{}":
        return str(obj)
    if text.startswith("```json"):
        return text
    return f"```json\n{text}\n```"
