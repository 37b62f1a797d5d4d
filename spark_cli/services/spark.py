"""Spark chat-completion requests: endpoint, payload, headers, and dispatch."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, Field

from spark_cli.constants import (
    CHAT_PATH,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TOP_P,
    MAX_TOKENS_LIMIT,
    REQUEST_USER,
    SPARK_BASE_URL,
)
from spark_cli.core.controller import StreamCallbacks, StreamController

if TYPE_CHECKING:
    from collections.abc import Callable

    from spark_cli.config import Delivery, SparkLLM

logger = logging.getLogger(__name__)


class ChatOptions(BaseModel):
    """One chat request as the caller describes it."""

    messages: list[dict[str, Any]]
    model: str = DEFAULT_MODEL
    stream: bool = True
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float | None = None
    max_tokens: int | None = Field(default=None, ge=0)


def resolve_base_url(base_url: str | None = None) -> str:
    """Return the endpoint base URL without a trailing slash."""
    url = base_url or SPARK_BASE_URL
    url = url.rstrip("/")
    if not url.startswith("http"):
        url = f"https://{url}"
    return url


def chat_url(base_url: str | None = None) -> str:
    """Full URL of the chat-completion endpoint."""
    url = "/".join([resolve_base_url(base_url), CHAT_PATH])
    logger.debug("Endpoint: %s", url)
    return url


def message_text(message: dict[str, Any]) -> str:
    """Plain text of a message whose content may be a list of typed parts."""
    content = message.get("content")
    if isinstance(content, str):
        return content
    for part in content or []:
        if part.get("type") == "text":
            return part.get("text") or ""
    return ""


def build_chat_payload(options: ChatOptions) -> dict[str, Any]:
    """Build the JSON body for an OpenAI-compatible chat completion."""
    return {
        "model": options.model,
        "messages": [{"role": m["role"], "content": message_text(m)} for m in options.messages],
        "stream": options.stream,
        "user": REQUEST_USER,
        "temperature": options.temperature,
        "top_p": options.top_p or DEFAULT_TOP_P,
        "max_tokens": min(options.max_tokens or MAX_TOKENS_LIMIT, MAX_TOKENS_LIMIT),
    }


def build_headers(api_key: str | None) -> dict[str, str]:
    """Request headers, with a bearer token when an API key is configured."""
    headers = {"Accept": "text/event-stream, application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


async def chat(
    options: ChatOptions,
    llm_cfg: SparkLLM,
    callbacks: StreamCallbacks,
    *,
    delivery_cfg: Delivery | None = None,
    language: str = "en",
    on_controller: Callable[[StreamController], None] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StreamController:
    """Send a chat request and report the outcome through ``callbacks``.

    Args:
        options: Messages and sampling parameters.
        llm_cfg: Endpoint, credentials, and request timeout.
        callbacks: ``on_partial`` / ``on_done`` / ``on_error`` hooks.
        delivery_cfg: Pacing of partial updates.
        language: Language of user-facing error messages.
        on_controller: Receives the controller before the request is sent,
            so the caller can cancel it.
        transport: Optional httpx transport, e.g. for tests.

    Returns:
        The controller that ran the call.

    """
    payload = build_chat_payload(options)
    logger.debug("Request payload: %s", payload)
    kwargs: dict[str, Any] = {"language": language}
    if delivery_cfg is not None:
        kwargs["interval"] = delivery_cfg.frame_interval
        kwargs["divisor"] = delivery_cfg.chunk_divisor
    controller = StreamController(callbacks, **kwargs)
    if on_controller is not None:
        on_controller(controller)

    # Only the wait for the first byte is bounded; the stream may run as long as it needs.
    timeout = httpx.Timeout(llm_cfg.request_timeout, read=None)
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        request = client.build_request(
            "POST",
            chat_url(llm_cfg.base_url),
            json=payload,
            headers=build_headers(llm_cfg.api_key),
        )
        await controller.run(
            lambda: client.send(request, stream=options.stream),
            timeout=llm_cfg.request_timeout,
            stream=options.stream,
        )
    return controller
