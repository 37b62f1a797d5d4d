"""Per-call stream state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from spark_cli.core.assembler import AssemblerState

if TYPE_CHECKING:
    import httpx

    from spark_cli.core.errors import SparkError


class StreamState(str, Enum):
    """Lifecycle of one chat call."""

    IDLE = "idle"
    OPEN = "open"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset(
    {StreamState.FINALIZING, StreamState.DONE, StreamState.FAILED, StreamState.CANCELLED},
)


@dataclass(frozen=True)
class ResponseMetadata:
    """Status and headers of the HTTP response, kept for diagnostics."""

    status_code: int
    headers: dict[str, str]

    @classmethod
    def from_response(cls, response: httpx.Response) -> ResponseMetadata:
        """Capture the metadata of an HTTP response."""
        return cls(status_code=response.status_code, headers=dict(response.headers))

    @property
    def content_type(self) -> str:
        """The response content type, or an empty string."""
        return self.headers.get("content-type", "")


@dataclass
class StreamSession:
    """Everything one chat call owns. Never shared between calls."""

    state: AssemblerState = field(default_factory=AssemblerState)
    status: StreamState = StreamState.IDLE
    cancelled: bool = False
    metadata: ResponseMetadata | None = None
    error: SparkError | None = None
    # Latched when the terminal callback has been decided.
    terminated: bool = False

    @property
    def draining(self) -> bool:
        """Whether delivery should flush everything and stop."""
        return self.state.finished or self.cancelled
