"""Throttled delivery of assembled text.

Network chunks arrive in bursts. The scheduler hands text to the consumer on
a steady cadence instead: every tick moves a slice of the pending buffer to
the delivered text, sized proportionally to the backlog so a long backlog
drains quickly and a short one trickles out smoothly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from spark_cli.constants import CHUNK_DIVISOR, FRAME_INTERVAL

if TYPE_CHECKING:
    from collections.abc import Callable

    from spark_cli.core.session import StreamSession

logger = logging.getLogger(__name__)


class DeliveryScheduler:
    """Drain a session's pending text at a bounded rate."""

    def __init__(
        self,
        session: StreamSession,
        *,
        on_drained: Callable[[], None],
        on_partial: Callable[[str, str], None] | None = None,
        interval: float = FRAME_INTERVAL,
        divisor: int = CHUNK_DIVISOR,
    ) -> None:
        if interval < 0:
            msg = f"interval must be non-negative, got {interval}"
            raise ValueError(msg)
        if divisor < 1:
            msg = f"divisor must be at least 1, got {divisor}"
            raise ValueError(msg)
        self.session = session
        self.interval = interval
        self.divisor = divisor
        self._on_drained = on_drained
        self._on_partial = on_partial
        self._task: asyncio.Task[None] | None = None
        self._drained = False

    @property
    def drained(self) -> bool:
        """Whether the terminal drain has happened."""
        return self._drained

    def chunk_size(self, remaining: int) -> int:
        """Number of characters to deliver from a backlog of ``remaining``."""
        return max(1, round(remaining / self.divisor))

    def tick(self) -> bool:
        """Deliver one slice of pending text.

        Returns:
            True once the session has been drained and no further tick is
            needed.

        """
        if self._drained:
            return True
        state = self.session.state

        if self.session.draining:
            state.delivered_text += state.pending_text
            state.pending_text = ""
            self._drained = True
            logger.debug("Delivery finished with %d characters", len(state.delivered_text))
            self._on_drained()
            return True

        if state.pending_text:
            count = self.chunk_size(len(state.pending_text))
            chunk = state.pending_text[:count]
            state.delivered_text += chunk
            state.pending_text = state.pending_text[count:]
            if self._on_partial is not None:
                self._on_partial(state.delivered_text, chunk)
        return False

    async def _run(self) -> None:
        while not self.tick():
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start ticking on the running event loop."""
        if self._task is None and not self._drained:
            self._task = asyncio.create_task(self._run())

    def stop(self) -> None:
        """Stop ticking without draining."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def join(self) -> None:
        """Wait for the ticking task to end, re-raising callback errors."""
        if self._task is None:
            return
        await asyncio.wait({self._task})
        if not self._task.cancelled():
            self._task.result()
