"""Progress feedback shown while a webhook call is in flight.

Two timer-driven side effects run for the lifetime of one remote call:

  - a typing ticker that re-sends the "typing" chat action every few seconds
    (Telegram clears the indicator on its own after ~5s)
  - a one-shot notice, replied to the user if the call is still running after
    a longer delay

Both live in ProgressFeedback, an async context manager. Leaving the ``async
with`` block — normally or by exception — cancels both tasks and waits for
them, so a ticker can never outlive the mention that started it.

Usage:
    async with ProgressFeedback(send_typing, send_notice):
        reply = await client.send(request)
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from types import TracebackType

logger = logging.getLogger(__name__)

DEFAULT_TYPING_INTERVAL_SECONDS: float = 5.0
DEFAULT_SLOW_NOTICE_SECONDS: float = 20.0


class ProgressFeedback:
    """Typing ticker plus slow-response notice, scoped to one remote call.

    Args:
        send_typing: Coroutine factory issuing one "typing" chat action.
        send_notice: Coroutine factory sending the "still working" message.
        typing_interval: Seconds between typing actions. The first is sent
            immediately on entry rather than after one interval, so even a
            fast reply shows the indicator.
        notice_delay: Seconds before the notice fires (once).
    """

    def __init__(
        self,
        send_typing: Callable[[], Awaitable[object]],
        send_notice: Callable[[], Awaitable[object]],
        *,
        typing_interval: float = DEFAULT_TYPING_INTERVAL_SECONDS,
        notice_delay: float = DEFAULT_SLOW_NOTICE_SECONDS,
    ) -> None:
        self._send_typing = send_typing
        self._send_notice = send_notice
        self._typing_interval = typing_interval
        self._notice_delay = notice_delay
        self._tasks: list[asyncio.Task[None]] = []
        self.notice_sent = False

    async def _typing_loop(self) -> None:
        while True:
            try:
                await self._send_typing()
            except Exception:
                logger.warning("Typing indicator failed — stopping ticker", exc_info=True)
                return
            await asyncio.sleep(self._typing_interval)

    async def _notice_after_delay(self) -> None:
        await asyncio.sleep(self._notice_delay)
        try:
            await self._send_notice()
        except Exception:
            logger.warning("Failed to send slow-response notice", exc_info=True)
            return
        self.notice_sent = True

    @property
    def active(self) -> bool:
        """True while either timer task is still running."""
        return any(not task.done() for task in self._tasks)

    async def __aenter__(self) -> ProgressFeedback:
        self._tasks = [
            asyncio.create_task(self._typing_loop()),
            asyncio.create_task(self._notice_after_delay()),
        ]
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        for task in self._tasks:
            task.cancel()
        # Raises if the caller itself is cancelled while the timers wind down.
        await asyncio.gather(*self._tasks, return_exceptions=True)
