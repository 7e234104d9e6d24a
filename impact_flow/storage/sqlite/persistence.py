"""Debounced persistence of the embedded database image."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_PERSIST_DELAY = 0.1


class PersistScheduler:
    """Coalesces bursts of mutations into one durable write.

    At most one timer is pending; scheduling again replaces it. ``flush`` cancels
    the timer and performs the write before returning.
    """

    def __init__(self, persist: Callable[[], Awaitable[None]], delay: float = DEFAULT_PERSIST_DELAY) -> None:
        self._persist = persist
        self.delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None
        self._running: Optional[asyncio.Task] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, delay: float | None = None) -> None:
        if self._handle is not None:
            self._handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.delay if delay is None else delay, self._fire)

    def cancel(self) -> bool:
        """Drop the pending timer. Returns True if a write was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self) -> None:
        self._handle = None
        self._running = asyncio.ensure_future(self._run())

    async def _run(self) -> None:
        try:
            await self._persist()
        except Exception:
            # Nobody awaits a timer-driven write; the next mutation schedules another
            logger.exception("Debounced database persist failed")

    async def flush(self) -> None:
        if self._running is not None and not self._running.done():
            await self._running
        if self.cancel():
            await self._persist()
