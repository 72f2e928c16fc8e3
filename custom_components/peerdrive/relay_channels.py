"""
RelayChannels — at most one relay call in flight per channel.

The coordinator has two channels, "send" and "receive". A tier that finds its
channel busy skips its turn instead of queueing behind a slow relay, so stale
telemetry never piles up. Pure asyncio, no HA or network dependencies.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

_LOGGER = logging.getLogger(__name__)


class RelayChannels:

    def __init__(self) -> None:
        # channel → task of the call currently running on it
        self._tasks: dict[str, asyncio.Task] = {}

    def is_busy(self, channel: str) -> bool:
        task = self._tasks.get(channel)
        return task is not None and not task.done()

    async def run(self, channel: str, call: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run call() on the channel and return its result.

        Callers check is_busy() first; running on a busy channel is a bug and
        raises RuntimeError. Exceptions from call() propagate unchanged.
        """
        if self.is_busy(channel):
            raise RuntimeError(f"Relay channel {channel} is busy")
        task = asyncio.ensure_future(call())
        self._tasks[channel] = task
        try:
            return await task
        finally:
            if self._tasks.get(channel) is task:
                del self._tasks[channel]

    async def shutdown(self) -> None:
        """Cancel every call still in flight."""
        running = [task for task in self._tasks.values() if not task.done()]
        for task in running:
            task.cancel()
        if running:
            _LOGGER.debug("Cancelling %s relay calls", len(running))
            await asyncio.gather(*running, return_exceptions=True)
        self._tasks.clear()
