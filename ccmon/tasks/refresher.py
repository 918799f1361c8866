"""Periodic dashboard refresh background task."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger("ccmon.tasks")


class AutoRefresher:
    """
    Runs ``refresh_fn`` every ``interval_seconds`` until stopped.

    ``stop()`` cancels the sleep between iterations; a refresh already in
    flight is shielded and finishes in the background, its failure logged.
    """

    def __init__(self, refresh_fn: Callable[[], Awaitable[object]], interval_seconds: float = 15):
        self.refresh_fn = refresh_fn
        self.interval_seconds = interval_seconds
        self.iterations = 0
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Future] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        logger.info(f"Auto-refresh: every {self.interval_seconds}s")
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Auto-refresh: stopped")

    async def run_once(self) -> None:
        refresh = asyncio.ensure_future(self.refresh_fn())
        self._in_flight = refresh
        try:
            await asyncio.shield(refresh)
        except asyncio.CancelledError:
            # Nobody awaits the refresh any more
            refresh.add_done_callback(self._detached_refresh_done)
            raise
        except Exception as e:
            logger.error(f"Auto-refresh: iteration failed: {e}")
        finally:
            self.iterations += 1

    def _detached_refresh_done(self, refresh: asyncio.Future) -> None:
        if refresh is self._in_flight:
            self._in_flight = None
        if refresh.cancelled():
            return
        error = refresh.exception()
        if error is not None:
            logger.error(f"Auto-refresh: background refresh failed after stop: {error}")

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)
