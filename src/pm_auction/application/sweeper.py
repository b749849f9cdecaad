"""ExpirationSweeper — periodic background pass closing expired auctions.

One asyncio task per process. Each tick runs a full sweep and only then
sleeps for the configured interval, so sweeps never overlap even when a pass
is slower than the interval. A manual run_once() while a sweep is in flight
is skipped rather than queued.

Failures are logged and swallowed here; the next tick always runs.
"""

import asyncio
import logging

from src.pm_auction.application.service import AuctionService
from src.pm_auction.domain.models import SweepResult

logger = logging.getLogger(__name__)


class ExpirationSweeper:
    def __init__(self, service: AuctionService, interval_seconds: float = 60.0) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}")
        self._service = service
        self._interval = interval_seconds
        self._running = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_started(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_started:
            return
        self._task = asyncio.create_task(self._loop(), name="auction-expiration-sweeper")
        logger.info("Expiration sweeper started (interval=%.0fs)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiration sweeper stopped")

    async def run_once(self) -> SweepResult | None:
        """Run one sweep; returns None if another sweep is still in progress."""
        if self._running.locked():
            logger.warning("Previous auction sweep still running; skipping this tick")
            return None
        async with self._running:
            try:
                return await self._service.close_expired_listings()
            except Exception:
                logger.exception("Auction sweep failed")
                return None

    async def _loop(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval)
