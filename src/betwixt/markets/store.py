"""In-memory market set with a fixed-interval refresh cycle and a pull-based filtered view."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable

import structlog

from betwixt.markets.filters import TRENDING, apply_filter
from betwixt.models.market import ProcessedMarket

log = structlog.get_logger(__name__)

Loader = Callable[[], Awaitable[list[ProcessedMarket]]]


class MarketStore:
    """Holds the aggregated market set and the current filtered view.

    The aggregated set is replaced as a whole on each successful refresh. A failed
    refresh records the error and leaves the previous data in place.
    """

    def __init__(
        self,
        loader: Loader,
        filter_name: str = TRENDING,
        limit: int = 20,
        refresh_interval_sec: float = 30.0,
    ) -> None:
        self._loader = loader
        self.filter_name = filter_name
        self.limit = limit
        self.refresh_interval_sec = refresh_interval_sec
        self.all_markets: tuple[ProcessedMarket, ...] = ()
        self.markets: list[ProcessedMarket] = []
        self.pending = False
        self.error: Exception | None = None
        self.last_updated: float | None = None  # epoch seconds
        self._refresh_lock = asyncio.Lock()

    def recompute(self) -> list[ProcessedMarket]:
        """Rebuild the filtered view from the current inputs."""
        self.markets = apply_filter(self.all_markets, self.filter_name, self.limit)
        return self.markets

    def view(self, filter_name: str, limit: int) -> list[ProcessedMarket]:
        """Filtered view for ad-hoc inputs without touching stored state."""
        return apply_filter(self.all_markets, filter_name, limit)

    def set_filter(self, filter_name: str) -> list[ProcessedMarket]:
        self.filter_name = filter_name
        return self.recompute()

    def set_limit(self, limit: int) -> list[ProcessedMarket]:
        self.limit = limit
        return self.recompute()

    async def refresh(self) -> bool:
        """Run one aggregation cycle. Returns False (keeping stale data) on failure.

        Cycles are serialized: a caller arriving mid-cycle waits for it, then runs its own.
        """
        async with self._refresh_lock:
            self.pending = True
            self.error = None
            try:
                markets = await self._loader()
            except Exception as e:
                log.error("markets_refresh_failed", error=str(e), kept=len(self.all_markets))
                self.error = e
                return False
            finally:
                self.pending = False
            self.all_markets = tuple(markets)
            self.recompute()
            self.last_updated = time.time()
        log.info("markets_refreshed", total=len(self.all_markets), shown=len(self.markets))
        return True

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Refresh on a fixed interval until stop_event is set. Cycles never overlap."""
        stop = stop_event or asyncio.Event()
        while not stop.is_set():
            await self.refresh()
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.refresh_interval_sec)
            except asyncio.TimeoutError:
                continue
        log.info("markets_refresh_stopped")
