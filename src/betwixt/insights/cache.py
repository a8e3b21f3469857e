"""Per-market insight text cache with a fixed TTL. Entries expire lazily on read."""

from __future__ import annotations

import time
from typing import Callable

from cachetools import TTLCache


class InsightCache:
    """Bounded TTL cache keyed by market id."""

    def __init__(
        self,
        ttl_sec: float = 300.0,
        maxsize: int = 512,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TTLCache[str, str] = TTLCache(maxsize=maxsize, ttl=ttl_sec, timer=timer)

    def get(self, market_id: str) -> str | None:
        return self._cache.get(market_id)

    def set(self, market_id: str, text: str) -> None:
        self._cache[market_id] = text

    def __len__(self) -> int:
        return len(self._cache)
