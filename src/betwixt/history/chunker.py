"""Price history over long windows: split into CLOB-safe chunks, fetch concurrently, stitch.

The CLOB caps the time range of a single /prices-history request by fidelity
(hourly points: about 2 days; daily points: about 15 days), so longer periods
are fetched as consecutive sub-windows and merged.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from betwixt.ingestion.base import PriceHistorySource
from betwixt.ingestion.polymarket.normalize import normalize_history_point
from betwixt.models.history import PriceHistory, PriceHistoryPoint

log = structlog.get_logger(__name__)

DAY_SEC = 86400
SYNTHETIC_POINTS = 50


@dataclass(frozen=True)
class PeriodConfig:
    fidelity: int  # minutes per point
    days: int
    chunk_days: int  # max days per request at this fidelity


PERIODS: dict[str, PeriodConfig] = {
    "24h": PeriodConfig(fidelity=60, days=1, chunk_days=1),
    "7d": PeriodConfig(fidelity=1440, days=7, chunk_days=14),
    "30d": PeriodConfig(fidelity=1440, days=30, chunk_days=14),
    "all": PeriodConfig(fidelity=1440, days=60, chunk_days=14),
}
DEFAULT_PERIOD = "7d"


def resolve_period(period: str | None) -> tuple[str, PeriodConfig]:
    """Unknown periods fall back to 7d."""
    if period in PERIODS:
        return period, PERIODS[period]
    return DEFAULT_PERIOD, PERIODS[DEFAULT_PERIOD]


def chunk_windows(start_ts: int, end_ts: int, chunk_sec: int) -> list[tuple[int, int]]:
    """Consecutive [start, end] windows of at most chunk_sec; neighbours share a boundary instant."""
    windows = []
    cursor = start_ts
    while cursor < end_ts:
        chunk_end = min(cursor + chunk_sec, end_ts)
        windows.append((cursor, chunk_end))
        cursor = chunk_end
    return windows


def merge_points(chunks: list[list[Any]]) -> list[PriceHistoryPoint]:
    """Normalize chunk payloads in order, keeping the first point seen per timestamp, sorted by t."""
    seen: set[int] = set()
    merged: list[PriceHistoryPoint] = []
    for chunk in chunks:
        for payload in chunk:
            point = normalize_history_point(payload)
            if point is None or point.t in seen:
                continue
            seen.add(point.t)
            merged.append(point)
    merged.sort(key=lambda pt: pt.t)
    return merged


def synthetic_series(
    end_ts: int, days: int, rng: random.Random | None = None
) -> list[PriceHistoryPoint]:
    """Placeholder series: 50 evenly spaced points ending at end_ts, jittered around 0.5, in [0.1, 0.9]."""
    rng = rng or random.Random()
    step = days * DAY_SEC / SYNTHETIC_POINTS
    points = []
    for i in range(SYNTHETIC_POINTS):
        t = int(end_ts - step * i)
        variation = (rng.random() - 0.5) * 0.1
        points.append(PriceHistoryPoint(t=t, p=max(0.1, min(0.9, 0.5 + variation))))
    points.reverse()
    return points


async def _fetch_chunk(
    source: PriceHistorySource,
    token_id: str,
    start_ts: int,
    end_ts: int,
    fidelity: int,
    timeout: float | None,
) -> list[Any]:
    """One window. Failures are logged and count as an empty chunk."""
    try:
        return await asyncio.wait_for(
            source.prices_history(token_id, start_ts, end_ts, fidelity), timeout
        )
    except (httpx.HTTPError, ValueError, asyncio.TimeoutError) as e:
        log.warning(
            "price_history_chunk_failed",
            token_id=token_id,
            start_ts=start_ts,
            end_ts=end_ts,
            error=str(e) or type(e).__name__,
        )
        return []


async def fetch_price_history(
    source: PriceHistorySource,
    token_id: str,
    period: str = DEFAULT_PERIOD,
    *,
    now: int | None = None,
    chunk_timeout: float | None = None,
    rng: random.Random | None = None,
) -> PriceHistory:
    """Price history for a CLOB token over a named period (24h, 7d, 30d, all).

    Falls back to a synthetic series (synthetic=True) when every request comes back empty.
    """
    period, cfg = resolve_period(period)
    if not token_id:
        return PriceHistory(token_id="", period=period)
    end_ts = int(time.time()) if now is None else now
    start_ts = end_ts - cfg.days * DAY_SEC
    if cfg.days <= cfg.chunk_days:
        windows = [(start_ts, end_ts)]
    else:
        windows = chunk_windows(start_ts, end_ts, cfg.chunk_days * DAY_SEC)
    chunks = await asyncio.gather(
        *(
            _fetch_chunk(source, token_id, s, e, cfg.fidelity, chunk_timeout)
            for s, e in windows
        )
    )
    points = merge_points(list(chunks))
    if points:
        return PriceHistory(token_id=token_id, period=period, points=points)
    log.info("price_history_synthetic", token_id=token_id, period=period, chunks=len(windows))
    return PriceHistory(
        token_id=token_id,
        period=period,
        points=synthetic_series(end_ts, cfg.days, rng),
        synthetic=True,
    )
