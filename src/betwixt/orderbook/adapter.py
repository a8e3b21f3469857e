"""CLOB /book -> OrderBook, with a synthetic placeholder book when the CLOB is unavailable."""

from __future__ import annotations

import random

import httpx
import structlog

from betwixt.ingestion.base import OrderBookSource
from betwixt.ingestion.polymarket.normalize import parse_book_levels
from betwixt.models.orderbook import OrderBook, PriceLevel

log = structlog.get_logger(__name__)

SYNTHETIC_LEVELS = 10


def synthetic_book(rng: random.Random | None = None) -> OrderBook:
    """Plausible two-sided book around 0.5: 10 levels per side, 0.02 apart, random sizes."""
    rng = rng or random.Random()
    bids = [
        PriceLevel(price=0.5 - i * 0.02 + rng.random() * 0.01, size=rng.random() * 1000 + 100)
        for i in range(SYNTHETIC_LEVELS)
    ]
    asks = [
        PriceLevel(price=0.5 + i * 0.02 + rng.random() * 0.01, size=rng.random() * 1000 + 100)
        for i in range(SYNTHETIC_LEVELS)
    ]
    return sorted_book(bids, asks, synthetic=True)


def sorted_book(bids: list[PriceLevel], asks: list[PriceLevel], synthetic: bool = False) -> OrderBook:
    return OrderBook(
        bids=sorted(bids, key=lambda lev: lev.price, reverse=True),
        asks=sorted(asks, key=lambda lev: lev.price),
        synthetic=synthetic,
    )


async def fetch_order_book(
    source: OrderBookSource,
    token_id: str | None,
    rng: random.Random | None = None,
) -> OrderBook | None:
    """Order book for a CLOB token. None without a token id."""
    if not token_id:
        return None
    try:
        payload = await source.book(token_id)
    except (httpx.HTTPError, ValueError) as e:
        log.warning("order_book_fetch_failed", token_id=token_id, error=str(e))
        return synthetic_book(rng)
    return sorted_book(
        parse_book_levels(payload.get("bids")),
        parse_book_levels(payload.get("asks")),
    )
