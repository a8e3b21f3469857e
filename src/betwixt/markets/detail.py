"""Single-market detail: Gamma lookup, event enrichment, then history and book in parallel."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import httpx
import structlog
from pydantic import ValidationError

from betwixt.history.chunker import DEFAULT_PERIOD, fetch_price_history
from betwixt.ingestion.base import MarketSource, OrderBookSource, PriceHistorySource
from betwixt.ingestion.polymarket.normalize import normalize_market
from betwixt.markets.aggregator import validate_events
from betwixt.models.history import PriceHistory
from betwixt.models.market import MarketDetails, RawEvent, RawMarket
from betwixt.models.orderbook import OrderBook
from betwixt.orderbook.adapter import fetch_order_book

log = structlog.get_logger(__name__)


@dataclass
class MarketView:
    details: MarketDetails
    history: PriceHistory
    order_book: OrderBook | None


async def _lookup_market(source: MarketSource, market_id: str) -> dict | None:
    """Direct route first; the id search is the fallback and its failure propagates."""
    try:
        return await source.get_market(market_id)
    except (httpx.HTTPError, ValueError) as e:
        log.info("market_lookup_fallback", market_id=market_id, error=str(e))
    rows = await source.search_markets(market_id, limit=1)
    return rows[0] if rows else None


async def _lookup_event(source: MarketSource, market: RawMarket) -> RawEvent | None:
    """Owning event by nested event id, else by condition id. Lookup failures are tolerated."""
    lookups = []
    event_id = (market.events or [{}])[0].get("id")
    if event_id:
        lookups.append({"event_id": str(event_id)})
    if market.condition_id:
        lookups.append({"condition_id": market.condition_id})
    for params in lookups:
        try:
            rows = await source.find_events(limit=1, **params)
        except (httpx.HTTPError, ValueError) as e:
            log.warning("event_lookup_failed", market_id=market.id, error=str(e), **params)
            continue
        events = validate_events(rows)
        if events:
            return events[0]
    return None


async def fetch_market_details(source: MarketSource, market_id: str) -> MarketDetails | None:
    """MarketDetails for one market id, or None when Gamma does not know it."""
    raw = await _lookup_market(source, market_id)
    if not raw:
        return None
    try:
        market = RawMarket.model_validate(raw)
    except ValidationError as e:
        log.warning("skip_market", market_id=market_id, error=str(e))
        return None
    event = await _lookup_event(source, market)

    start_date = market.start_date or (event.start_date if event else None)
    end_date = market.end_date or (event.end_date if event else None)
    if event is not None and event.tags is not None:
        tags = event.tags
    else:
        tags = market.tags or []
    processed = normalize_market(
        market.model_copy(update={"start_date": start_date, "end_date": end_date, "tags": tags})
    )
    data = processed.model_dump(by_alias=True)
    data.update(
        description=market.description or (event.description if event else None),
        volume24hr=market.volume24hr or "0",
        liquidity=market.liquidity or "0",
    )
    if event is not None and event.title and not processed.event_title:
        data["eventTitle"] = event.title
    return MarketDetails.model_validate(data)


async def load_market_view(
    markets: MarketSource,
    history_source: PriceHistorySource,
    book_source: OrderBookSource,
    market_id: str,
    period: str = DEFAULT_PERIOD,
    chunk_timeout: float | None = None,
) -> MarketView | None:
    """Details plus price history and order book for the market's first CLOB token."""
    details = await fetch_market_details(markets, market_id)
    if details is None:
        return None
    token_id = details.token_ids[0] if details.token_ids else ""
    history, book = await asyncio.gather(
        fetch_price_history(history_source, token_id, period, chunk_timeout=chunk_timeout),
        fetch_order_book(book_source, token_id),
    )
    details.price_history = history.points
    return MarketView(details=details, history=history, order_book=book)
