"""Merge the flat market list and event-nested markets into one de-duplicated ProcessedMarket set."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

import httpx
import structlog
from pydantic import ValidationError

from betwixt.ingestion.base import MarketSource
from betwixt.ingestion.polymarket.normalize import normalize_market
from betwixt.models.market import ProcessedMarket, RawEvent, RawMarket

log = structlog.get_logger(__name__)

# Event fields that may fill gaps on a flat market record.
_BACKFILL_FIELDS = ("start_date", "end_date", "description")


def validate_markets(rows: Iterable[dict[str, Any]]) -> list[RawMarket]:
    """Validate raw Gamma market rows, skipping (and logging) records without a usable id."""
    markets = []
    for row in rows:
        try:
            markets.append(RawMarket.model_validate(row))
        except ValidationError as e:
            log.warning("skip_market", market_id=row.get("id") if isinstance(row, dict) else None, error=str(e))
    return markets


def validate_events(rows: Iterable[dict[str, Any]]) -> list[RawEvent]:
    events = []
    for row in rows:
        try:
            events.append(RawEvent.model_validate(row))
        except ValidationError as e:
            log.warning("skip_event", event_id=row.get("id") if isinstance(row, dict) else None, error=str(e))
    return events


def _event_index(events: list[RawEvent]) -> dict[str, RawEvent]:
    """market id -> owning event. First event seen wins."""
    index: dict[str, RawEvent] = {}
    for event in events:
        for nested in event.markets:
            market_id = nested.get("id")
            if market_id is not None:
                index.setdefault(str(market_id), event)
    return index


def _overlay_event(market: RawMarket, event: RawEvent) -> RawMarket:
    """Augment a flat market with event metadata; existing flat values are never replaced."""
    updates: dict[str, Any] = {}
    for field in _BACKFILL_FIELDS:
        if not getattr(market, field) and getattr(event, field):
            updates[field] = getattr(event, field)
    if not market.tags and event.tags:
        updates["tags"] = event.tags
    if market.event_title is None and event.title:
        updates["event_title"] = event.title
    return market.model_copy(update=updates) if updates else market


def _from_event(market: RawMarket, event: RawEvent) -> RawMarket:
    """Event-only market: event metadata takes precedence over the nested record."""
    updates: dict[str, Any] = {
        field: getattr(event, field) for field in _BACKFILL_FIELDS if getattr(event, field)
    }
    updates["tags"] = event.tags if event.tags is not None else (market.tags or [])
    if event.title:
        updates["event_title"] = event.title
    return market.model_copy(update=updates)


def merge_markets(markets: list[RawMarket], events: list[RawEvent]) -> list[ProcessedMarket]:
    """Merge flat markets with event-nested markets by id.

    Flat markets come first, in their upstream (volume) order, enriched from their event.
    Markets that only appear inside events are appended in event order.
    """
    index = _event_index(events)
    merged: dict[str, RawMarket] = {}
    for market in markets:
        event = index.get(market.id)
        merged[market.id] = _overlay_event(market, event) if event else market
    for event in events:
        for nested in validate_markets(event.markets):
            if nested.id not in merged:
                merged[nested.id] = _from_event(nested, event)
    return [normalize_market(m) for m in merged.values()]


async def _fetch_events(source: MarketSource, limit: int) -> list[dict[str, Any]]:
    """Events are best-effort: a failed fetch counts as no events."""
    try:
        return await source.list_events(active=True, closed=False, limit=limit)
    except (httpx.HTTPError, ValueError) as e:
        log.warning("events_fetch_failed", error=str(e))
        return []


async def aggregate_markets(
    source: MarketSource,
    markets_limit: int = 100,
    events_limit: int = 50,
) -> list[ProcessedMarket]:
    """Fetch both Gamma collections concurrently and merge them.

    A failed market fetch propagates; a failed event fetch is tolerated.
    """
    market_rows, event_rows = await asyncio.gather(
        source.list_markets(
            active=True, closed=False, limit=markets_limit, order="volume", ascending=False
        ),
        _fetch_events(source, events_limit),
    )
    markets = validate_markets(market_rows)
    events = validate_events(event_rows)
    result = merge_markets(markets, events)
    log.info(
        "markets_aggregated",
        flat=len(markets),
        events=len(events),
        total=len(result),
    )
    return result
