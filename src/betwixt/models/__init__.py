"""Canonical schema (Pydantic) - Market, Event, PriceHistory, OrderBook."""

from betwixt.models.history import PriceHistory, PriceHistoryPoint
from betwixt.models.market import (
    MarketDetails,
    OutcomeWithPrice,
    ProcessedMarket,
    RawEvent,
    RawMarket,
    Tag,
)
from betwixt.models.orderbook import OrderBook, PriceLevel

__all__ = [
    "RawMarket",
    "RawEvent",
    "Tag",
    "OutcomeWithPrice",
    "ProcessedMarket",
    "MarketDetails",
    "PriceHistoryPoint",
    "PriceHistory",
    "OrderBook",
    "PriceLevel",
]
