"""Pydantic schemas for API request/response consistency and OpenAPI docs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from betwixt.models import MarketDetails, OrderBook, PriceHistory, ProcessedMarket


# --- Health ---
class HealthResponse(BaseModel):
    status: str = "ok"


# --- Error (consistent shape for 4xx/5xx) ---
class ErrorResponse(BaseModel):
    detail: str = Field(..., description="Human-readable message")
    code: str | None = Field(None, description="Machine-readable code, e.g. not_found, upstream_error")


# --- Markets ---
class MarketsListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    markets: list[ProcessedMarket]
    total: int = Field(..., description="Size of the aggregated set before filtering")
    filter: str
    limit: int
    last_updated: float | None = Field(None, description="Epoch seconds of the last successful refresh")
    pending: bool = False
    error: str | None = Field(None, description="Last refresh error; markets are the previous data")


class MarketViewResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    market: MarketDetails
    history: PriceHistory
    order_book: OrderBook | None = None


# --- Insights ---
class InsightResponse(BaseModel):
    insight: str
    cached: bool
