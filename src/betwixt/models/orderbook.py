"""OrderBook - two-sided CLOB depth snapshot."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PriceLevel(BaseModel):
    """Single price level (price -> size)."""

    price: float
    size: float


class OrderBook(BaseModel):
    """Depth snapshot. Bids descending by price, asks ascending."""

    bids: list[PriceLevel] = Field(default_factory=list)
    asks: list[PriceLevel] = Field(default_factory=list)
    synthetic: bool = False  # placeholder book generated when the CLOB is unavailable

    @property
    def best_bid(self) -> float | None:
        return self.bids[0].price if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return self.asks[0].price if self.asks else None

    @property
    def spread(self) -> float | None:
        if self.best_bid is not None and self.best_ask is not None:
            return self.best_ask - self.best_bid
        return None
