"""Upstream collaborator protocols (Gamma market source, CLOB history and book sources)."""

from __future__ import annotations

from typing import Any, Protocol


class MarketSource(Protocol):
    """Market/event metadata source (Polymarket Gamma)."""

    async def list_markets(
        self,
        *,
        active: bool = True,
        closed: bool = False,
        limit: int = 100,
        order: str | None = "volume",
        ascending: bool = False,
    ) -> list[dict[str, Any]]: ...

    async def list_events(
        self,
        *,
        active: bool = True,
        closed: bool = False,
        limit: int = 50,
    ) -> list[dict[str, Any]]: ...

    async def get_market(self, market_id: str) -> dict[str, Any] | None: ...

    async def search_markets(self, market_id: str, limit: int = 1) -> list[dict[str, Any]]: ...

    async def find_events(
        self,
        *,
        event_id: str | None = None,
        condition_id: str | None = None,
        limit: int = 1,
    ) -> list[dict[str, Any]]: ...


class PriceHistorySource(Protocol):
    """Price-history source (CLOB /prices-history)."""

    async def prices_history(
        self, token_id: str, start_ts: int, end_ts: int, fidelity: int
    ) -> list[dict[str, Any]]: ...


class OrderBookSource(Protocol):
    """Order-book source (CLOB /book)."""

    async def book(self, token_id: str) -> dict[str, Any]: ...
