"""Shared fakes for the Gamma and CLOB collaborators."""

from __future__ import annotations

from typing import Any

import httpx
import pytest


def _http_error(url: str, status: int = 500) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", url)
    return httpx.HTTPStatusError(
        f"{status} error", request=request, response=httpx.Response(status, request=request)
    )


class FakeMarketSource:
    """In-memory MarketSource. Errors are raised instead of returning data when set."""

    def __init__(
        self,
        markets: list[dict[str, Any]] | None = None,
        events: list[dict[str, Any]] | None = None,
        *,
        markets_error: bool = False,
        events_error: bool = False,
        by_id: dict[str, dict[str, Any]] | None = None,
        get_error: bool = False,
        search_error: bool = False,
        events_by_id: dict[str, dict[str, Any]] | None = None,
        events_by_condition: dict[str, dict[str, Any]] | None = None,
        find_events_error: bool = False,
    ) -> None:
        self.markets = markets or []
        self.events = events or []
        self.markets_error = markets_error
        self.events_error = events_error
        self.by_id = by_id or {}
        self.get_error = get_error
        self.search_error = search_error
        self.events_by_id = events_by_id or {}
        self.events_by_condition = events_by_condition or {}
        self.find_events_error = find_events_error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def list_markets(self, **params: Any) -> list[dict[str, Any]]:
        self.calls.append(("list_markets", params))
        if self.markets_error:
            raise _http_error("https://gamma.test/markets")
        return self.markets

    async def list_events(self, **params: Any) -> list[dict[str, Any]]:
        self.calls.append(("list_events", params))
        if self.events_error:
            raise _http_error("https://gamma.test/events", 503)
        return self.events

    async def get_market(self, market_id: str) -> dict[str, Any] | None:
        self.calls.append(("get_market", {"id": market_id}))
        if self.get_error or market_id not in self.by_id:
            raise _http_error(f"https://gamma.test/markets/{market_id}", 404)
        return self.by_id[market_id]

    async def search_markets(self, market_id: str, limit: int = 1) -> list[dict[str, Any]]:
        self.calls.append(("search_markets", {"id": market_id, "limit": limit}))
        if self.search_error:
            raise _http_error("https://gamma.test/markets")
        row = self.by_id.get(market_id)
        return [row] if row else []

    async def find_events(
        self, *, event_id: str | None = None, condition_id: str | None = None, limit: int = 1
    ) -> list[dict[str, Any]]:
        self.calls.append(("find_events", {"event_id": event_id, "condition_id": condition_id}))
        if self.find_events_error:
            raise _http_error("https://gamma.test/events")
        if event_id and event_id in self.events_by_id:
            return [self.events_by_id[event_id]]
        if condition_id and condition_id in self.events_by_condition:
            return [self.events_by_condition[condition_id]]
        return []


class FakeClob:
    """In-memory price-history and order-book source.

    history: callable (start_ts, end_ts) -> list of points, or an exception instance to raise.
    """

    def __init__(self, history: Any = None, book: dict[str, Any] | Exception | None = None) -> None:
        self.history = history
        self._book = book
        self.history_calls: list[tuple[str, int, int, int]] = []
        self.book_calls: list[str] = []

    async def prices_history(self, token_id: str, start_ts: int, end_ts: int, fidelity: int) -> list[dict[str, Any]]:
        self.history_calls.append((token_id, start_ts, end_ts, fidelity))
        if self.history is None:
            return []
        result = self.history(start_ts, end_ts)
        if isinstance(result, Exception):
            raise result
        return result

    async def book(self, token_id: str) -> dict[str, Any]:
        self.book_calls.append(token_id)
        if self._book is None:
            raise _http_error("https://clob.test/book", 404)
        if isinstance(self._book, Exception):
            raise self._book
        return self._book


@pytest.fixture
def http_error():
    return _http_error


@pytest.fixture
def market_source():
    return FakeMarketSource


@pytest.fixture
def fake_clob():
    return FakeClob


@pytest.fixture
def binary_market():
    def make(market_id: str = "m1", yes: str = "0.65", no: str = "0.35", **extra: Any) -> dict[str, Any]:
        row = {
            "id": market_id,
            "question": f"Will {market_id} happen?",
            "outcomes": '["Yes","No"]',
            "outcomePrices": f'["{yes}","{no}"]',
            "clobTokenIds": f'["{market_id}-yes","{market_id}-no"]',
            "volume": "1000",
            "active": True,
            "closed": False,
        }
        row.update(extra)
        return row

    return make
