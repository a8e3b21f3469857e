"""Polymarket Gamma API client - market and event metadata."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)

GAMMA_API_BASE = "https://gamma-api.polymarket.com"


def _as_list(data: Any) -> list[dict[str, Any]]:
    """Gamma returns bare arrays; some deployments wrap them under "data"."""
    if isinstance(data, dict):
        data = data.get("data", [])
    if not isinstance(data, list):
        return []
    return [row for row in data if isinstance(row, dict)]


def _flag(value: bool) -> str:
    return "true" if value else "false"


class GammaClient:
    """Async Gamma client. Pass an httpx.AsyncClient to share a connection pool (or in tests)."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or GAMMA_API_BASE).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def __aenter__(self) -> GammaClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        resp = await self._client.get(f"{self.base_url}{path}", params=params)
        resp.raise_for_status()
        return resp.json()

    async def list_markets(
        self,
        *,
        active: bool = True,
        closed: bool = False,
        limit: int = 100,
        order: str | None = "volume",
        ascending: bool = False,
    ) -> list[dict[str, Any]]:
        """GET /markets, server-side filtered and ordered."""
        params: dict[str, Any] = {"active": _flag(active), "closed": _flag(closed), "limit": limit}
        if order:
            params["order"] = order
            params["ascending"] = _flag(ascending)
        rows = _as_list(await self._get("/markets", params))
        log.debug("gamma_markets_fetched", count=len(rows))
        return rows

    async def list_events(
        self,
        *,
        active: bool = True,
        closed: bool = False,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """GET /events; each event carries its markets."""
        params = {"active": _flag(active), "closed": _flag(closed), "limit": limit}
        rows = _as_list(await self._get("/events", params))
        log.debug("gamma_events_fetched", count=len(rows))
        return rows

    async def get_market(self, market_id: str) -> dict[str, Any] | None:
        """GET /markets/{id}."""
        data = await self._get(f"/markets/{market_id}", {"id": market_id})
        return data if isinstance(data, dict) and data else None

    async def search_markets(self, market_id: str, limit: int = 1) -> list[dict[str, Any]]:
        """GET /markets?id=... - fallback lookup when the direct route fails."""
        return _as_list(await self._get("/markets", {"id": market_id, "limit": limit}))

    async def find_events(
        self,
        *,
        event_id: str | None = None,
        condition_id: str | None = None,
        limit: int = 1,
    ) -> list[dict[str, Any]]:
        """GET /events by event id or by market condition id."""
        params: dict[str, Any] = {"limit": limit}
        if event_id:
            params["id"] = event_id
        if condition_id:
            params["condition_id"] = condition_id
        return _as_list(await self._get("/events", params))
