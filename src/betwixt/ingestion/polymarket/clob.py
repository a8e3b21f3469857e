"""Polymarket CLOB REST client - price history and order book."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)

CLOB_API_BASE = "https://clob.polymarket.com"


class ClobClient:
    """Async CLOB client for /prices-history and /book."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or CLOB_API_BASE).rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def __aenter__(self) -> ClobClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def prices_history(
        self, token_id: str, start_ts: int, end_ts: int, fidelity: int
    ) -> list[dict[str, Any]]:
        """GET /prices-history for one window. Response is a bare list or {"history": [...]}."""
        resp = await self._client.get(
            f"{self.base_url}/prices-history",
            params={"market": token_id, "startTs": start_ts, "endTs": end_ts, "fidelity": fidelity},
        )
        resp.raise_for_status()
        data = resp.json()
        if isinstance(data, dict):
            data = data.get("history") or []
        if not isinstance(data, list):
            return []
        log.debug("clob_history_fetched", token_id=token_id, start_ts=start_ts, end_ts=end_ts, count=len(data))
        return data

    async def book(self, token_id: str) -> dict[str, Any]:
        """GET /book?token_id=... Levels are {"price": str, "size": str}."""
        resp = await self._client.get(f"{self.base_url}/book", params={"token_id": token_id})
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"unexpected book payload: {type(data).__name__}")
        return data
