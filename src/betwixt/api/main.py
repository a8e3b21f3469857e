"""FastAPI backend for the market dashboard."""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from dataclasses import dataclass
from functools import partial

import httpx
import structlog
from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from betwixt.api.schemas import (
    ErrorResponse,
    HealthResponse,
    InsightResponse,
    MarketsListResponse,
    MarketViewResponse,
)
from betwixt.config import Settings, configure_logging, get_settings
from betwixt.history.chunker import DEFAULT_PERIOD, fetch_price_history
from betwixt.ingestion.polymarket.clob import ClobClient
from betwixt.ingestion.polymarket.gamma import GammaClient
from betwixt.insights.cache import InsightCache
from betwixt.insights.generator import InsightError, InsightGenerator, InsightRequest
from betwixt.markets.aggregator import aggregate_markets
from betwixt.markets.detail import load_market_view
from betwixt.markets.store import MarketStore
from betwixt.models import OrderBook, PriceHistory
from betwixt.orderbook.adapter import fetch_order_book

log = structlog.get_logger(__name__)

# Set by run_api() before uvicorn imports the app.
_config_profile: str | None = None


@dataclass
class Services:
    """Upstream clients and in-memory state shared by request handlers."""

    settings: Settings
    gamma: GammaClient
    clob: ClobClient
    store: MarketStore
    insights: InsightGenerator

    async def aclose(self) -> None:
        await self.gamma.aclose()
        await self.clob.aclose()
        await self.insights.aclose()


def build_services(settings: Settings) -> Services:
    gamma = GammaClient(settings.gamma_api_base, timeout=settings.http_timeout_sec)
    clob = ClobClient(settings.clob_api_base, timeout=settings.http_timeout_sec)
    store = MarketStore(
        partial(
            aggregate_markets,
            gamma,
            markets_limit=settings.markets_limit,
            events_limit=settings.events_limit,
        ),
        filter_name=settings.default_filter,
        limit=settings.default_limit,
        refresh_interval_sec=settings.refresh_interval_sec,
    )
    insights = InsightGenerator(
        api_key=settings.groq_api_key,
        base_url=settings.groq_api_base,
        model=settings.insight_model,
        cache=InsightCache(settings.insight_cache_ttl_sec, settings.insight_cache_max_entries),
        timeout=settings.insight_timeout_sec,
    )
    return Services(settings=settings, gamma=gamma, clob=clob, store=store, insights=insights)


def create_app(services: Services | None = None, run_refresh: bool = True) -> FastAPI:
    """App factory. Tests pass prebuilt services and disable the background refresh loop."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if services is None:
            settings = get_settings(_config_profile)
            configure_logging(settings)
            svc = build_services(settings)
        else:
            svc = services
        app.state.services = svc
        refresh_task = None
        refresh_stop = None
        if run_refresh:
            refresh_stop = asyncio.Event()
            refresh_task = asyncio.create_task(svc.store.run(stop_event=refresh_stop))

        yield

        if refresh_task is not None and refresh_stop is not None:
            refresh_stop.set()
            await refresh_task
        if services is None:
            await svc.aclose()

    app = FastAPI(title="Betwixt API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    _register_routes(app)
    return app


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


def _services(request: Request) -> Services:
    return request.app.state.services


def _list_response(store: MarketStore, filter_name: str, limit: int) -> MarketsListResponse:
    return MarketsListResponse(
        markets=store.view(filter_name, limit),
        total=len(store.all_markets),
        filter=filter_name,
        limit=limit,
        last_updated=store.last_updated,
        pending=store.pending,
        error=str(store.error) if store.error else None,
    )


def _register_routes(app: FastAPI) -> None:
    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/markets", response_model=MarketsListResponse)
    def markets_list(
        request: Request,
        filter: str = Query("trending", description="trending, recent, closing-soon, crypto, politics, sports"),
        limit: int = Query(20, ge=0, le=500),
    ) -> MarketsListResponse:
        """Filtered view of the in-memory aggregated market set."""
        return _list_response(_services(request).store, filter, limit)

    @app.post("/markets/refresh", response_model=MarketsListResponse)
    async def markets_refresh(
        request: Request,
        filter: str = Query("trending"),
        limit: int = Query(20, ge=0, le=500),
    ) -> MarketsListResponse:
        """Run one aggregation cycle now. On failure the previous data is returned with error set."""
        store = _services(request).store
        await store.refresh()
        return _list_response(store, filter, limit)

    @app.get(
        "/markets/{market_id}",
        response_model=MarketViewResponse,
        responses={
            404: {"description": "Unknown market", "model": ErrorResponse},
            502: {"description": "Gamma lookup failed", "model": ErrorResponse},
        },
    )
    async def market_detail(
        request: Request,
        market_id: str,
        period: str = Query(DEFAULT_PERIOD, description="24h, 7d, 30d or all"),
    ):
        """Market details with price history and order book for its first outcome token."""
        svc = _services(request)
        try:
            view = await load_market_view(
                svc.gamma,
                svc.clob,
                svc.clob,
                market_id,
                period,
                chunk_timeout=svc.settings.chunk_timeout_sec,
            )
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            log.error("market_detail_failed", market_id=market_id, error=str(e))
            return _error_json("upstream_error", f"Market lookup failed: {e}", 502)
        if view is None:
            return _error_json("not_found", f"Market not found: {market_id}")
        return MarketViewResponse(market=view.details, history=view.history, order_book=view.order_book)

    @app.get("/history/{token_id}", response_model=PriceHistory)
    async def price_history(
        request: Request,
        token_id: str,
        period: str = Query(DEFAULT_PERIOD, description="24h, 7d, 30d or all"),
    ) -> PriceHistory:
        svc = _services(request)
        return await fetch_price_history(
            svc.clob, token_id, period, chunk_timeout=svc.settings.chunk_timeout_sec
        )

    @app.get(
        "/book/{token_id}",
        response_model=OrderBook,
        responses={404: {"description": "No token id", "model": ErrorResponse}},
    )
    async def order_book(request: Request, token_id: str):
        book = await fetch_order_book(_services(request).clob, token_id)
        if book is None:
            return _error_json("not_found", "No order book without a token id")
        return book

    @app.post(
        "/insights",
        response_model=InsightResponse,
        responses={
            400: {"description": "Missing marketId or question", "model": ErrorResponse},
            500: {"description": "Insight API key not configured", "model": ErrorResponse},
            502: {"description": "LLM request failed", "model": ErrorResponse},
        },
    )
    async def insights(request: Request, body: InsightRequest):
        """Generated analysis text for a market summary. Cached per market id."""
        try:
            result = await _services(request).insights.generate(body)
        except InsightError as e:
            return _error_json(e.code, str(e), e.status_code)
        return InsightResponse(insight=result.insight, cached=result.cached)


app = create_app()


def run_api(
    host: str = "127.0.0.1",
    port: int = 8000,
    profile: str | None = None,
) -> None:
    global _config_profile
    _config_profile = profile
    import uvicorn

    uvicorn.run("betwixt.api.main:app", host=host, port=port, reload=False)
