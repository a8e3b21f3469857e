"""Markets subcommand: list, show."""

from __future__ import annotations

import asyncio
from functools import partial

import typer

from betwixt.history.chunker import DEFAULT_PERIOD
from betwixt.ingestion.polymarket.clob import ClobClient
from betwixt.ingestion.polymarket.gamma import GammaClient
from betwixt.markets.aggregator import aggregate_markets
from betwixt.markets.detail import MarketView, load_market_view
from betwixt.markets.filters import FILTERS
from betwixt.markets.store import MarketStore

app = typer.Typer(help="Aggregated market list and market details")


def _pct(value: float | None) -> str:
    return f"{value * 100:5.1f}%" if value is not None else "    - "


@app.command("list")
def list_markets(
    ctx: typer.Context,
    filter_name: str = typer.Option(
        "trending", "--filter", "-f", help=f"One of: {', '.join(FILTERS)}"
    ),
    limit: int = typer.Option(20, "--limit", "-n", help="Max markets to show"),
) -> None:
    """Fetch markets and events from Gamma, merge them and print the filtered view."""
    settings = ctx.obj["settings"]

    async def _run() -> MarketStore:
        async with GammaClient(settings.gamma_api_base, timeout=settings.http_timeout_sec) as gamma:
            store = MarketStore(
                partial(
                    aggregate_markets,
                    gamma,
                    markets_limit=settings.markets_limit,
                    events_limit=settings.events_limit,
                ),
                filter_name=filter_name,
                limit=limit,
            )
            await store.refresh()
            return store

    store = asyncio.run(_run())
    if store.error is not None:
        typer.echo(f"Failed to fetch markets: {store.error}", err=True)
        raise typer.Exit(code=1)
    for m in store.markets:
        question = (m.question or m.event_title or "")[:60]
        typer.echo(f"  {m.id:>10}  Yes {_pct(m.yes_price)}  No {_pct(m.no_price)}  {question}")
    typer.echo(f"Showing {len(store.markets)} of {len(store.all_markets)} markets ({filter_name})")


@app.command("show")
def show(
    ctx: typer.Context,
    market_id: str = typer.Argument(..., help="Gamma market id"),
    period: str = typer.Option(DEFAULT_PERIOD, "--period", help="24h, 7d, 30d or all"),
) -> None:
    """Market details with price history and order book summary."""
    settings = ctx.obj["settings"]

    async def _run() -> MarketView | None:
        async with GammaClient(settings.gamma_api_base, timeout=settings.http_timeout_sec) as gamma:
            async with ClobClient(settings.clob_api_base, timeout=settings.http_timeout_sec) as clob:
                return await load_market_view(
                    gamma, clob, clob, market_id, period, chunk_timeout=settings.chunk_timeout_sec
                )

    view = asyncio.run(_run())
    if view is None:
        typer.echo(f"Market not found: {market_id}", err=True)
        raise typer.Exit(code=1)
    d = view.details
    typer.echo(d.question)
    if d.event_title:
        typer.echo(f"  Event: {d.event_title}")
    for o in d.outcomes:
        typer.echo(f"  {o.outcome}: {o.price}")
    typer.echo(f"  24h volume: {d.volume24hr}  liquidity: {d.liquidity}")
    typer.echo(f"  Ends: {d.end_date or '-'}  Tags: {', '.join(t.label or '' for t in d.tags)}")
    label = " (synthetic)" if view.history.synthetic else ""
    pts = view.history.points
    if pts:
        typer.echo(f"  History {view.history.period}{label}: {len(pts)} points, {pts[0].p:.3f} -> {pts[-1].p:.3f}")
    book = view.order_book
    if book is not None:
        label = " (synthetic)" if book.synthetic else ""
        typer.echo(f"  Book{label}: bid {book.best_bid}  ask {book.best_ask}")
