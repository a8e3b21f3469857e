"""Book command: order book snapshot for a CLOB token."""

from __future__ import annotations

import asyncio

import typer

from betwixt.ingestion.polymarket.clob import ClobClient
from betwixt.models import OrderBook
from betwixt.orderbook.adapter import fetch_order_book


def book(
    ctx: typer.Context,
    token_id: str = typer.Argument(..., help="CLOB token id"),
    depth: int = typer.Option(10, "--depth", "-d", help="Levels per side"),
) -> None:
    """Print the order book, or a labelled synthetic book when the CLOB is unavailable."""
    settings = ctx.obj["settings"]

    async def _run() -> OrderBook | None:
        async with ClobClient(settings.clob_api_base, timeout=settings.http_timeout_sec) as clob:
            return await fetch_order_book(clob, token_id)

    ob = asyncio.run(_run())
    if ob is None:
        typer.echo("No token id given", err=True)
        raise typer.Exit(code=1)
    if ob.synthetic:
        typer.echo("CLOB unavailable - showing a synthetic placeholder book")
    typer.echo(f"{'bid size':>12} {'bid':>7} | {'ask':<7} {'ask size':<12}")
    for i in range(min(depth, max(len(ob.bids), len(ob.asks)))):
        bid = ob.bids[i] if i < len(ob.bids) else None
        ask = ob.asks[i] if i < len(ob.asks) else None
        left = f"{bid.size:>12.2f} {bid.price:>7.3f}" if bid else " " * 20
        right = f"{ask.price:<7.3f} {ask.size:<12.2f}" if ask else ""
        typer.echo(f"{left} | {right}")
