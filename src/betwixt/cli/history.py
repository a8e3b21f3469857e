"""History command: price series for a CLOB token."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import typer

from betwixt.history.chunker import DEFAULT_PERIOD, fetch_price_history
from betwixt.ingestion.polymarket.clob import ClobClient
from betwixt.models import PriceHistory


def history(
    ctx: typer.Context,
    token_id: str = typer.Argument(..., help="CLOB token id (one outcome side)"),
    period: str = typer.Option(DEFAULT_PERIOD, "--period", help="24h, 7d, 30d or all"),
) -> None:
    """Fetch chunked price history and print one line per point."""
    settings = ctx.obj["settings"]

    async def _run() -> PriceHistory:
        async with ClobClient(settings.clob_api_base, timeout=settings.http_timeout_sec) as clob:
            return await fetch_price_history(
                clob, token_id, period, chunk_timeout=settings.chunk_timeout_sec
            )

    result = asyncio.run(_run())
    for pt in result.points:
        ts = datetime.fromtimestamp(pt.t, tz=timezone.utc).isoformat()
        typer.echo(f"  {ts}  {pt.p:.4f}")
    label = " synthetic" if result.synthetic else ""
    typer.echo(f"Total: {len(result.points)}{label} points ({result.period})")
