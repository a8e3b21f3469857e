"""`betwixt api`: serve the HTTP API with uvicorn."""

import typer

from betwixt.api.main import run_api


def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Bind host"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API; the market set refreshes in the background."""
    run_api(host=host, port=port, profile=ctx.obj["profile"] if ctx.obj else None)
