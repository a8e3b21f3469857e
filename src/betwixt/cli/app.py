"""`betwixt` command: shared options, logging setup and subcommand wiring."""

from pathlib import Path

import typer

from betwixt.config import configure_logging, get_settings

app = typer.Typer(
    name="betwixt",
    help="Polymarket markets, price history, order books and insights.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Directory holding default.toml and profile overlays"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Profile overlay, e.g. dev -> config/dev.toml"
    ),
) -> None:
    """Load settings once; subcommands read them from ctx.obj."""
    settings = get_settings(profile, config_dir)
    configure_logging(settings)
    ctx.obj = {"settings": settings, "profile": profile}


from betwixt.cli import api_cmd, book, history, markets  # noqa: E402

app.add_typer(markets.app, name="markets")
app.command("history")(history.history)
app.command("book")(book.book)
app.command("api")(api_cmd.serve)


def run() -> None:
    app()
