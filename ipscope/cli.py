"""Click CLI with Rich output."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console

from . import __version__
from .config import DB_PATH, LOOKUP_BASE_URL, REQUEST_TIMEOUT
from .controller import LookupController
from .history import HistoryStore
from .logging_config import setup_logging, verbosity_to_level
from .service import LookupService
from .storage import SQLiteStorage
from .view import JsonViewSink, RichViewSink

console = Console()
err_console = Console(stderr=True)


def _controller(ctx: click.Context, as_json: bool) -> LookupController:
    opts = ctx.obj
    service = LookupService(base_url=opts["base_url"], timeout=opts["timeout"])
    history = HistoryStore(SQLiteStorage(opts["db"]))
    sink = JsonViewSink() if as_json else RichViewSink(console, err_console)
    return LookupController(service, history, sink)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--db",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DB_PATH,
    show_default=True,
    help="History database file.",
)
@click.option(
    "--base-url", default=LOOKUP_BASE_URL, show_default=True, help="Lookup service URL."
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=REQUEST_TIMEOUT,
    help="Give up on the lookup service after this many seconds (default: wait).",
)
@click.option("-v", "--verbose", count=True, help="Log more (-v info, -vv debug).")
@click.pass_context
def cli(ctx: click.Context, db: Path, base_url: str, timeout: float | None, verbose: int):
    """ipscope: geolocate public IP addresses and keep a short lookup history."""
    setup_logging(verbosity_to_level(verbose))
    ctx.obj = {"db": db, "base_url": base_url, "timeout": timeout}


@cli.command()
@click.argument("target", required=False, default="")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def lookup(ctx: click.Context, target: str, as_json: bool):
    """Look up TARGET (an IP address or hostname), or your own address if omitted."""
    controller = _controller(ctx, as_json)
    result = asyncio.run(controller.lookup(target.strip()))
    if result is None:
        ctx.exit(1)


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, as_json: bool):
    """Show recent lookups, most recent first."""
    _controller(ctx, as_json).show_history()


@cli.command()
@click.argument("index", type=click.IntRange(min=1))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def rerun(ctx: click.Context, index: int, as_json: bool):
    """Look up history entry INDEX again (1 = most recent)."""
    controller = _controller(ctx, as_json)
    try:
        result = asyncio.run(controller.rerun(index - 1))
    except IndexError as exc:
        raise click.ClickException(str(exc)) from exc
    if result is None:
        ctx.exit(1)


@cli.command("clear-history")
@click.pass_context
def clear_history_cmd(ctx: click.Context):
    """Forget all recent lookups."""
    _controller(ctx, as_json=False).clear_history()
    console.print("[green]History cleared.[/green]")
