"""View sinks: terminal (Rich) and JSON renditions of lookup events."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import datetime

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import MAP_ZOOM, PLACEHOLDER
from .errors import IPLookupError
from .models import HistoryEntry, LookupResult

LOADING_TEXT = "Loading..."
ERROR_TEXT = "Error"


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def _or_placeholder(value: str | None) -> str:
    return value if value else PLACEHOLDER


def display_fields(result: LookupResult) -> list[tuple[str, list[tuple[str, str]]]]:
    """Group the result into labelled rows, with placeholders for gaps."""
    population = (
        _format_number(result.population) if result.population is not None else PLACEHOLDER
    )
    area = (
        f"{_format_number(result.area_km2)} km²"
        if result.area_km2 is not None
        else PLACEHOLDER
    )
    calling_code = f"+{result.calling_code}" if result.calling_code else PLACEHOLDER

    return [
        (
            "Location",
            [
                ("City", _or_placeholder(result.city)),
                ("Region", _or_placeholder(result.region)),
                ("Country", _or_placeholder(result.country)),
                ("Postal", _or_placeholder(result.postal)),
                ("Continent", _or_placeholder(result.continent_code)),
                ("Timezone", _or_placeholder(result.timezone)),
            ],
        ),
        (
            "Network",
            [
                ("ISP", _or_placeholder(result.org)),
                ("ASN", _or_placeholder(result.asn)),
                ("Currency", _or_placeholder(result.currency)),
                ("Calling code", calling_code),
            ],
        ),
        (
            "Demographics",
            [
                ("Population", population),
                ("Language", _or_placeholder(result.primary_language)),
                ("TLD", _or_placeholder(result.tld)),
                ("Area", area),
            ],
        ),
    ]


def map_link(result: LookupResult, zoom: int = MAP_ZOOM) -> str | None:
    """OpenStreetMap link for the result, or None without a coordinate pair."""
    coords = result.coordinates
    if coords is None:
        return None
    lat, lng = coords
    return (
        f"https://www.openstreetmap.org/?mlat={lat}&mlon={lng}"
        f"#map={zoom}/{lat}/{lng}"
    )


def format_timestamp(timestamp_ms: int) -> str:
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")
    except (OverflowError, OSError, ValueError):
        return PLACEHOLDER


class RichViewSink:
    """Render lookup events to a terminal."""

    def __init__(self, console: Console | None = None, err_console: Console | None = None):
        self.console = console or Console()
        self.err_console = err_console or self.console

    def show_loading(self) -> None:
        self.console.print(f"[bold]IP Address:[/bold] [dim]{LOADING_TEXT}[/dim]")

    def present(self, result: LookupResult) -> None:
        badges = " ".join(f"[reverse] {b} [/reverse]" for b in result.badges)
        header = f"[bold]IP Address:[/bold] [cyan bold]{escape(result.ip)}[/cyan bold] {badges}"
        self.console.print(header.rstrip())

        table = Table(show_header=False)
        table.add_column("Field", style="bold")
        table.add_column("Value")
        for i, (group, rows) in enumerate(display_fields(result)):
            if i:
                table.add_section()
            table.add_row(f"[dim]{group}[/dim]", "")
            for label, value in rows:
                table.add_row(f"  {label}", escape(value))
        self.console.print(table)

        link = map_link(result)
        if link:
            lat, lng = result.coordinates
            self.console.print(
                f"[bold]Map:[/bold] {escape(_or_placeholder(result.city))} ({lat}, {lng}) {link}"
            )

    def present_error(self, error: IPLookupError) -> None:
        self.console.print(f"[bold]IP Address:[/bold] [red]{ERROR_TEXT}[/red]")
        self.err_console.print(f"[red]Error: {escape(error.user_message)}[/red]")

    def render_history(self, entries: list[HistoryEntry]) -> None:
        if not entries:
            self.console.print("[dim]No recent searches[/dim]")
            return

        table = Table(title="Recent Searches", show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("IP Address")
        table.add_column("Location")
        table.add_column("When")
        for i, entry in enumerate(entries, start=1):
            table.add_row(
                str(i), escape(entry.ip), escape(entry.location), format_timestamp(entry.timestamp)
            )
        self.console.print(table)


class JsonViewSink:
    """Emit lookup events as JSON documents, one per event."""

    def __init__(self, echo: Callable[[str], None] = click.echo):
        self.echo = echo

    def show_loading(self) -> None:
        pass

    def present(self, result: LookupResult) -> None:
        data = result.to_dict()
        data["map_url"] = map_link(result)
        self.echo(json.dumps(data, indent=2))

    def present_error(self, error: IPLookupError) -> None:
        self.echo(
            json.dumps(
                {"error": True, "kind": error.kind.value, "reason": error.user_message},
                indent=2,
            )
        )

    def render_history(self, entries: list[HistoryEntry]) -> None:
        self.echo(json.dumps([e.to_dict() for e in entries], indent=2))
