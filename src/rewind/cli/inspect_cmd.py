"""rewind inspect -- summarize an export bundle without replaying it."""

from __future__ import annotations

import json
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from rewind.errors import BundleFormatError
from rewind.export.bundle import LoadedBundle, read_bundle
from rewind.models.event import EventKind


def inspect(
    bundle_path: str = typer.Argument(..., help="Path to a bundle produced by export"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Show what an export bundle contains."""
    console = Console()
    err_console = Console(stderr=True)

    path = Path(bundle_path)
    if not path.is_file():
        err_console.print(f"[bold red]Error:[/bold red] Bundle not found: {bundle_path}")
        raise typer.Exit(code=1)

    try:
        bundle = read_bundle(path.read_bytes())
    except BundleFormatError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    summary = summarize_bundle(bundle)
    if format_json:
        typer.echo(json.dumps(summary, indent=2))
        return

    table = Table(box=box.SIMPLE, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")

    table.add_row("Events", str(summary["event_count"]))
    kinds = ", ".join(f"{count} {kind}" for kind, count in summary["kinds"].items())
    table.add_row("Kinds", kinds or "-")
    if summary["duration_ms"] is not None:
        table.add_row("Span", f"{summary['duration_ms'] / 1000:.2f}s")
    anchored_style = "green" if summary["anchored"] else "yellow"
    table.add_row("Anchored", f"[{anchored_style}]{summary['anchored']}[/{anchored_style}]")

    meta = summary["meta"]
    if meta is None:
        table.add_row("Meta", "[dim]no meta.json (older bundle)[/dim]")
    else:
        table.add_row("Reason", meta["reason"])
        table.add_row("Exported", meta["exported_at"] or "-")
        table.add_row("User", meta["user"] or "-")
        tags = ", ".join(f"{k}={v}" for k, v in meta["tags"].items())
        table.add_row("Tags", tags or "-")
        table.add_row("Breadcrumbs", str(meta["breadcrumb_count"]))
        table.add_row("User agent", meta["user_agent"] or "-")
        table.add_row("URL", meta["url"] or "-")

    console.print(table)
    if not summary["anchored"]:
        console.print(
            "[yellow]Note: recording does not start with a full snapshot "
            "and may not replay from the beginning.[/yellow]"
        )


def summarize_bundle(bundle: LoadedBundle) -> dict[str, Any]:
    """Build a JSON-safe summary of a decoded bundle."""
    kinds: Counter[str] = Counter()
    timestamps: list[float] = []
    for event in bundle.events:
        kind = getattr(event, "kind", None)
        kinds[kind.name if isinstance(kind, EventKind) else str(kind)] += 1
        ts = getattr(event, "timestamp", None)
        if isinstance(ts, (int, float)) and not isinstance(ts, bool):
            timestamps.append(ts)

    if bundle.meta is not None:
        anchored = bundle.meta.anchored
    else:
        anchored = not bundle.events or getattr(bundle.events[0], "kind", None) == EventKind.FULL_SNAPSHOT

    summary: dict[str, Any] = {
        "event_count": len(bundle.events),
        "kinds": dict(kinds),
        "first_timestamp": min(timestamps) if timestamps else None,
        "last_timestamp": max(timestamps) if timestamps else None,
        "duration_ms": max(timestamps) - min(timestamps) if timestamps else None,
        "anchored": anchored,
        "meta": None,
    }

    meta = bundle.meta
    if meta is not None:
        summary["meta"] = {
            "reason": meta.reason,
            "exported_at": _format_ms(meta.timestamp),
            "user": meta.user_info.id if meta.user_info else None,
            "tags": meta.tags,
            "breadcrumb_count": len(meta.breadcrumbs),
            "user_agent": meta.user_agent,
            "url": meta.url,
            "schema_version": meta.schema_version,
        }
    return summary


def _format_ms(ms: float) -> str | None:
    try:
        return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return None
