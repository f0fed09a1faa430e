"""rewind export -- push a JSON-lines event log through the engine and write a bundle.

The engine's clock follows event time: each event is processed with
"now" set to the newest timestamp seen so far, so the bundle holds what
a live recorder would have retained at the moment of the last event.
"""

from __future__ import annotations

import asyncio
import json
import math
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from rewind.engine.service import EngineService
from rewind.errors import ExportBuildError
from rewind.export.bundle import read_bundle
from rewind.models.config import RecorderConfig, load_recorder_config
from rewind.retention.clock import ManualClock, wall_clock_ms

console = Console(stderr=True)


def export(
    events_path: str = typer.Argument(..., help="JSON-lines file, one event object per line"),
    output: Optional[str] = typer.Option(
        None, "-o", "--output", help="Bundle path (default: rewind-recording-<ms>.zip)"
    ),
    reason: str = typer.Option("cli", "--reason", help="Reason code stored in meta.json"),
    buffer_ms: Optional[int] = typer.Option(
        None, "--buffer-ms", min=1, help="Override the configured retention window"
    ),
    user: Optional[str] = typer.Option(None, "--user", help="User id stored in meta.json"),
    tags: Optional[list[str]] = typer.Option(None, "--tag", help="KEY=VALUE tag, repeatable"),
    config_file: Optional[str] = typer.Option(
        None, "--config", help="rewind.yaml with recorder settings (default: built-in defaults)"
    ),
) -> None:
    """Replay an event log through the retention buffer and export the kept window."""
    source = Path(events_path)
    if not source.is_file():
        console.print(f"[bold red]Error:[/bold red] Event log not found: {events_path}")
        raise typer.Exit(code=1)

    parsed_tags: dict[str, str] = {}
    for item in tags or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            console.print(f"[bold red]Error:[/bold red] Tag must be KEY=VALUE, got {item!r}")
            raise typer.Exit(code=1)
        parsed_tags[key] = value

    try:
        config = load_recorder_config(Path(config_file) if config_file else None)
    except OSError as exc:
        console.print(f"[bold red]Error:[/bold red] Cannot read config: {exc}")
        raise typer.Exit(code=1)
    except (ValidationError, yaml.YAMLError, UnicodeDecodeError) as exc:
        console.print(f"[bold red]Invalid config {config_file}:[/bold red] {exc}")
        raise typer.Exit(code=1)
    if buffer_ms is not None:
        config = config.model_copy(update={"buffer_size_ms": buffer_ms})

    records = _read_event_log(source)
    try:
        data, kept = asyncio.run(_export_async(config, records, reason, user, parsed_tags))
    except ExportBuildError as exc:
        console.print(f"[bold red]Export failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    target = Path(output) if output else Path(f"rewind-recording-{wall_clock_ms()}.zip")
    tmp_file = target.with_name(target.name + ".tmp")
    tmp_file.write_bytes(data)
    tmp_file.replace(target)

    console.print(
        f"[green]Exported[/green] {kept} of {len(records)} events "
        f"({len(data)} bytes) to [bold]{target}[/bold]"
    )


def _read_event_log(source: Path) -> list[Any]:
    """Parse one JSON value per non-blank line, skipping lines that fail to parse."""
    records: list[Any] = []
    with source.open(encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            if not line.strip():
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError as exc:
                console.print(f"[yellow]Warning: skipping line {lineno}: {exc.msg}[/yellow]")
    return records


async def _export_async(
    config: RecorderConfig,
    records: list[Any],
    reason: str,
    user: str | None,
    tags: dict[str, str],
) -> tuple[bytes, int]:
    """Feed records through an EngineService and return (bundle, events kept)."""
    clock = ManualClock()
    async with EngineService.from_config(config, clock=clock) as service:
        if user is not None:
            service.set_user_info({"id": user})
        for key, value in tags.items():
            service.set_tag(key, value)

        for record in records:
            ts = record.get("timestamp") if isinstance(record, dict) else None
            if isinstance(ts, (int, float)) and not isinstance(ts, bool) and math.isfinite(ts):
                clock.set(max(clock.now, ts))
            # Wait for each event so pruning sees the clock value set for it.
            await service.add_event(record)

        data = await service.export_data(reason)

    return data, len(read_bundle(data).events)
