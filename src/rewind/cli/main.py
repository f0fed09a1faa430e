"""Rewind CLI entry point."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from rewind import __version__
from rewind.cli.export_cmd import export
from rewind.cli.inspect_cmd import inspect

app = typer.Typer(
    name="rewind",
    help="Keep the last N seconds of interaction events and export them as replayable bundles",
    no_args_is_help=True,
)

# Register subcommands
app.command()(export)
app.command()(inspect)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"rewind {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool) -> None:
    """Route rewind's loggers to stderr through Rich."""
    logger = logging.getLogger("rewind")
    logger.handlers[:] = [
        RichHandler(console=Console(stderr=True), show_path=False, log_time_format="[%X]")
    ]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False, "-V", "--verbose", help="Log pruning and export details to stderr."
    ),
) -> None:
    """Keep the last N seconds of interaction events and export them as replayable bundles."""
    configure_logging(verbose)
