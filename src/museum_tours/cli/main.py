"""CLI entry point for museum-tours.

Invoked as::

    museum-tours [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m museum_tours.cli.main

Commands
--------
validate    Validate the data file against its schema and load it
export      Dump the stored graph as JSON or YAML
schema      Print or write the XML schema
version     Show version information
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from museum_tours.config import StorageSettings
    from museum_tours.repository.store import EntityStore

console = Console()
err_console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _load_or_exit(settings: "StorageSettings") -> "EntityStore":
    """Load the stored graph, printing the error and exiting on failure."""
    from museum_tours.errors import PersistenceError
    from museum_tours.persistence import XmlGraphCodec

    try:
        return XmlGraphCodec(settings.data_path, settings.schema_path).load()
    except PersistenceError as exc:
        err_console.print(f"[red]Error:[/red] {exc}")
        sys.exit(1)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="museum-tours")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="MUSEUM_TOURS_HOME",
    default=None,
    help="Directory holding the data and schema files",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """Tours, cities, museum visits and members, persisted as validated XML."""
    from museum_tours.config import StorageSettings

    _configure_logging(verbose)
    if data_dir is None:
        ctx.obj = StorageSettings.from_env()
    else:
        ctx.obj = StorageSettings(data_dir=data_dir)


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from museum_tours import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]museum-tours[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# schema command
# ---------------------------------------------------------------------------


@cli.command(name="schema")
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
def schema_command(output: str | None) -> None:
    """Print or write the XML schema used to validate the data file."""
    from museum_tours.persistence import SCHEMA_XSD

    if output:
        Path(output).write_text(SCHEMA_XSD, encoding="utf-8")
        console.print(f"[green]Schema written to[/green] {output}")
    else:
        console.print(Syntax(SCHEMA_XSD, "xml", line_numbers=True))


# ---------------------------------------------------------------------------
# validate command
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@click.pass_obj
def validate_command(settings: "StorageSettings") -> None:
    """Validate the data file against its schema and rebuild the graph."""
    if not settings.data_path.exists():
        console.print(f"[yellow]No data file[/yellow] at {settings.data_path}; nothing to validate")
        return

    store = _load_or_exit(settings)

    table = Table(title=f"Validation: {settings.data_path}")
    table.add_column("Section", style="bold")
    table.add_column("Entities", justify="right")
    for section, count in store.counts().items():
        table.add_row(section, str(count))
    console.print(table)
    console.print(f"[green]OK[/green] {settings.data_path}: schema valid, graph rebuilt")


# ---------------------------------------------------------------------------
# export command
# ---------------------------------------------------------------------------


@cli.command(name="export")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    help="Output format",
)
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
@click.pass_obj
def export_command(settings: "StorageSettings", output_format: str, output: str | None) -> None:
    """Load the stored graph and dump it as JSON or YAML."""
    from museum_tours import export_graph

    store = _load_or_exit(settings)
    lang = output_format.lower()
    text = export_graph(store, lang)

    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]Graph written to[/green] {output}")
    else:
        console.print(Syntax(text, lang, line_numbers=True))


if __name__ == "__main__":
    cli()
