"""CLI entry point for the ICP supply dashboard.

Usage:
    icp-supply fetch
    icp-supply fetch --output public/metrics.json --audit
    icp-supply show --expand staked.locked
    icp-supply show --collapse-all --format csv
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, get_args

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .core.config import DashboardConfig
from .core.exceptions import ConfigurationError
from .core.types import OutputFormatType
from .dashboard import SupplyDashboard
from .output.audit_trail import AuditTrailFormatter
from .output.formatters import (
    CSVFormatter,
    JSONFormatter,
    TableFormatter,
    render_error_state,
)

# Initialize app
app = typer.Typer(
    name="icp-supply",
    help="ICP supply breakdown: liquid, staked, rewards and burned",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False, show_path=False)],
    )


def _load_config(config: Optional[Path], snapshot: Optional[Path]) -> DashboardConfig:
    try:
        settings = DashboardConfig.load(config_file=config)
    except ConfigurationError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(1)

    if snapshot:
        settings.snapshot_path = snapshot
    return settings


@app.command()
def fetch(
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Snapshot file to write (default: public/metrics.json)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML config file",
    ),
    audit: bool = typer.Option(
        False,
        "--audit", "-a",
        help="Print the per-endpoint audit trail",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Fetch the latest metrics, build the supply tree and save the snapshot.

    Examples:
        icp-supply fetch
        icp-supply fetch --output data/metrics.json --audit
    """
    setup_logging(verbose)
    settings = _load_config(config, output)

    console.print("[bold]Starting ICP data fetch...[/]")
    dashboard = SupplyDashboard.from_config(settings)
    success = asyncio.run(dashboard.refresh())

    if audit:
        console.print(escape(AuditTrailFormatter().format_summary(dashboard.get_audit_trail())))

    if not success:
        console.print(f"[red]Data fetch failed: {escape(str(dashboard.last_error))}[/]")
        raise typer.Exit(1)

    console.print(f"[green]Saved to {settings.snapshot_path}[/]")


@app.command()
def show(
    snapshot: Optional[Path] = typer.Option(
        None,
        "--snapshot", "-s",
        help="Snapshot file to read (default: public/metrics.json)",
    ),
    expand: Optional[List[str]] = typer.Option(
        None,
        "--expand", "-e",
        help="Expand a row (repeatable), e.g. staked.locked",
    ),
    collapse: Optional[List[str]] = typer.Option(
        None,
        "--collapse", "-c",
        help="Collapse a row (repeatable)",
    ),
    collapse_all: bool = typer.Option(
        False,
        "--collapse-all",
        help="Start from all rows collapsed",
    ),
    expand_all: bool = typer.Option(
        False,
        "--expand-all",
        help="Expand every expandable row",
    ),
    output_format: str = typer.Option(
        "table",
        "--format", "-f",
        help="Output format: table, json, csv",
    ),
    refresh: bool = typer.Option(
        False,
        "--refresh", "-r",
        help="Fetch fresh data first (falls back to the saved snapshot on failure)",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to YAML config file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Render the supply breakdown table.

    Top-level categories start expanded; use --expand/--collapse to drill
    into sub-categories and dissolve-delay buckets.
    """
    setup_logging(verbose)
    output_lower = output_format.lower()
    if output_lower not in get_args(OutputFormatType):
        choices = ", ".join(get_args(OutputFormatType))
        console.print(f"[red]Unknown format '{escape(output_format)}'; choose one of: {choices}[/]")
        raise typer.Exit(2)

    settings = _load_config(config, snapshot)
    dashboard = SupplyDashboard.from_config(settings)

    dashboard.load_snapshot()
    if refresh or dashboard.should_refresh():
        if refresh or dashboard.tree is None:
            asyncio.run(dashboard.refresh())
        else:
            console.print("[yellow]Snapshot is stale; run with --refresh to update[/]")

    if dashboard.tree is None:
        message = str(dashboard.last_error) if dashboard.last_error else "No data available"
        console.print(f"[red]{escape(render_error_state(message))}[/]")
        raise typer.Exit(1)

    view = dashboard.view_state
    if collapse_all:
        view.collapse_all()
    if expand_all:
        view.expand_all(dashboard.tree)
    for key in expand or []:
        view.expand(key)
    for key in collapse or []:
        view.collapse(key)

    if output_lower == "json":
        print(JSONFormatter().format(dashboard.tree))
    elif output_lower == "csv":
        print(CSVFormatter().format(dashboard.tree, view), end="")
    else:
        print(TableFormatter().format(dashboard.tree, view), end="")

    if dashboard.last_error:
        console.print(f"[yellow]Showing cached data: {escape(str(dashboard.last_error))}[/]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"ICP Supply Dashboard v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
