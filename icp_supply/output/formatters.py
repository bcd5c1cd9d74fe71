"""Output formatters for the supply tree.

Provides multiple output formats:
- Table: Human-readable expandable breakdown (rich or plain text)
- JSON: The snapshot exchange format
- CSV: Visible rows, spreadsheet-compatible
"""

import csv
import io
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..core.canonical import display_name
from ..core.tree import SupplyTree
from ..core.types import Percentage, RowType, TokenAmount
from ..view.state import ViewState

logger = logging.getLogger(__name__)

EXPANDED_ICON = "▾"
COLLAPSED_ICON = "▸"

ROW_STYLES = {
    RowType.LEVEL_0: "bold",
    RowType.LEVEL_1: "",
    RowType.LEVEL_2: "dim",
}


def format_number(value: TokenAmount) -> str:
    """Whole ICP with thousands separators; halves round up."""
    if value == 0:
        return "0"
    whole = Decimal(str(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return f"{int(whole):,}"


def format_percentage(percentage: Percentage) -> str:
    """One decimal place, capped at 100.0%."""
    if percentage == 0:
        return "0.0%"
    if percentage >= 100:
        return "100.0%"
    return f"{percentage:.1f}%"


def percentage_of_total(value: TokenAmount, total_supply: TokenAmount) -> Percentage:
    if total_supply <= 0 or value <= 0:
        return 0.0
    return value / total_supply * 100


def format_timestamp(moment: datetime | None) -> str:
    if moment is None:
        return "unknown"
    return moment.strftime("%Y-%m-%d %H:%M UTC")


def row_percentage(tree: SupplyTree, key: str) -> str:
    """Percentage cell for a row; the total row is always 100%."""
    return format_percentage(tree.percentage_of_total(key))


class OutputFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def format(self, tree: SupplyTree, view: ViewState | None = None) -> str:
        """Format the tree as a string."""
        pass

    def format_to_file(
        self, tree: SupplyTree, filepath: str, view: ViewState | None = None
    ) -> None:
        """Write formatted tree to a file."""
        with open(filepath, "w", encoding="utf-8", newline="") as f:
            f.write(self.format(tree, view))


class JSONFormatter(OutputFormatter):
    """Formats the tree in the snapshot exchange format."""

    def __init__(self, indent: int = 2):
        self.indent = indent

    def format(self, tree: SupplyTree, view: ViewState | None = None) -> str:
        """Full snapshot; the view state does not filter JSON output."""
        return json.dumps(tree.to_snapshot(), indent=self.indent, ensure_ascii=False)


class CSVFormatter(OutputFormatter):
    """Formats visible rows as CSV."""

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter

    def format(self, tree: SupplyTree, view: ViewState | None = None) -> str:
        """All rows when no view state is given, else only the visible ones."""
        output = io.StringIO()
        writer = csv.writer(output, delimiter=self.delimiter)
        writer.writerow(["key", "label", "level", "value_icp", "percentage"])

        keys = view.visible_keys(tree) if view is not None else list(tree)
        for key in keys:
            node = tree[key]
            writer.writerow(
                [
                    key,
                    display_name(key),
                    node.level,
                    f"{node.value:.8f}",
                    row_percentage(tree, key),
                ]
            )

        return output.getvalue()


class TableFormatter(OutputFormatter):
    """Formats the visible rows as a three-column table (label, ICP, % of total)."""

    def __init__(self, use_rich: bool = True, width: int = 80):
        """
        Initialize table formatter.

        Args:
            use_rich: Render with rich (colors, box drawing) instead of plain text
            width: Maximum table width
        """
        self.use_rich = use_rich
        self.width = width

    def _label(self, tree: SupplyTree, key: str, view: ViewState) -> str:
        label = display_name(key)
        if tree[key].expandable:
            icon = EXPANDED_ICON if view.is_expanded(key) else COLLAPSED_ICON
            label = f"{label} {icon}"
        return label

    def _footer(self, tree: SupplyTree) -> str:
        if tree.is_real_data and tree.last_updated:
            return f"Data updated: {format_timestamp(tree.last_updated)}"
        return "Loading latest data..."

    def format(self, tree: SupplyTree, view: ViewState | None = None) -> str:
        """Format visible rows as a table."""
        view = view if view is not None else ViewState()
        if self.use_rich:
            return self._format_rich(tree, view)
        return self._format_plain(tree, view)

    def _format_plain(self, tree: SupplyTree, view: ViewState) -> str:
        """Plain text formatting without rich."""
        lines = []
        lines.append(f"{'Category':<28} {'ICP':>16} {'% of Total':>11}")
        lines.append("-" * 57)
        for node in view.visible_nodes(tree):
            lines.append(
                f"{self._label(tree, node.key, view):<28} "
                f"{format_number(node.value):>16} "
                f"{row_percentage(tree, node.key):>11}"
            )
        lines.append("")
        lines.append(self._footer(tree))
        return "\n".join(lines)

    def _format_rich(self, tree: SupplyTree, view: ViewState) -> str:
        """Rich library formatting with colors."""
        output = io.StringIO()
        console = Console(file=output, force_terminal=True, width=self.width)

        table = Table(title="ICP Supply")
        table.add_column("Category", style="cyan")
        table.add_column("ICP", justify="right", style="green")
        table.add_column("% of Total", justify="right")

        for node in view.visible_nodes(tree):
            table.add_row(
                self._label(tree, node.key, view),
                format_number(node.value),
                row_percentage(tree, node.key),
                style=ROW_STYLES[node.row_type],
            )

        console.print(table)
        console.print(Text(self._footer(tree), style="dim"))
        return output.getvalue()

    def format_to_file(
        self, tree: SupplyTree, filepath: str, view: ViewState | None = None
    ) -> None:
        """Write formatted output to file."""
        # For file output, use plain format (no ANSI codes)
        content = self._format_plain(tree, view if view is not None else ViewState())
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(content)


def render_error_state(message: str) -> str:
    """Explicit error view shown when no tree could be loaded at all."""
    return (
        "Error loading data\n"
        f"{message}\n"
        "Run `icp-supply fetch` or pass --refresh to retry."
    )
