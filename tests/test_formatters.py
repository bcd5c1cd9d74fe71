"""Tests for output formatters."""

import csv
import io
import json

import pytest

from icp_supply.core.canonical import CANONICAL_KEYS
from icp_supply.core.models import AuditEntry
from icp_supply.core.tree import SupplyTree
from icp_supply.output.audit_trail import AuditTrailFormatter
from icp_supply.output.formatters import (
    CSVFormatter,
    JSONFormatter,
    TableFormatter,
    format_number,
    format_percentage,
    percentage_of_total,
    render_error_state,
    row_percentage,
)
from icp_supply.view.state import ViewState


class TestNumberFormatting:
    """Tests for value and percentage cells."""

    def test_format_number(self):
        test_cases = [
            (0, "0"),
            (0.0, "0"),
            (2_611, "2,611"),
            (537_308_290.4, "537,308,290"),
            (1_999.6, "2,000"),
            (0.5, "1"),
            (2.5, "3"),
            (12_911_338.5, "12,911,339"),
        ]

        for value, expected in test_cases:
            assert format_number(value) == expected, f"{value} should format as {expected}"

    def test_format_percentage(self):
        assert format_percentage(0) == "0.0%"
        assert format_percentage(45.58766) == "45.6%"
        assert format_percentage(100) == "100.0%"
        assert format_percentage(100.0001) == "100.0%"

    def test_percentage_of_total(self):
        assert percentage_of_total(244_946_282, 537_308_290) == pytest.approx(45.58766, abs=1e-4)
        assert percentage_of_total(5, 0) == 0.0
        assert percentage_of_total(0, 100) == 0.0

    def test_row_percentage(self, sample_tree):
        assert row_percentage(sample_tree, "liquid") == "45.6%"
        assert row_percentage(sample_tree, "total") == "100.0%"
        assert row_percentage(sample_tree, "rewards.community") == "0.0%"

    def test_total_row_is_full_even_without_data(self):
        assert row_percentage(SupplyTree.empty(), "total") == "100.0%"


class TestTableFormatter:
    """Tests for TableFormatter."""

    def test_plain_table_default_rows(self, sample_tree):
        output = TableFormatter(use_rich=False).format(sample_tree)

        assert "Category" in output
        assert "Liquid" in output
        assert "244,946,282" in output
        assert "45.6%" in output
        assert "→ Unlocking ▸" in output
        assert "Staked ▾" in output
        assert "0-1 years" not in output
        assert "Data updated: 2024-09-20 12:00 UTC" in output

    def test_plain_table_respects_view(self, sample_tree):
        view = ViewState(expanded={"staked", "staked.locked"})
        output = TableFormatter(use_rich=False).format(sample_tree, view)

        assert "→ → 8+ years" in output
        assert "147,578,277" in output
        assert "Burned" in output
        assert "→ Fees" not in output

    def test_loading_footer_without_data(self):
        output = TableFormatter(use_rich=False).format(SupplyTree.empty())
        assert "Loading latest data..." in output

    def test_rich_table(self, sample_tree):
        output = TableFormatter(use_rich=True, width=100).format(sample_tree)

        assert "ICP Supply" in output
        assert "537,308,290" in output

    def test_format_to_file_is_plain(self, sample_tree, tmp_path):
        path = tmp_path / "table.txt"
        TableFormatter().format_to_file(sample_tree, str(path))

        content = path.read_text(encoding="utf-8")
        assert "\x1b[" not in content
        assert "Total" in content


class TestCSVFormatter:
    """Tests for CSVFormatter."""

    def test_all_rows_without_view(self, sample_tree):
        rows = list(csv.DictReader(io.StringIO(CSVFormatter().format(sample_tree))))

        assert [row["key"] for row in rows] == list(CANONICAL_KEYS)
        assert rows[0]["percentage"] == "100.0%"

    def test_visible_rows_only(self, sample_tree):
        view = ViewState(expanded=[])
        rows = list(csv.DictReader(io.StringIO(CSVFormatter().format(sample_tree, view))))

        assert [row["key"] for row in rows] == ["total", "liquid", "staked", "rewards", "burned"]
        assert rows[1]["label"] == "Liquid"
        assert rows[1]["level"] == "0"
        assert float(rows[1]["value_icp"]) == pytest.approx(244_946_282)


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_full_snapshot(self, sample_tree):
        data = json.loads(JSONFormatter().format(sample_tree, ViewState(expanded=[])))

        assert list(data["data"]) == list(CANONICAL_KEYS)
        assert data["totalSupply"] == pytest.approx(537_308_290)
        assert data["data"]["burned"]["expandable"] is True


class TestStateViews:
    """Tests for the error and audit views."""

    def test_error_state_includes_message(self):
        output = render_error_state("[total_supply] HTTP 503")
        assert "Error loading data" in output
        assert "[total_supply] HTTP 503" in output

    def test_audit_summary(self):
        entries = [
            AuditEntry(endpoint="total_supply", action="fetch", attempt=1, success=False,
                       error_message="HTTP 503: Service Unavailable", duration_ms=5),
            AuditEntry(endpoint="total_supply", action="fetch", attempt=2, duration_ms=7),
            AuditEntry(endpoint="locked_neurons", action="fetch", attempt=1, success=False,
                       error_message="ConnectTimeout: timed out"),
        ]

        output = AuditTrailFormatter().format_summary(entries)

        assert "total_supply: OK" in output
        assert "Attempts: 2 (1 successful, 12ms)" in output
        assert "locked_neurons: FAILED" in output
        assert "Last error: ConnectTimeout: timed out" in output

    def test_empty_audit_summary(self):
        assert "No requests recorded" in AuditTrailFormatter().format_summary([])
