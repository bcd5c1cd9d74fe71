"""Tests for the command line interface."""

import json

from typer.testing import CliRunner

from icp_supply import __version__
from icp_supply.cli import app
from icp_supply.core.config import DEFAULT_ENDPOINTS
from icp_supply.storage.json_store import SnapshotStore

runner = CliRunner()


def unreachable_config(tmp_path):
    """YAML config whose endpoints all refuse connections, so refreshes fail fast."""
    lines = ["max_retries: 1", "retry_delay: 0", "timeout: 1", "endpoints:"]
    lines += [f"  {name}: http://127.0.0.1:9/{name}" for name in DEFAULT_ENDPOINTS]
    config_file = tmp_path / "offline.yaml"
    config_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return config_file


class TestCli:
    """Tests for the show and version commands."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_show_csv_from_snapshot(self, sample_tree, tmp_path):
        snapshot = tmp_path / "metrics.json"
        SnapshotStore(snapshot).save(sample_tree)

        result = runner.invoke(
            app,
            ["show", "--snapshot", str(snapshot), "--format", "csv", "--collapse-all",
             "--expand", "burned"],
        )

        assert result.exit_code == 0
        assert "key,label,level,value_icp,percentage" in result.stdout
        assert "burned.fees" in result.stdout
        assert "staked.locked" not in result.stdout

    def test_show_plain_table(self, sample_tree, tmp_path):
        snapshot = tmp_path / "metrics.json"
        SnapshotStore(snapshot).save(sample_tree)

        result = runner.invoke(app, ["show", "--snapshot", str(snapshot), "--expand-all"])

        assert result.exit_code == 0
        assert "→ → 8+ years" in result.stdout

    def test_show_bad_fetched_at_reports_error(self, sample_tree, tmp_path):
        snapshot = tmp_path / "metrics.json"
        SnapshotStore(snapshot).save(sample_tree)
        data = json.loads(snapshot.read_text(encoding="utf-8"))
        data["fetchedAt"] = "yesterday"
        snapshot.write_text(json.dumps(data), encoding="utf-8")

        result = runner.invoke(
            app, [
                "show", "--snapshot", str(snapshot), "--format", "csv",
                "--config", str(unreachable_config(tmp_path)),
            ],
        )

        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)
        assert "Error loading data" in result.stdout

    def test_show_rejects_unknown_format(self, sample_tree, tmp_path):
        snapshot = tmp_path / "metrics.json"
        SnapshotStore(snapshot).save(sample_tree)

        result = runner.invoke(app, ["show", "--snapshot", str(snapshot), "--format", "xml"])

        assert result.exit_code == 2
        assert "xml" in result.stdout

    def test_show_bad_config_value(self, tmp_path):
        config_file = tmp_path / "dashboard.yaml"
        config_file.write_text("max_retries: three\n", encoding="utf-8")

        result = runner.invoke(app, ["show", "--config", str(config_file)])

        assert result.exit_code == 1
        assert "max_retries" in result.stdout
