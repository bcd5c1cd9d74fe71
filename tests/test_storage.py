"""Tests for JSON snapshot storage."""

import json

import pytest

from icp_supply.core.exceptions import MalformedPayloadError, SnapshotNotFoundError
from icp_supply.storage.json_store import SnapshotStore


class TestSnapshotStore:
    """Tests for SnapshotStore."""

    def test_save_and_load(self, sample_tree, tmp_path):
        store = SnapshotStore(tmp_path / "nested" / "metrics.json")

        path = store.save(sample_tree)
        loaded = store.load()

        assert path == store.path
        assert store.exists()
        assert loaded.keys() == sample_tree.keys()
        assert loaded["staked.locked"].value == sample_tree["staked.locked"].value
        assert not (tmp_path / "nested" / "metrics.json.tmp").exists()

    def test_save_replaces_previous(self, sample_tree, tmp_path):
        store = SnapshotStore(tmp_path / "metrics.json")
        store.path.write_text("{}", encoding="utf-8")

        store.save(sample_tree)

        assert "data" in json.loads(store.path.read_text(encoding="utf-8"))

    def test_load_missing(self, tmp_path):
        with pytest.raises(SnapshotNotFoundError):
            SnapshotStore(tmp_path / "metrics.json").load()

    def test_load_not_an_object(self, tmp_path):
        store = SnapshotStore(tmp_path / "metrics.json")
        store.path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(MalformedPayloadError):
            store.load_raw()

    def test_load_snapshot_without_data(self, tmp_path):
        store = SnapshotStore(tmp_path / "metrics.json")
        store.path.write_text('{"totalSupply": 1}', encoding="utf-8")

        with pytest.raises(MalformedPayloadError):
            store.load()
