"""
JSON-based storage for supply snapshots.

Simple, file-based storage that persists the most recent supply tree in the
snapshot exchange format (``public/metrics.json`` by default). Only one
snapshot is kept; every save replaces the previous file.
"""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from ..core.config import DEFAULT_SNAPSHOT_PATH
from ..core.exceptions import MalformedPayloadError, SnapshotNotFoundError
from ..core.tree import SupplyTree

logger = logging.getLogger(__name__)


class SnapshotStore:
    """
    JSON-based storage for the latest supply snapshot.

    Usage:
        store = SnapshotStore(Path("public/metrics.json"))

        # Save tree
        store.save(tree)

        # Load tree
        tree = store.load()
    """

    def __init__(self, path: Optional[Path] = None):
        """Initialize store with the snapshot file path."""
        self.path = Path(path) if path is not None else DEFAULT_SNAPSHOT_PATH

    def exists(self) -> bool:
        """Check if a snapshot has been saved."""
        return self.path.exists()

    def save(self, tree: SupplyTree) -> Path:
        """
        Save a tree to the snapshot file.

        Returns the path to the saved file.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write next to the target, then swap, so readers never see a partial file
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(tree.to_snapshot(), f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.path)

        size_kb = self.path.stat().st_size / 1024
        logger.info(f"Data saved to: {self.path} ({size_kb:.2f} KB)")
        return self.path

    def load_raw(self) -> dict[str, Any]:
        """Load the snapshot file as decoded JSON."""
        if not self.path.exists():
            raise SnapshotNotFoundError(str(self.path))

        with open(self.path, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise MalformedPayloadError(str(self.path), f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedPayloadError(str(self.path), "snapshot must be a JSON object")
        return data

    def load(self) -> SupplyTree:
        """
        Load and validate the saved tree.

        Raises:
            SnapshotNotFoundError: If no snapshot file exists
            MalformedPayloadError: If the file is not a valid snapshot
            TreeInvariantViolation: If the stored values are inconsistent
        """
        tree = SupplyTree.from_snapshot(self.load_raw())
        logger.info(f"Loaded snapshot with {len(tree)} entries from {self.path}")
        return tree
