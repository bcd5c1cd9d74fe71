"""Storage module for supply snapshots."""

from .json_store import SnapshotStore

__all__ = ["SnapshotStore"]
