"""Dashboard context: the current supply tree, its fallback and the view state.

``SupplyDashboard`` is constructed explicitly and handed to whatever needs
it (the CLI, tests); there is no process-wide data holder. It coordinates
a refresh (fetch -> build -> publish -> persist), keeps the last good tree
when a refresh fails, and answers the consumer queries of the
presentation layer.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from .aggregation.tree_builder import SupplyTreeBuilder
from .core.canonical import CANONICAL_KEYS
from .core.config import DashboardConfig
from .core.exceptions import SupplyDashboardError, TreeInvariantViolation
from .core.models import AuditEntry, MetricNode
from .core.tree import SupplyTree
from .providers.base import BaseProvider
from .providers.ic_api import ICMetricSource
from .storage.json_store import SnapshotStore
from .view.state import ViewState

logger = logging.getLogger(__name__)


class SupplyDashboard:
    """Owns the published supply tree and the expand/collapse state."""

    def __init__(
        self,
        source: BaseProvider | None = None,
        builder: SupplyTreeBuilder | None = None,
        store: SnapshotStore | None = None,
        view_state: ViewState | None = None,
        config: DashboardConfig | None = None,
    ):
        """
        Initialize the dashboard context.

        Args:
            source: Metric provider (IC APIs by default)
            builder: Tree builder
            store: Optional snapshot store; refreshed trees are saved to it
            view_state: Expand/collapse state (defaults expanded)
            config: Settings used for defaults and staleness checks
        """
        self.config = config or DashboardConfig()
        self.source = source or ICMetricSource.from_config(self.config)
        self.builder = builder or SupplyTreeBuilder()
        self.store = store
        self.view_state = view_state or ViewState()

        self._tree: SupplyTree | None = None
        self._generation = 0
        self._published_generation = 0
        self.last_error: SupplyDashboardError | None = None

    @classmethod
    def from_config(
        cls,
        config: DashboardConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "SupplyDashboard":
        return cls(
            source=ICMetricSource.from_config(config, transport=transport),
            store=SnapshotStore(config.snapshot_path),
            config=config,
        )

    @property
    def tree(self) -> SupplyTree | None:
        """The published tree, or None if nothing has loaded yet."""
        return self._tree

    def display_tree(self) -> SupplyTree:
        """Published tree, or the all-zero skeleton before the first load."""
        return self._tree if self._tree is not None else SupplyTree.empty()

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _publish(self, tree: SupplyTree, generation: int) -> bool:
        if generation <= self._published_generation:
            logger.warning(
                f"Discarding result of superseded refresh #{generation} "
                f"(#{self._published_generation} already published)"
            )
            return False
        self._tree = tree
        self._published_generation = generation
        self.last_error = None
        return True

    def _record_failure(self, error: SupplyDashboardError, generation: int) -> None:
        if generation < self._published_generation:
            logger.debug(f"Ignoring failure of superseded refresh #{generation}: {error}")
            return
        self.last_error = error
        if self._tree is not None:
            logger.warning("Using cached data as fallback")

    async def refresh(self, persist: bool = True) -> bool:
        """
        Fetch, build and publish a new tree.

        Never raises a ``SupplyDashboardError``: on failure the error is kept
        in ``last_error`` and the previous tree stays published.

        Args:
            persist: Save the new tree to the store, if one is configured

        Returns:
            True if a new tree was published
        """
        generation = self._next_generation()
        logger.info(f"Refreshing data (#{generation})...")

        try:
            payloads = await self.source.fetch_all()
            tree = self.builder.build_from_payloads(payloads)
        except TreeInvariantViolation as e:
            logger.exception(f"Refusing to publish inconsistent tree: {e}")
            self._record_failure(e, generation)
            return False
        except SupplyDashboardError as e:
            logger.error(f"Failed to refresh data: {e}")
            self._record_failure(e, generation)
            return False

        if not self._publish(tree, generation):
            return False

        if persist and self.store is not None:
            try:
                self.store.save(tree)
            except OSError as e:
                logger.error(f"Failed to save snapshot to {self.store.path}: {e}")

        logger.info("Data refreshed successfully")
        return True

    def load_snapshot(self) -> bool:
        """
        Publish the tree saved in the store.

        Returns:
            True if a snapshot was loaded; on failure ``last_error`` is set
        """
        if self.store is None:
            logger.debug("No snapshot store configured")
            return False

        generation = self._next_generation()
        try:
            tree = self.store.load()
        except SupplyDashboardError as e:
            logger.error(f"Error loading data: {e}")
            self._record_failure(e, generation)
            return False

        return self._publish(tree, generation)

    def get_audit_trail(self) -> list[AuditEntry]:
        return self.source.get_audit_trail()

    # Consumer query surface

    def get_snapshot(self) -> dict[str, Any] | None:
        return self._tree.to_snapshot() if self._tree is not None else None

    def get_total_supply(self) -> float:
        return self._tree.total_supply if self._tree is not None else 0.0

    def get_last_updated(self) -> datetime | None:
        return self._tree.last_updated if self._tree is not None else None

    def get_node(self, key: str) -> MetricNode | None:
        return self._tree.get(key) if self._tree is not None else None

    def get_canonical_keys(self) -> tuple[str, ...]:
        return CANONICAL_KEYS

    def is_visible(self, key: str) -> bool:
        return self.view_state.is_visible(key, self._tree)

    def visible_nodes(self) -> list[MetricNode]:
        return self.view_state.visible_nodes(self.display_tree())

    def is_real_data_loaded(self) -> bool:
        return self._tree is not None and self._tree.is_real_data

    def should_refresh(self, now: datetime | None = None) -> bool:
        """True when no data is loaded or the data is older than the stale limit."""
        last_updated = self.get_last_updated()
        if last_updated is None:
            return True
        now = now or datetime.now(timezone.utc)
        return last_updated < now - timedelta(seconds=self.config.stale_after_seconds)
