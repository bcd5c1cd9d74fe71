"""Expand/collapse state of the supply table.

A node is visible when it is a root or when every ancestor on its dotted
path is expanded. Collapsing a grandparent therefore hides all of its
descendants even if an intermediate level is still marked expanded.
"""

import logging
from typing import Iterable

from ..core.canonical import CANONICAL_INDEX, DEFAULT_EXPANDED, KeyIndex
from ..core.models import MetricNode
from ..core.tree import SupplyTree

logger = logging.getLogger(__name__)


class ViewState:
    """
    Set of expanded keys and the visibility rule derived from it.

    All operations are synchronous and never fail; unknown keys are simply
    stored and have no effect on canonical rows.

    Usage:
        view = ViewState()
        view.toggle("staked.locked")
        rows = view.visible_nodes(tree)
    """

    def __init__(
        self,
        expanded: Iterable[str] | None = None,
        defaults: Iterable[str] = DEFAULT_EXPANDED,
    ):
        self.defaults: frozenset[str] = frozenset(defaults)
        self._expanded: set[str] = set(self.defaults if expanded is None else expanded)

    @property
    def expanded(self) -> frozenset[str]:
        """Snapshot of the expanded keys."""
        return frozenset(self._expanded)

    def is_expanded(self, key: str) -> bool:
        return key in self._expanded

    def expand(self, key: str) -> None:
        self._expanded.add(key)

    def collapse(self, key: str) -> None:
        self._expanded.discard(key)

    def toggle(self, key: str) -> bool:
        """Flip a key's state; returns True if it is now expanded."""
        if key in self._expanded:
            self._expanded.discard(key)
            return False
        self._expanded.add(key)
        return True

    def set_expanded(self, keys: Iterable[str]) -> None:
        self._expanded = set(keys)

    def collapse_all(self) -> None:
        self._expanded.clear()
        logger.debug("Collapsed all expandable rows")

    def expand_defaults(self) -> None:
        self._expanded = set(self.defaults)
        logger.debug("Expanded main rows")

    def expand_all(self, tree: SupplyTree | None = None) -> None:
        """Expand every expandable node."""
        index = tree.index if tree is not None else CANONICAL_INDEX
        self._expanded = {key for key in index.keys if index.is_expandable(key)}

    def is_visible(self, key: str, tree: SupplyTree | None = None) -> bool:
        """
        Check whether a row is shown.

        Args:
            key: Dotted node key
            tree: Tree whose parent index to use (canonical index if omitted)

        Returns:
            True if ``key`` is a root or all of its ancestors are expanded
        """
        index: KeyIndex = tree.index if tree is not None else CANONICAL_INDEX
        return all(ancestor in self._expanded for ancestor in index.ancestors(key))

    def visible_keys(self, tree: SupplyTree) -> list[str]:
        """Visible keys in display order."""
        return [key for key in tree if self.is_visible(key, tree)]

    def visible_nodes(self, tree: SupplyTree) -> list[MetricNode]:
        """Visible nodes in display order."""
        return [tree[key] for key in self.visible_keys(tree)]

    def __repr__(self) -> str:
        return f"ViewState(expanded={sorted(self._expanded)})"
