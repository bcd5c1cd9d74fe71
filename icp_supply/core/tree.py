"""The supply tree: an immutable, ordered mapping of dotted keys to nodes.

Parent/child relations are resolved through a ``KeyIndex`` built once from
the canonical key list. Nodes reference their parents by key only, so the
tree never contains object cycles.
"""

import logging
import math
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from .canonical import (
    CANONICAL_INDEX,
    SUMMED_PARENTS,
    KeyIndex,
)
from .exceptions import MalformedPayloadError, TreeInvariantViolation
from .models import MetricNode
from .types import EpochMillis, Percentage, TokenAmount

logger = logging.getLogger(__name__)

SUM_REL_TOLERANCE = 1e-6
SUM_ABS_TOLERANCE = 1e-6

SNAPSHOT_SOURCE = "snapshot"


def _epoch_millis(moment: datetime) -> EpochMillis:
    return int(moment.timestamp() * 1000)


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat() rejects the trailing "Z" before Python 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class SupplyTree:
    """
    Ordered, read-only collection of supply nodes.

    Usage:
        tree = SupplyTree.from_values({"total": 537_308_290.0, ...})
        tree.validate()
        tree["staked.locked"].value
        tree.children("staked")
    """

    def __init__(
        self,
        nodes: Mapping[str, MetricNode],
        total_supply: TokenAmount,
        last_updated: datetime | None = None,
        fetched_at: EpochMillis | None = None,
        index: KeyIndex = CANONICAL_INDEX,
    ):
        self._nodes: Mapping[str, MetricNode] = MappingProxyType(dict(nodes))
        self._index = index
        self.total_supply = total_supply
        self.last_updated = last_updated
        self.fetched_at = fetched_at
        if last_updated is not None and fetched_at is None:
            self.fetched_at = _epoch_millis(last_updated)

    @classmethod
    def from_values(
        cls,
        values: Mapping[str, TokenAmount],
        total_supply: TokenAmount | None = None,
        last_updated: datetime | None = None,
        fetched_at: EpochMillis | None = None,
        index: KeyIndex = CANONICAL_INDEX,
    ) -> "SupplyTree":
        """
        Build a tree over the index's key list from a key -> value mapping.

        Structure (level, parent, expandable) comes from the index; keys
        missing from ``values`` get 0.
        """
        nodes: dict[str, MetricNode] = {}
        for key in index.keys:
            nodes[key] = MetricNode(
                key=key,
                value=float(values.get(key, 0.0)),
                level=index.level(key),
                parent_key=index.parent(key),
                expandable=index.is_expandable(key),
            )

        if total_supply is None:
            total_supply = float(values.get("total", 0.0))

        return cls(
            nodes,
            total_supply=total_supply,
            last_updated=last_updated,
            fetched_at=fetched_at,
            index=index,
        )

    @classmethod
    def empty(cls) -> "SupplyTree":
        """All-zero tree so the table can render before any data arrives."""
        return cls.from_values({}, total_supply=0.0)

    # Mapping-style access

    def __getitem__(self, key: str) -> MetricNode:
        return self._nodes[key]

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def nodes(self) -> Mapping[str, MetricNode]:
        return self._nodes

    @property
    def index(self) -> KeyIndex:
        return self._index

    def keys(self) -> tuple[str, ...]:
        return tuple(self._nodes)

    def get(self, key: str) -> MetricNode | None:
        return self._nodes.get(key)

    def value(self, key: str) -> TokenAmount:
        return self._nodes[key].value

    def parent(self, key: str) -> MetricNode | None:
        parent_key = self._index.parent(key)
        return self._nodes.get(parent_key) if parent_key else None

    def children(self, key: str) -> list[MetricNode]:
        return [self._nodes[k] for k in self._index.children(key) if k in self._nodes]

    def ancestors(self, key: str) -> tuple[str, ...]:
        return self._index.ancestors(key)

    @property
    def is_real_data(self) -> bool:
        """True once the tree holds fetched numbers rather than the empty skeleton."""
        return self.total_supply > 0

    def percentage_of_total(self, key: str) -> Percentage:
        """Share of total supply; the total row is always 100."""
        if key == "total":
            return 100.0
        value = self._nodes[key].value
        if self.total_supply <= 0 or value <= 0:
            return 0.0
        return value / self.total_supply * 100

    # Validation

    def validate(self) -> None:
        """
        Check structural and rollup invariants.

        Raises:
            TreeInvariantViolation: On the first broken invariant
        """
        expected = self._index.keys
        if tuple(self._nodes) != expected:
            missing = [k for k in expected if k not in self._nodes]
            extra = [k for k in self._nodes if k not in self._index]
            key = (missing or extra or ["<order>"])[0]
            raise TreeInvariantViolation(
                key,
                f"key set differs from canonical list (missing={missing}, extra={extra})",
            )

        for key, node in self._nodes.items():
            if node.key != key:
                raise TreeInvariantViolation(key, f"node stored under wrong key '{node.key}'")

            if node.level != self._index.level(key):
                raise TreeInvariantViolation(
                    key, f"level {node.level} does not match depth {self._index.level(key)}"
                )

            if node.parent_key is not None and node.parent_key not in self._nodes:
                raise TreeInvariantViolation(key, f"parent '{node.parent_key}' not in tree")

            if node.parent_key != self._index.parent(key):
                raise TreeInvariantViolation(
                    key, f"parent '{node.parent_key}' does not match key path"
                )

            if node.expandable and not self._index.children(key):
                raise TreeInvariantViolation(key, "expandable node has no children")

            if not math.isfinite(node.value) or node.value < 0:
                raise TreeInvariantViolation(key, f"invalid value {node.value}")

        for parent_key in SUMMED_PARENTS:
            if parent_key not in self._nodes:
                continue
            parent_value = self._nodes[parent_key].value
            children_total = math.fsum(child.value for child in self.children(parent_key))
            if not math.isclose(
                parent_value,
                children_total,
                rel_tol=SUM_REL_TOLERANCE,
                abs_tol=SUM_ABS_TOLERANCE,
            ):
                raise TreeInvariantViolation(
                    parent_key,
                    f"value {parent_value:,.8f} != sum of children {children_total:,.8f}",
                )

    # Snapshot exchange format

    def to_snapshot(self) -> dict[str, Any]:
        """Serialize to the snapshot format consumed by the presentation layer."""
        last_updated = self.last_updated or datetime.now(timezone.utc)
        return {
            "data": {key: node.to_snapshot_entry() for key, node in self._nodes.items()},
            "totalSupply": self.total_supply,
            "lastUpdated": last_updated.isoformat(),
            "fetchedAt": self.fetched_at
            if self.fetched_at is not None
            else _epoch_millis(last_updated),
        }

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Mapping[str, Any],
        index: KeyIndex = CANONICAL_INDEX,
    ) -> "SupplyTree":
        """
        Rebuild a tree from the snapshot format.

        Structure is re-derived from the canonical key list; only values are
        read from the snapshot. Unknown keys are ignored.

        Raises:
            MalformedPayloadError: If required fields or canonical keys are missing
            TreeInvariantViolation: If the restored values break an invariant
        """
        data = snapshot.get("data")
        total_supply = snapshot.get("totalSupply")
        if not isinstance(data, Mapping) or total_supply is None:
            raise MalformedPayloadError(
                SNAPSHOT_SOURCE, "snapshot requires 'data' and 'totalSupply'"
            )

        missing = [key for key in index.keys if key not in data]
        if missing:
            raise MalformedPayloadError(
                SNAPSHOT_SOURCE, f"missing {len(missing)} keys, first: {missing[0]}"
            )

        unknown = [key for key in data if key not in index]
        if unknown:
            logger.warning(f"Ignoring {len(unknown)} unknown snapshot keys: {unknown}")

        values: dict[str, TokenAmount] = {}
        for key in index.keys:
            entry = data[key]
            try:
                values[key] = float(entry["value"])
            except (TypeError, KeyError, ValueError) as e:
                raise MalformedPayloadError(
                    SNAPSHOT_SOURCE, f"bad entry for '{key}': {entry!r}"
                ) from e

        last_updated = None
        if snapshot.get("lastUpdated"):
            try:
                last_updated = _parse_timestamp(str(snapshot["lastUpdated"]))
            except ValueError as e:
                raise MalformedPayloadError(
                    SNAPSHOT_SOURCE, f"bad lastUpdated {snapshot['lastUpdated']!r}"
                ) from e

        try:
            total_supply = float(total_supply)
        except (TypeError, ValueError) as e:
            raise MalformedPayloadError(
                SNAPSHOT_SOURCE, f"bad totalSupply {total_supply!r}"
            ) from e
        if not math.isfinite(total_supply) or total_supply < 0:
            raise MalformedPayloadError(SNAPSHOT_SOURCE, f"bad totalSupply {total_supply!r}")

        fetched_at = snapshot.get("fetchedAt")
        if fetched_at is not None:
            try:
                fetched_at = int(fetched_at)
            except (TypeError, ValueError, OverflowError) as e:
                raise MalformedPayloadError(
                    SNAPSHOT_SOURCE, f"bad fetchedAt {fetched_at!r}"
                ) from e

        tree = cls.from_values(
            values,
            total_supply=total_supply,
            last_updated=last_updated,
            fetched_at=fetched_at,
            index=index,
        )
        tree.validate()
        return tree

    def __repr__(self) -> str:
        return (
            f"SupplyTree(nodes={len(self._nodes)}, total_supply={self.total_supply:,.0f}, "
            f"last_updated={self.last_updated})"
        )
