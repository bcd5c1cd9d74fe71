"""Canonical supply-tree layout.

Everything here is constant: the dissolve-delay bucket ranges, the ordered
list of every valid dotted key, and the parent/child index derived from
that list. Builders, the view layer and the formatters all treat this
module as the authority on display order and node existence.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from .types import E8s, TokenAmount

E8S_PER_TOKEN = 100_000_000


def e8s_to_tokens(amount: E8s | float) -> TokenAmount:
    """Scale a fixed-point e8s amount to ICP."""
    return amount / E8S_PER_TOKEN


@dataclass(frozen=True)
class BucketRange:
    """Half-open dissolve-delay interval [start_months, end_months)."""

    label: str
    start_months: int
    end_months: int | None = None  # None = unbounded

    def contains(self, months: int) -> bool:
        if months < self.start_months:
            return False
        return self.end_months is None or months < self.end_months


BUCKET_RANGES: tuple[BucketRange, ...] = tuple(
    BucketRange(f"{year}-{year + 1} years", year * 12, (year + 1) * 12)
    for year in range(8)
) + (BucketRange("8+ years", 96),)

BUCKET_LABELS: tuple[str, ...] = tuple(r.label for r in BUCKET_RANGES)


def _bucketed(parent: str) -> list[str]:
    return [parent] + [f"{parent}.{label}" for label in BUCKET_LABELS]


CANONICAL_KEYS: tuple[str, ...] = tuple(
    [
        "total",
        "liquid",
        "staked",
        *_bucketed("staked.unlocking"),
        *_bucketed("staked.locked"),
        "staked.community",
        "rewards",
        "rewards.unlocked",
        *_bucketed("rewards.unlocking"),
        *_bucketed("rewards.locked"),
        "rewards.allocation",
        "rewards.allocation.stakers",
        "rewards.allocation.nodes",
        "rewards.community",
        "burned",
        "burned.fees",
        "burned.cycles",
    ]
)

# Top-level categories expanded on first render
DEFAULT_EXPANDED: frozenset[str] = frozenset({"staked", "rewards", "burned"})

# Parents whose children fully account for their value
SUMMED_PARENTS: tuple[str, ...] = (
    "staked.unlocking",
    "staked.locked",
    "rewards.unlocking",
    "rewards.locked",
    "burned",
)

# Categories with no data source yet; always 0
PLACEHOLDER_KEYS: tuple[str, ...] = (
    "staked.community",
    "rewards.allocation",
    "rewards.allocation.stakers",
    "rewards.allocation.nodes",
    "rewards.community",
)


def parent_of(key: str) -> str | None:
    """Parent key by dropping the last dotted segment."""
    if "." not in key:
        return None
    return key.rsplit(".", 1)[0]


class KeyIndex:
    """Parent, children, ancestor and level lookups for an ordered key list.

    Built once from the key list so that visibility checks and tree
    validation never re-split dotted keys.
    """

    def __init__(self, keys: Iterable[str]):
        self._keys: tuple[str, ...] = tuple(keys)
        if len(set(self._keys)) != len(self._keys):
            raise ValueError("Duplicate keys in key list")

        parents: dict[str, str | None] = {}
        children: dict[str, list[str]] = {key: [] for key in self._keys}
        ancestors: dict[str, tuple[str, ...]] = {}

        for key in self._keys:
            parent = parent_of(key)
            parents[key] = parent
            if parent is not None and parent in children:
                children[parent].append(key)
            ancestors[key] = self._ancestor_chain(key)

        self._parents: Mapping[str, str | None] = MappingProxyType(parents)
        self._children: Mapping[str, tuple[str, ...]] = MappingProxyType(
            {key: tuple(kids) for key, kids in children.items()}
        )
        self._ancestors: Mapping[str, tuple[str, ...]] = MappingProxyType(ancestors)

    @staticmethod
    def _ancestor_chain(key: str) -> tuple[str, ...]:
        chain = []
        parent = parent_of(key)
        while parent is not None:
            chain.append(parent)
            parent = parent_of(parent)
        return tuple(reversed(chain))

    @property
    def keys(self) -> tuple[str, ...]:
        return self._keys

    def __contains__(self, key: object) -> bool:
        return key in self._parents

    def __len__(self) -> int:
        return len(self._keys)

    def parent(self, key: str) -> str | None:
        if key in self._parents:
            return self._parents[key]
        return parent_of(key)

    def children(self, key: str) -> tuple[str, ...]:
        return self._children.get(key, ())

    def ancestors(self, key: str) -> tuple[str, ...]:
        """Strict-prefix ancestors, root first."""
        if key in self._ancestors:
            return self._ancestors[key]
        return self._ancestor_chain(key)

    def level(self, key: str) -> int:
        return len(self.ancestors(key))

    def is_expandable(self, key: str) -> bool:
        return bool(self.children(key))

    def roots(self) -> tuple[str, ...]:
        return tuple(key for key in self._keys if self._parents[key] is None)


CANONICAL_INDEX = KeyIndex(CANONICAL_KEYS)


DISPLAY_NAMES: Mapping[str, str] = MappingProxyType(
    {
        "total": "Total",
        "liquid": "Liquid",
        "staked": "Staked",
        "staked.unlocking": "→ Unlocking",
        "staked.locked": "→ Locked",
        "staked.community": "→ Community",
        "rewards": "Rewards",
        "rewards.unlocked": "→ Unlocked",
        "rewards.unlocking": "→ Unlocking",
        "rewards.locked": "→ Locked",
        "rewards.allocation": "→ Allocation",
        "rewards.allocation.stakers": "→ → Stakers",
        "rewards.allocation.nodes": "→ → Nodes",
        "rewards.community": "→ Community",
        "burned": "Burned",
        "burned.fees": "→ Fees",
        "burned.cycles": "→ Cycles",
    }
)


def display_name(key: str) -> str:
    """Human-readable row label, indented with arrows by depth."""
    if key in DISPLAY_NAMES:
        return DISPLAY_NAMES[key]

    segment = key.rsplit(".", 1)[-1]
    if segment in BUCKET_LABELS:
        return "→ " * CANONICAL_INDEX.level(key) + segment
    return key
