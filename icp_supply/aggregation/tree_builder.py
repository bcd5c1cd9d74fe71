"""Supply tree builder.

Turns the eight validated endpoint payloads into a complete, validated
SupplyTree. Either a whole tree is returned or an exception is raised;
partial trees never leave this module.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from ..core.canonical import CANONICAL_INDEX, PLACEHOLDER_KEYS, KeyIndex, e8s_to_tokens
from ..core.models import RawMetrics
from ..core.tree import SupplyTree
from ..core.types import TokenAmount
from .buckets import BucketAggregator

logger = logging.getLogger(__name__)


class SupplyTreeBuilder:
    """Builds the canonical supply tree from raw metrics."""

    def __init__(
        self,
        aggregator: BucketAggregator | None = None,
        index: KeyIndex = CANONICAL_INDEX,
    ):
        self.aggregator = aggregator or BucketAggregator()
        self.index = index

    def build_from_payloads(
        self,
        payloads: dict[str, Any],
        fetched_at: datetime | None = None,
    ) -> SupplyTree:
        """
        Validate raw JSON payloads and build the tree.

        Raises:
            MalformedPayloadError: If any payload has the wrong shape
            UnknownBucketKeyError: If a bucket record has a negative delay
            TreeInvariantViolation: If the built tree is inconsistent
        """
        return self.build(RawMetrics.from_payloads(payloads), fetched_at=fetched_at)

    def build(self, raw: RawMetrics, fetched_at: datetime | None = None) -> SupplyTree:
        """
        Build and validate the supply tree.

        Args:
            raw: Validated payloads of one refresh
            fetched_at: When the payloads were fetched (defaults to now)

        Returns:
            Validated SupplyTree

        Raises:
            UnknownBucketKeyError: If a bucket record has a negative delay
            TreeInvariantViolation: If the built tree is inconsistent
        """
        fetched_at = fetched_at or datetime.now(timezone.utc)
        values = self.compute_values(raw)

        tree = SupplyTree.from_values(
            values,
            total_supply=values["total"],
            last_updated=fetched_at,
            index=self.index,
        )
        tree.validate()

        logger.info(f"Total Supply: {values['total']:,.0f} ICP")
        logger.info(f"Liquid: {values['liquid']:,.0f} ICP")
        logger.info(f"Staked: {values['staked']:,.0f} ICP")
        logger.info(f"Rewards: {values['rewards']:,.0f} ICP")
        logger.info(f"Burned: {values['burned']:,.0f} ICP")
        return tree

    def compute_values(self, raw: RawMetrics) -> dict[str, TokenAmount]:
        """Derive every canonical key's value from the raw metrics."""
        daily = raw.daily_stats
        values: dict[str, TokenAmount] = {}

        # Supply
        values["total"] = e8s_to_tokens(raw.total_supply.supply_e8s)
        values["liquid"] = e8s_to_tokens(raw.circulating_supply.supply_e8s)

        # Staked neurons
        values["staked"] = e8s_to_tokens(daily.governance_total_locked_e8s)
        self._add_buckets(values, "staked.unlocking", raw.dissolving_neurons)
        self._add_buckets(values, "staked.locked", raw.locked_neurons)

        # Rewards (maturity)
        staked_maturity_e8s = daily.governance_total_staked_maturity_e8s_equivalent
        rewards_e8s = (
            raw.total_maturity.governance_total_maturity_e8s_equivalent + staked_maturity_e8s
        )
        values["rewards"] = e8s_to_tokens(rewards_e8s)
        values["rewards.unlocked"] = values["rewards"] - e8s_to_tokens(staked_maturity_e8s)
        self._add_buckets(values, "rewards.unlocking", raw.dissolving_maturity)
        self._add_buckets(values, "rewards.locked", raw.locked_maturity)

        # Burned
        values["burned.fees"] = e8s_to_tokens(daily.icp_burned_fees)
        values["burned.cycles"] = e8s_to_tokens(daily.total_cycle_burn_till_date)
        values["burned"] = values["burned.fees"] + values["burned.cycles"]

        # No data source yet
        for key in PLACEHOLDER_KEYS:
            values[key] = 0.0

        return values

    def _add_buckets(self, values: dict[str, TokenAmount], parent: str, records: list) -> None:
        buckets = self.aggregator.aggregate(records)
        for label, amount in buckets.items():
            values[f"{parent}.{label}"] = amount
        values[parent] = self.aggregator.total(buckets)
