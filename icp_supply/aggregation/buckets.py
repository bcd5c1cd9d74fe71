"""Dissolve-delay bucket aggregation.

Groups governance-metrics records by dissolve delay into the nine fixed
year ranges and sums their amounts in ICP. Pure computation, no I/O.
"""

import logging
import math
from typing import Iterable

from ..core.canonical import BUCKET_RANGES, BucketRange, e8s_to_tokens
from ..core.exceptions import UnknownBucketKeyError
from ..core.models import BucketRecord
from ..core.types import TokenAmount

logger = logging.getLogger(__name__)


class BucketAggregator:
    """Sums bucket records per dissolve-delay range."""

    def __init__(self, ranges: tuple[BucketRange, ...] = BUCKET_RANGES):
        """
        Initialize aggregator.

        Args:
            ranges: Contiguous, exhaustive ranges over [0, inf)
        """
        self.ranges = ranges

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(r.label for r in self.ranges)

    def bucket_for(self, months: int) -> BucketRange:
        """
        Find the range containing a dissolve delay.

        Raises:
            UnknownBucketKeyError: If no range contains ``months`` (e.g. negative)
        """
        for bucket in self.ranges:
            if bucket.contains(months):
                return bucket
        raise UnknownBucketKeyError(months)

    def aggregate(self, records: Iterable[BucketRecord]) -> dict[str, TokenAmount]:
        """
        Sum record amounts per range.

        Amounts are summed as integer e8s and scaled once per range, so the
        output total equals the input total without float drift.

        Args:
            records: Bucket records from one governance-metrics endpoint

        Returns:
            Mapping of every range label to its ICP total (0 when empty)

        Raises:
            UnknownBucketKeyError: On a record outside every range
        """
        totals_e8s: dict[str, int] = {label: 0 for label in self.labels}
        count = 0

        for record in records:
            bucket = self.bucket_for(record.dissolve_delay_months)
            totals_e8s[bucket.label] += record.amount_e8s
            count += 1

        logger.debug(f"Aggregated {count} bucket records into {len(totals_e8s)} ranges")
        return {label: e8s_to_tokens(total) for label, total in totals_e8s.items()}

    @staticmethod
    def total(buckets: dict[str, TokenAmount]) -> TokenAmount:
        """Sum of an aggregation's range values."""
        return math.fsum(buckets.values())
