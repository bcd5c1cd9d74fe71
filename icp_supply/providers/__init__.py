"""Data providers for the supply dashboard.

This module contains providers for:
- Ledger supply totals (ledger API)
- Daily governance stats and dissolve-delay buckets (IC dashboard API)
"""

from .base import BaseProvider
from .ic_api import ICMetricSource

__all__ = ["BaseProvider", "ICMetricSource"]
