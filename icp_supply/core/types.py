"""Type definitions and enums for the supply dashboard."""

from enum import Enum
from typing import Literal


class RowType(str, Enum):
    """Row styles of the supply table, one per nesting level."""

    LEVEL_0 = "row-level-0"
    LEVEL_1 = "row-level-1"
    LEVEL_2 = "row-level-2"

    @classmethod
    def for_level(cls, level: int) -> "RowType":
        """Row type for a nesting depth."""
        return {0: cls.LEVEL_0, 1: cls.LEVEL_1, 2: cls.LEVEL_2}[level]


class MetricEndpoint(str, Enum):
    """Named remote endpoints feeding one refresh."""

    TOTAL_SUPPLY = "total_supply"
    CIRCULATING_SUPPLY = "circulating_supply"
    DAILY_STATS = "daily_stats"
    DISSOLVING_NEURONS = "dissolving_neurons"
    LOCKED_NEURONS = "locked_neurons"
    TOTAL_MATURITY = "total_maturity"
    DISSOLVING_MATURITY = "dissolving_maturity"
    LOCKED_MATURITY = "locked_maturity"


# Type aliases for common patterns
E8s = int  # Fixed-point amount, 10^8 per ICP
TokenAmount = float  # Amount in ICP
Percentage = float  # 0-100 scale
EpochMillis = int

OutputFormatType = Literal["table", "json", "csv"]
