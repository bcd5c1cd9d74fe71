"""Core module - canonical layout, data models, the supply tree and exceptions."""

from .canonical import (
    BUCKET_LABELS,
    BUCKET_RANGES,
    CANONICAL_INDEX,
    CANONICAL_KEYS,
    DEFAULT_EXPANDED,
    E8S_PER_TOKEN,
    BucketRange,
    KeyIndex,
    display_name,
    e8s_to_tokens,
)
from .models import (
    AuditEntry,
    BucketRecord,
    DailyStats,
    MaturityRecord,
    MetricNode,
    RawMetrics,
    SupplyRecord,
)
from .tree import SupplyTree
from .types import MetricEndpoint, RowType
from .exceptions import (
    SupplyDashboardError,
    EndpointUnavailableError,
    MalformedPayloadError,
    TreeInvariantViolation,
    UnknownBucketKeyError,
    ConfigurationError,
    SnapshotNotFoundError,
)

__all__ = [
    # Canonical layout
    "BUCKET_LABELS",
    "BUCKET_RANGES",
    "CANONICAL_INDEX",
    "CANONICAL_KEYS",
    "DEFAULT_EXPANDED",
    "E8S_PER_TOKEN",
    "BucketRange",
    "KeyIndex",
    "display_name",
    "e8s_to_tokens",
    # Models
    "AuditEntry",
    "BucketRecord",
    "DailyStats",
    "MaturityRecord",
    "MetricNode",
    "RawMetrics",
    "SupplyRecord",
    "SupplyTree",
    # Types
    "MetricEndpoint",
    "RowType",
    # Exceptions
    "SupplyDashboardError",
    "EndpointUnavailableError",
    "MalformedPayloadError",
    "TreeInvariantViolation",
    "UnknownBucketKeyError",
    "ConfigurationError",
    "SnapshotNotFoundError",
]
