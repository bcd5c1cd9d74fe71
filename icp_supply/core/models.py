"""Pydantic data models for the supply dashboard.

Raw endpoint payloads are validated into frozen models at the edge so the
aggregation code only ever sees well-typed records. Tree nodes are frozen
as well: a published tree is never mutated in place.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import MalformedPayloadError
from .types import E8s, MetricEndpoint, RowType, TokenAmount


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEntry(BaseModel):
    """Audit trail entry for one fetch attempt."""

    timestamp: datetime = Field(default_factory=_utcnow)
    endpoint: str
    action: str  # "fetch", "parse", "build"
    url: str | None = None
    attempt: int | None = None
    success: bool = True
    error_message: str | None = None
    duration_ms: int | None = None
    notes: str | None = None

    model_config = {"frozen": True}


class SupplyRecord(BaseModel):
    """Total or circulating supply from the ledger API."""

    supply_e8s: E8s = Field(ge=0)

    model_config = {"frozen": True}


class DailyStats(BaseModel):
    """Governance and burn totals from the daily-stats endpoint."""

    governance_total_locked_e8s: E8s = Field(ge=0)
    governance_total_staked_maturity_e8s_equivalent: E8s = Field(default=0, ge=0)
    icp_burned_fees: E8s = Field(ge=0)
    total_cycle_burn_till_date: E8s = Field(ge=0)

    model_config = {"frozen": True}

    @field_validator("governance_total_staked_maturity_e8s_equivalent", mode="before")
    @classmethod
    def default_missing_maturity(cls, v: Any) -> Any:
        return 0 if v is None else v


class MaturityRecord(BaseModel):
    """Total unstaked maturity across all neurons."""

    governance_total_maturity_e8s_equivalent: E8s = Field(ge=0)

    model_config = {"frozen": True}


class BucketRecord(BaseModel):
    """One dissolve-delay bucket from a governance-metrics endpoint.

    The endpoint calls the amount ``count`` and may send it as a string.
    """

    dissolve_delay_months: int
    amount_e8s: E8s = Field(alias="count", ge=0)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


def _parse(endpoint: MetricEndpoint, model: type[BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedPayloadError(endpoint.value, str(e)) from e


def _parse_list(
    endpoint: MetricEndpoint, model: type[BaseModel], payload: Any
) -> list[Any]:
    if not isinstance(payload, list):
        raise MalformedPayloadError(
            endpoint.value, f"expected a list, got {type(payload).__name__}"
        )
    return [_parse(endpoint, model, item) for item in payload]


class RawMetrics(BaseModel):
    """The eight validated payloads of one refresh."""

    total_supply: SupplyRecord
    circulating_supply: SupplyRecord
    daily_stats: DailyStats
    total_maturity: MaturityRecord
    dissolving_neurons: list[BucketRecord] = Field(default_factory=list)
    locked_neurons: list[BucketRecord] = Field(default_factory=list)
    dissolving_maturity: list[BucketRecord] = Field(default_factory=list)
    locked_maturity: list[BucketRecord] = Field(default_factory=list)

    model_config = {"frozen": True}

    @classmethod
    def from_payloads(cls, payloads: dict[str, Any]) -> "RawMetrics":
        """
        Validate raw JSON payloads keyed by endpoint name.

        Args:
            payloads: Decoded JSON per ``MetricEndpoint`` value

        Returns:
            RawMetrics with every payload validated

        Raises:
            MalformedPayloadError: If a payload is missing or has the wrong shape
        """
        for endpoint in MetricEndpoint:
            if endpoint.value not in payloads:
                raise MalformedPayloadError(endpoint.value, "payload missing")

        daily = payloads[MetricEndpoint.DAILY_STATS.value]
        if isinstance(daily, list):
            if not daily:
                raise MalformedPayloadError(
                    MetricEndpoint.DAILY_STATS.value, "empty daily-stats list"
                )
            # Most recent record first
            daily = daily[0]

        return cls(
            total_supply=_parse(
                MetricEndpoint.TOTAL_SUPPLY, SupplyRecord, payloads["total_supply"]
            ),
            circulating_supply=_parse(
                MetricEndpoint.CIRCULATING_SUPPLY,
                SupplyRecord,
                payloads["circulating_supply"],
            ),
            daily_stats=_parse(MetricEndpoint.DAILY_STATS, DailyStats, daily),
            total_maturity=_parse(
                MetricEndpoint.TOTAL_MATURITY, MaturityRecord, payloads["total_maturity"]
            ),
            dissolving_neurons=_parse_list(
                MetricEndpoint.DISSOLVING_NEURONS,
                BucketRecord,
                payloads["dissolving_neurons"],
            ),
            locked_neurons=_parse_list(
                MetricEndpoint.LOCKED_NEURONS, BucketRecord, payloads["locked_neurons"]
            ),
            dissolving_maturity=_parse_list(
                MetricEndpoint.DISSOLVING_MATURITY,
                BucketRecord,
                payloads["dissolving_maturity"],
            ),
            locked_maturity=_parse_list(
                MetricEndpoint.LOCKED_MATURITY, BucketRecord, payloads["locked_maturity"]
            ),
        )


class MetricNode(BaseModel):
    """One row of the supply tree."""

    key: str
    value: TokenAmount = 0.0
    level: int = Field(ge=0, le=2)
    parent_key: str | None = None
    expandable: bool = False

    model_config = {"frozen": True}

    @property
    def row_type(self) -> RowType:
        return RowType.for_level(self.level)

    def to_snapshot_entry(self) -> dict[str, Any]:
        """Snapshot representation; ``parent`` and ``expandable`` only when set."""
        entry: dict[str, Any] = {"value": self.value, "type": self.row_type.value}
        if self.parent_key is not None:
            entry["parent"] = self.parent_key
        if self.expandable:
            entry["expandable"] = True
        return entry
