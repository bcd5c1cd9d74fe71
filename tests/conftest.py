"""Pytest configuration and fixtures for supply dashboard tests."""

import copy
from datetime import datetime, timezone
from typing import Any

import httpx
import pytest

from icp_supply.aggregation.tree_builder import SupplyTreeBuilder
from icp_supply.core.config import DEFAULT_ENDPOINTS
from icp_supply.core.models import RawMetrics
from icp_supply.core.tree import SupplyTree

FETCHED_AT = datetime(2024, 9, 20, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fetched_at() -> datetime:
    return FETCHED_AT


@pytest.fixture
def sample_payloads() -> dict[str, Any]:
    """Raw endpoint payloads with round ICP amounts."""
    return {
        "total_supply": {"supply_e8s": 53_730_829_000_000_000},
        "circulating_supply": {"supply_e8s": 24_494_628_200_000_000},
        "daily_stats": [
            {
                "day": "2024-09-20",
                "governance_total_locked_e8s": 23_178_725_700_000_000,
                "governance_total_staked_maturity_e8s_equivalent": 1_205_920_500_000_000,
                "icp_burned_fees": 261_100_000_000,
                "total_cycle_burn_till_date": 211_504_900_000_000,
            },
            {
                "day": "2024-09-19",
                "governance_total_locked_e8s": 1,
                "governance_total_staked_maturity_e8s_equivalent": 1,
                "icp_burned_fees": 1,
                "total_cycle_burn_till_date": 1,
            },
        ],
        "total_maturity": {"governance_total_maturity_e8s_equivalent": 9_111_170_900_000_000},
        "dissolving_neurons": [
            {"dissolve_delay_months": 5, "count": "834241800000000"},
            {"dissolve_delay_months": 18, "count": "456892000000000"},
            {"dissolve_delay_months": 100, "count": 100_000_000},
        ],
        "locked_neurons": [
            {"dissolve_delay_months": 0, "count": "1695788100000000"},
            {"dissolve_delay_months": 96, "count": "14757827600000000"},
            {"dissolve_delay_months": 200, "count": "100000000"},
        ],
        "dissolving_maturity": [
            {"dissolve_delay_months": 30, "count": "19266400000000"},
        ],
        "locked_maturity": [
            {"dissolve_delay_months": 120, "count": "947385600000000"},
        ],
    }


@pytest.fixture
def payloads_factory(sample_payloads: dict[str, Any]):
    """Return deep copies of the sample payloads with overrides applied."""

    def _make(**overrides: Any) -> dict[str, Any]:
        payloads = copy.deepcopy(sample_payloads)
        payloads.update(overrides)
        return payloads

    return _make


@pytest.fixture
def sample_raw_metrics(sample_payloads: dict[str, Any]) -> RawMetrics:
    return RawMetrics.from_payloads(sample_payloads)


@pytest.fixture
def sample_tree(sample_raw_metrics: RawMetrics) -> SupplyTree:
    """Validated tree built from the sample payloads."""
    return SupplyTreeBuilder().build(sample_raw_metrics, fetched_at=FETCHED_AT)


@pytest.fixture
def mock_transport(sample_payloads: dict[str, Any]):
    """
    Build an httpx.MockTransport serving the sample payloads.

    ``failures`` maps endpoint name -> number of leading 503 responses
    (use a large number for a permanently failing endpoint). The returned
    transport exposes ``calls`` (endpoint name -> request count).
    """

    def _make(failures: dict[str, int] | None = None) -> httpx.MockTransport:
        failures = dict(failures or {})
        by_url = {url: name for name, url in DEFAULT_ENDPOINTS.items()}
        calls: dict[str, int] = {name: 0 for name in DEFAULT_ENDPOINTS}

        def handler(request: httpx.Request) -> httpx.Response:
            name = by_url[str(request.url)]
            calls[name] += 1
            if calls[name] <= failures.get(name, 0):
                return httpx.Response(503, json={"error": "unavailable"})
            return httpx.Response(200, json=sample_payloads[name])

        transport = httpx.MockTransport(handler)
        transport.calls = calls
        return transport

    return _make
