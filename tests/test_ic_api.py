"""Tests for the IC metrics provider."""

import httpx
import pytest

from icp_supply.core.config import DEFAULT_ENDPOINTS, DashboardConfig
from icp_supply.core.exceptions import EndpointUnavailableError
from icp_supply.core.types import MetricEndpoint
from icp_supply.providers.ic_api import USER_AGENT, ICMetricSource


def make_source(transport: httpx.AsyncBaseTransport, max_retries: int = 3) -> ICMetricSource:
    return ICMetricSource(max_retries=max_retries, retry_delay=0, transport=transport)


class TestICMetricSource:
    """Tests for ICMetricSource.fetch_all."""

    @pytest.mark.asyncio
    async def test_fetch_all_success(self, mock_transport, sample_payloads):
        transport = mock_transport()
        source = make_source(transport)

        payloads = await source.fetch_all()

        assert set(payloads) == {endpoint.value for endpoint in MetricEndpoint}
        assert payloads["locked_neurons"] == sample_payloads["locked_neurons"]
        assert all(count == 1 for count in transport.calls.values())

        audit = source.get_audit_trail()
        assert len(audit) == len(MetricEndpoint)
        assert all(entry.success for entry in audit)

    @pytest.mark.asyncio
    async def test_retry_then_success(self, mock_transport):
        transport = mock_transport({"daily_stats": 2})
        source = make_source(transport)

        payloads = await source.fetch_all()

        assert "daily_stats" in payloads
        assert transport.calls["daily_stats"] == 3

        attempts = [e for e in source.get_audit_trail() if e.endpoint == "daily_stats"]
        assert [e.attempt for e in attempts] == [1, 2, 3]
        assert [e.success for e in attempts] == [False, False, True]
        assert attempts[0].error_message.startswith("HTTP 503")

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise(self, mock_transport):
        transport = mock_transport({"total_maturity": 100})
        source = make_source(transport)

        with pytest.raises(EndpointUnavailableError) as exc_info:
            await source.fetch_all()

        error = exc_info.value
        assert error.endpoint == "total_maturity"
        assert error.status_code == 503
        assert error.attempts == 3
        assert transport.calls["total_maturity"] == 3

    @pytest.mark.asyncio
    async def test_failure_does_not_cancel_other_requests(self, mock_transport):
        transport = mock_transport({"circulating_supply": 100})
        source = make_source(transport, max_retries=2)

        with pytest.raises(EndpointUnavailableError):
            await source.fetch_all()

        assert transport.calls["circulating_supply"] == 2
        for name, count in transport.calls.items():
            if name != "circulating_supply":
                assert count == 1, f"{name} should have been fetched once"

    @pytest.mark.asyncio
    async def test_invalid_json_is_retried(self, sample_payloads):
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            name = {url: n for n, url in DEFAULT_ENDPOINTS.items()}[str(request.url)]
            if name == "total_supply":
                calls["count"] += 1
                if calls["count"] == 1:
                    return httpx.Response(200, content=b"<html>not json</html>")
            return httpx.Response(200, json=sample_payloads[name])

        source = make_source(httpx.MockTransport(handler))
        payloads = await source.fetch_all()

        assert payloads["total_supply"] == sample_payloads["total_supply"]
        assert calls["count"] == 2

    @pytest.mark.asyncio
    async def test_user_agent_header(self, sample_payloads):
        seen = set()

        def handler(request: httpx.Request) -> httpx.Response:
            seen.add(request.headers["User-Agent"])
            name = {url: n for n, url in DEFAULT_ENDPOINTS.items()}[str(request.url)]
            return httpx.Response(200, json=sample_payloads[name])

        await make_source(httpx.MockTransport(handler)).fetch_all()

        assert seen == {USER_AGENT}
        assert USER_AGENT.startswith("icp-supply-dashboard/")


class TestRetryPolicy:
    """Tests for backoff and configuration."""

    def test_linear_backoff(self):
        source = ICMetricSource(retry_delay=1.5)
        assert [source.backoff_delay(n) for n in (1, 2, 3)] == [1.5, 3.0, 4.5]

    def test_from_config(self):
        config = DashboardConfig(max_retries=5, retry_delay=0.25, timeout=3.0)
        source = ICMetricSource.from_config(config)

        assert source.max_retries == 5
        assert source.retry_delay == 0.25
        assert source.timeout == 3.0
        assert source.endpoints == DEFAULT_ENDPOINTS

    def test_clear_audit_trail(self):
        source = ICMetricSource()
        source._record_audit("total_supply", attempt=1)
        assert len(source.get_audit_trail()) == 1

        source.clear_audit_trail()
        assert source.get_audit_trail() == []
