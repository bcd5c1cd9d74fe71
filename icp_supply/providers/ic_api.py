"""Internet Computer metrics provider.

Fetches the eight supply and governance payloads from the ledger API and
the IC dashboard API. All requests are issued concurrently; each has its
own retry loop with linearly increasing backoff, and the call only
returns once every request has either succeeded or exhausted its retries.
"""

import asyncio
import logging
import time
from typing import Any

import httpx

from .. import __version__
from ..core.config import DEFAULT_ENDPOINTS, DashboardConfig
from ..core.exceptions import EndpointUnavailableError
from ..core.types import MetricEndpoint
from .base import BaseProvider

logger = logging.getLogger(__name__)

USER_AGENT = f"icp-supply-dashboard/{__version__}"


class ICMetricSource(BaseProvider):
    """Fetches raw metric payloads from the IC public APIs."""

    SOURCE = "ic-api"

    def __init__(
        self,
        endpoints: dict[str, str] | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize IC metric source.

        Args:
            endpoints: Endpoint name -> URL (defaults to the public APIs)
            max_retries: Attempts per endpoint
            retry_delay: Base backoff in seconds
            timeout: Per-attempt timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(max_retries=max_retries, retry_delay=retry_delay, timeout=timeout)
        self.endpoints = dict(endpoints or DEFAULT_ENDPOINTS)
        self.transport = transport

    @classmethod
    def from_config(
        cls,
        config: DashboardConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ICMetricSource":
        return cls(
            endpoints=config.endpoints,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            timeout=config.timeout,
            transport=transport,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        )

    async def fetch(self, client: httpx.AsyncClient, name: str) -> Any:
        """
        Fetch one endpoint with retries.

        Args:
            client: Shared async client
            name: Endpoint name (``MetricEndpoint`` value)

        Returns:
            Decoded JSON payload

        Raises:
            EndpointUnavailableError: After the last failed attempt
        """
        url = self.endpoints[name]
        last_error = "no attempt made"
        last_status: int | None = None

        for attempt in range(1, self.max_retries + 1):
            logger.info(f"Fetching {name} (attempt {attempt}/{self.max_retries})")
            start_time = time.monotonic()

            try:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
            except httpx.HTTPStatusError as e:
                last_status = e.response.status_code
                last_error = f"HTTP {last_status}: {e.response.reason_phrase}"
            except httpx.RequestError as e:
                last_error = f"{type(e).__name__}: {e}"
            except ValueError as e:
                last_error = f"Invalid JSON: {e}"
            else:
                duration_ms = int((time.monotonic() - start_time) * 1000)
                self._record_audit(
                    name, url=url, attempt=attempt, duration_ms=duration_ms
                )
                logger.debug(f"Fetched {name} in {duration_ms}ms")
                return payload

            duration_ms = int((time.monotonic() - start_time) * 1000)
            self._record_audit(
                name,
                url=url,
                attempt=attempt,
                success=False,
                error_message=last_error,
                duration_ms=duration_ms,
            )
            logger.warning(f"Attempt {attempt} failed for {name}: {last_error}")

            if attempt < self.max_retries:
                await asyncio.sleep(self.backoff_delay(attempt))

        raise EndpointUnavailableError(
            endpoint=name,
            message=last_error,
            url=url,
            status_code=last_status,
            attempts=self.max_retries,
        )

    async def fetch_all(self) -> dict[str, Any]:
        """
        Fetch every endpoint concurrently.

        A failing endpoint never cancels the others; the call waits for all
        of them before reporting.

        Returns:
            Endpoint name -> decoded JSON payload

        Raises:
            EndpointUnavailableError: If any endpoint exhausted its retries
        """
        names = [endpoint.value for endpoint in MetricEndpoint]

        async with self._client() as client:
            results = await asyncio.gather(
                *(self.fetch(client, name) for name in names),
                return_exceptions=True,
            )

        payloads: dict[str, Any] = {}
        failures: list[BaseException] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                failures.append(result)
            else:
                payloads[name] = result

        if failures:
            for failure in failures:
                logger.error(f"Endpoint failed: {failure}")
            raise failures[0]

        return payloads
