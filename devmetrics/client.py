"""
Async client SDK for reporting API calls to a DevMetrics backend.

Usage::

    async with MetricsClient(api_key="dm_...", base_url="http://localhost:8000") as client:
        await client.track("/api/users", 200, method="GET", response_time=12.5)

        # Report every call made through an existing httpx client
        client.instrument(http_client)

Tracking is fire-and-report: failures are logged and ``track`` returns
False, it never raises into the caller's request path.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from devmetrics.logging.config import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
_START_EXTENSION = "devmetrics_started_at"


def sanitize_url(url: httpx.URL) -> str:
    """Origin plus path, without query string or fragment."""
    return f"{url.scheme}://{url.netloc.decode('ascii')}{url.path}"


class MetricsClient:
    """
    Client for the ``POST /track`` ingestion endpoint.

    Every client is explicitly constructed with its own key and backend;
    there is no process-wide configuration.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Reporting API key
            base_url: Base URL of the DevMetrics backend
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests, custom networking)

        Raises:
            ValueError: If api_key is not a non-empty string
        """
        if not isinstance(api_key, str) or not api_key:
            raise ValueError("api_key is required and must be a string")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )
        # Strong references to in-flight reports from instrumented clients
        self._pending: set[asyncio.Task] = set()

    async def flush(self) -> None:
        """Wait for every report scheduled by instrumented clients."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        """Send pending reports, then close the HTTP client."""
        await self.flush()
        await self.client.aclose()

    async def __aenter__(self) -> "MetricsClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def track(
        self,
        endpoint: Optional[str],
        status: Optional[int],
        method: str = "GET",
        response_time: float = 0,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        """
        Report one API call.

        Args:
            endpoint: Called endpoint
            status: HTTP status code of the call
            method: HTTP method
            response_time: Latency in milliseconds
            timestamp: When the call happened (defaults to now)

        Returns:
            True if the backend stored the event, False otherwise
        """
        if not endpoint or not status:
            logger.warning("Skipping track call without endpoint or status")
            return False

        sent_at = timestamp or datetime.now(timezone.utc)
        payload = {
            "apiKey": self.api_key,
            "endpoint": endpoint,
            "method": method or "GET",
            "status": status,
            "responseTime": response_time or 0,
            "timestamp": sent_at.isoformat(),
        }

        try:
            response = await self.client.post("/track", json=payload)
        except httpx.HTTPError as exc:
            logger.error(
                "Error tracking request",
                extra={"context": {"endpoint": endpoint, "error": str(exc)}},
            )
            return False

        if response.is_error:
            logger.error(
                "Failed to track request",
                extra={
                    "context": {
                        "endpoint": endpoint,
                        "status_code": response.status_code,
                        "body": response.text[:500],
                    }
                },
            )
            return False
        return True

    def should_track(self, url: httpx.URL) -> bool:
        """Calls to the metrics backend itself are never reported."""
        return not str(url).startswith(self.base_url)

    def instrument(self, http_client: httpx.AsyncClient) -> httpx.AsyncClient:
        """
        Report every request made through ``http_client``.

        Adds request/response event hooks that time each call and send it
        to ``/track`` in a background task, so the caller never waits on the
        metrics backend. ``flush()`` or ``close()`` waits for pending
        reports. Returns the same client for chaining.
        """

        async def on_request(request: httpx.Request) -> None:
            request.extensions[_START_EXTENSION] = time.perf_counter()

        async def on_response(response: httpx.Response) -> None:
            request = response.request
            started = request.extensions.get(_START_EXTENSION)
            if started is None or not self.should_track(request.url):
                return
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            task = asyncio.create_task(
                self.track(
                    sanitize_url(request.url),
                    response.status_code,
                    method=request.method,
                    response_time=elapsed_ms,
                )
            )
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        http_client.event_hooks["request"].append(on_request)
        http_client.event_hooks["response"].append(on_response)
        return http_client
