import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Mapping, Optional

import httpx

from charity_gateway.app.core.http_client import create_http_client
from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.exceptions import UpstreamError
from charity_gateway.app.providers.retry import RetryPolicy, SleepFunc, retry_async

logger = get_logger(__name__)

USER_AGENT = "charity-gateway/1.0.0"

# Messages for the statuses callers most often need to tell apart
STATUS_MESSAGES: Dict[int, str] = {
    400: "Invalid request parameters",
    401: "Invalid API key or unauthorized",
    403: "Access forbidden - check API permissions",
    404: "Charity not found",
    429: "Rate limit exceeded",
    500: "Internal server error",
}


def map_upstream_error(error: Exception) -> UpstreamError:
    """Translate a final request failure into an ``UpstreamError``.

    Args:
        error: The exception raised by the last attempt

    Returns:
        UpstreamError carrying the HTTP status (if any) and the cause
    """
    status: Optional[int] = None
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code

    message = STATUS_MESSAGES.get(status) if status is not None else None
    if message is None:
        message = f"API request failed: {error}"
    return UpstreamError(message, status_code=status, cause=error)


class BaseProvider:
    """Base class for REST upstreams reached through httpx.

    Subclasses can accept an external httpx.AsyncClient for connection pooling,
    or let a client be created per request if none is provided.

    This base class owns header construction, the retry loop and the
    mapping of failures to ``UpstreamError``. It keeps no mutable state
    between calls, so one instance can be shared by concurrent callers.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_ms: int = 10000,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """Initialize the provider.

        Args:
            base_url: The API base URL
            api_key: Optional API key for authentication
            http_client: Optional shared HTTP client for connection pooling
            timeout_ms: Request timeout in milliseconds
            retry_policy: Backoff policy for transient failures
            sleep: Coroutine function used to wait between retries
        """
        self._http_client = http_client
        self.base_url = base_url.rstrip('/')  # Remove trailing slash
        self.api_key = api_key
        self.timeout_ms = timeout_ms
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self.headers = self._build_headers()

    @property
    def http_client(self) -> Optional[httpx.AsyncClient]:
        """Get the HTTP client, if one was provided."""
        return self._http_client

    def _build_headers(self) -> Dict[str, str]:
        """Build the HTTP headers for API requests.

        Returns:
            Dictionary of HTTP headers
        """
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        if self.api_key:
            headers["apikey"] = self.api_key
        return headers

    @asynccontextmanager
    async def _client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        """Context manager for HTTP client lifecycle.

        If using shared client, just yield it.
        If using per-request client, manage its lifecycle.
        """
        if self._http_client is not None:
            yield self._http_client
            return
        client = create_http_client(timeout_ms=self.timeout_ms)
        try:
            yield client
        finally:
            await client.aclose()

    def _get_endpoint_url(self, endpoint: str) -> str:
        """Build full URL for an API endpoint.

        Args:
            endpoint: API endpoint path (e.g., "/api/organizations")

        Returns:
            Full URL
        """
        return f"{self.base_url}{endpoint}"

    async def _get_json(
        self,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """GET ``endpoint`` with retries and return the decoded JSON body.

        Raises:
            UpstreamError: On a non-retryable failure or once retries run out
            RequestCancelledError: If ``cancel_event`` fires
        """
        url = self._get_endpoint_url(endpoint)
        query = {k: v for k, v in (params or {}).items() if v is not None}

        async def attempt() -> httpx.Response:
            async with self._client_context() as client:
                resp = await client.get(
                    url,
                    params=query or None,
                    headers=self.headers,
                    timeout=self.timeout_ms / 1000,
                )
                resp.raise_for_status()
                return resp

        try:
            resp = await retry_async(
                attempt,
                self.retry_policy,
                sleep=self._sleep,
                cancel_event=cancel_event,
                description=f"GET {endpoint}",
            )
        except httpx.HTTPError as e:
            raise map_upstream_error(e) from e

        try:
            return resp.json()
        except ValueError as e:
            raise map_upstream_error(e) from e
