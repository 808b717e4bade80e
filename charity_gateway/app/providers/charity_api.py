import asyncio
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from charity_gateway.app.core.config import CharityAPIConfig
from charity_gateway.app.core.logging import get_log_context, get_logger
from charity_gateway.app.core.utils import to_iso_z
from charity_gateway.app.exceptions import UpstreamError
from charity_gateway.app.providers.base import BaseProvider
from charity_gateway.app.providers.retry import RetryPolicy, SleepFunc

logger = get_logger(__name__)


class CharityAPIClient(BaseProvider):
    """Client for the CharityAPI REST service.

    Every operation is a single GET that is retried on transient failures
    and returns the parsed JSON body untouched. Failures surface as
    ``UpstreamError`` exactly once per call.

    If http_client is provided, it will be used for all requests (connection reuse).
    If not, a new client is created per-request.
    """

    def __init__(
        self,
        config: CharityAPIConfig,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        """Initialize the CharityAPI client.

        Args:
            config: Connection and retry settings
            http_client: Optional shared HTTP client
            sleep: Coroutine function used to wait between retries
        """
        super().__init__(
            base_url=config.base_url,
            api_key=config.api_key,
            http_client=http_client,
            timeout_ms=config.timeout_ms,
            retry_policy=RetryPolicy.from_milliseconds(config.max_retries, config.retry_delay_ms),
            sleep=sleep,
        )
        self.config = config

    async def get_organization(
        self, ein: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Dict[str, Any]:
        """Fetch the full IRS record for one organization.

        Args:
            ein: Validated EIN in XX-XXXXXXX form

        Returns:
            The JSON response from CharityAPI

        Raises:
            UpstreamError: If the API call fails
        """
        try:
            return await self._get_json(f"/api/organizations/{ein}", cancel_event=cancel_event)
        except UpstreamError as e:
            logger.error(
                f"Charity lookup failed: {e.message}",
                extra=get_log_context(ein=ein, status_code=e.status_code),
            )
            raise

    async def check_public_charity(
        self, ein: str, cancel_event: Optional[asyncio.Event] = None
    ) -> Dict[str, Any]:
        """Ask whether an organization is a 501(c)(3) public charity.

        Raises:
            UpstreamError: If the API call fails
        """
        try:
            return await self._get_json(f"/api/public_charity_check/{ein}", cancel_event=cancel_event)
        except UpstreamError as e:
            logger.error(
                f"Public charity check failed: {e.message}",
                extra=get_log_context(ein=ein, status_code=e.status_code),
            )
            raise

    async def search_charities(
        self,
        query: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, Any]:
        """Search organizations by name and/or location.

        Parameters left as None are not sent.

        Raises:
            UpstreamError: If the API call fails
        """
        params = {"q": query, "city": city, "state": state, "limit": limit, "offset": offset}
        try:
            return await self._get_json(
                "/api/organizations/search/", params=params, cancel_event=cancel_event
            )
        except UpstreamError as e:
            logger.error(
                f"Charity search failed: {e.message}",
                extra=get_log_context(status_code=e.status_code, params=params),
            )
            raise

    async def list_organizations(
        self, since: datetime, cancel_event: Optional[asyncio.Event] = None
    ) -> Dict[str, Any]:
        """List organizations updated since ``since``.

        Raises:
            UpstreamError: If the API call fails
        """
        since_iso = to_iso_z(since)
        try:
            return await self._get_json(
                "/api/organizations", params={"since": since_iso}, cancel_event=cancel_event
            )
        except UpstreamError as e:
            logger.error(
                f"List organizations failed: {e.message}",
                extra=get_log_context(status_code=e.status_code, since=since_iso),
            )
            raise
