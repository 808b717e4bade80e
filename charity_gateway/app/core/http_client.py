"""Shared HTTP client management for connection pooling.

The application creates one ``httpx.AsyncClient`` during lifespan startup
and hands it to the CharityAPI client, so every upstream call reuses the
same connection pool.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

import httpx

from charity_gateway.app.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_CONNECTIONS = 20
DEFAULT_MAX_KEEPALIVE_CONNECTIONS = 10


async def log_request(request: httpx.Request) -> None:
    """Event hook logging each outgoing request."""
    logger.debug(
        f"Making API request: {request.method} {request.url.path}",
        extra={"method": request.method, "params": dict(request.url.params)},
    )


async def log_response(response: httpx.Response) -> None:
    """Event hook logging each received response."""
    request = response.request
    if response.is_success:
        logger.debug(
            f"API response received: {response.status_code} {request.url.path}",
            extra={"status_code": response.status_code},
        )
    else:
        logger.error(
            f"API request failed: {response.status_code} {response.reason_phrase} "
            f"{request.method} {request.url.path}",
            extra={"status_code": response.status_code},
        )


def create_http_client(
    timeout_ms: int = 10000,
    headers: Optional[Dict[str, str]] = None,
    **kwargs,
) -> httpx.AsyncClient:
    """Create a new HTTP client with logging hooks attached.

    Note: The returned client should be closed when done:
        async with create_http_client() as client:
            # use client
            pass

    Args:
        timeout_ms: Overall timeout for connect/read/write/pool in milliseconds
        headers: Default headers sent with every request
        **kwargs: Extra keyword arguments for ``httpx.AsyncClient``
            (``transport`` is handy in tests)

    Returns:
        A new httpx.AsyncClient instance.
    """
    limits = httpx.Limits(
        max_connections=kwargs.pop("max_connections", DEFAULT_MAX_CONNECTIONS),
        max_keepalive_connections=kwargs.pop(
            "max_keepalive_connections", DEFAULT_MAX_KEEPALIVE_CONNECTIONS
        ),
    )
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout_ms / 1000),
        limits=limits,
        headers=headers,
        event_hooks={"request": [log_request], "response": [log_response]},
        **kwargs,
    )


@asynccontextmanager
async def init_http_client(timeout_ms: int = 10000) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Create, yield and finally close the application's shared client.

    Used in the FastAPI lifespan:

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with init_http_client() as http_client:
                yield
    """
    client = create_http_client(timeout_ms=timeout_ms)
    try:
        yield client
    finally:
        await client.aclose()
