"""Upstream API providers for the charity gateway.

This package provides:
- Base provider with header building, retries and error mapping (BaseProvider)
- The CharityAPI client (CharityAPIClient)
- Retry mechanism (RetryPolicy, retry_async)
"""

from charity_gateway.app.providers.base import BaseProvider, map_upstream_error
from charity_gateway.app.providers.charity_api import CharityAPIClient
from charity_gateway.app.providers.retry import RetryPolicy, retry_async

__all__ = [
    "BaseProvider",
    "CharityAPIClient",
    "RetryPolicy",
    "map_upstream_error",
    "retry_async",
]
