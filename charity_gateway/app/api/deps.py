"""FastAPI dependencies resolving shared components from app state."""

from fastapi import Depends, Request

from charity_gateway.app.middleware.request_id import get_request_id
from charity_gateway.app.providers.charity_api import CharityAPIClient
from charity_gateway.app.services.rate_limiter import RateLimiter
from charity_gateway.app.tools import ToolContext


def get_charity_client(request: Request) -> CharityAPIClient:
    return request.app.state.charity_client


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_tool_context(
    request: Request,
    client: CharityAPIClient = Depends(get_charity_client),
    limiter: RateLimiter = Depends(get_rate_limiter),
) -> ToolContext:
    """Per-request context handed to tool handlers."""
    return ToolContext(client=client, limiter=limiter, request_id=get_request_id(request))
