"""API endpoints package for the gateway."""

from charity_gateway.app.api.prompts import router as prompts_router
from charity_gateway.app.api.tools import router as tools_router

__all__ = [
    "prompts_router",
    "tools_router",
]
