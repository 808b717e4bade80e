"""Charity tools exposed by the gateway.

Each tool pairs a JSON-schema argument definition with an async handler.
``call_tool`` dispatches by name; unknown names raise ``KeyError``.
"""

from typing import Any, Dict, List, Optional

from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.tools.base import Tool, ToolContext, ToolResult
from charity_gateway.app.tools.charity_lookup import CHARITY_LOOKUP_TOOL
from charity_gateway.app.tools.charity_search import CHARITY_SEARCH_TOOL
from charity_gateway.app.tools.list_organizations import LIST_ORGANIZATIONS_TOOL
from charity_gateway.app.tools.public_charity_check import PUBLIC_CHARITY_CHECK_TOOL

logger = get_logger(__name__)

TOOLS: Dict[str, Tool] = {
    tool.name: tool
    for tool in (
        CHARITY_LOOKUP_TOOL,
        PUBLIC_CHARITY_CHECK_TOOL,
        CHARITY_SEARCH_TOOL,
        LIST_ORGANIZATIONS_TOOL,
    )
}


def list_tools() -> List[Dict[str, Any]]:
    """Definitions of every registered tool."""
    return [tool.definition() for tool in TOOLS.values()]


def get_tool(name: str) -> Tool:
    """Look up a tool by name.

    Raises:
        KeyError: If no tool has that name
    """
    try:
        return TOOLS[name]
    except KeyError:
        raise KeyError(f"Unknown tool: {name}") from None


async def call_tool(
    name: str,
    arguments: Optional[Dict[str, Any]],
    context: ToolContext,
) -> ToolResult:
    """Dispatch a tool call by name."""
    tool = get_tool(name)
    return await tool.handler(arguments or {}, context)


__all__ = [
    "TOOLS",
    "Tool",
    "ToolContext",
    "ToolResult",
    "call_tool",
    "get_tool",
    "list_tools",
]
