"""Tool listing and invocation endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from charity_gateway.app.api.deps import get_tool_context
from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.tools import ToolContext, call_tool, get_tool, list_tools

logger = get_logger(__name__)
router = APIRouter(tags=["tools"])


class ToolCallRequest(BaseModel):
    """Request body for a tool call."""
    arguments: Dict[str, Any] = Field(default_factory=dict)


@router.get("/tools")
async def get_tools() -> Dict[str, Any]:
    """List available tools with their argument schemas."""
    return {"tools": list_tools()}


@router.post("/tools/{name}")
async def invoke_tool(
    name: str,
    body: Optional[ToolCallRequest] = None,
    context: ToolContext = Depends(get_tool_context),
) -> Dict[str, Any]:
    """Call a tool. Tool failures come back as results with ``isError`` set."""
    try:
        get_tool(name)
    except KeyError:
        logger.warning(f"Unknown tool requested: {name}", extra={"request_id": context.request_id})
        raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")

    arguments = body.arguments if body else {}
    result = await call_tool(name, arguments, context)
    return result.model_dump(by_alias=True)
