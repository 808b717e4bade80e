"""Shared plumbing for tool handlers.

A tool handler takes the raw ``arguments`` mapping and a ``ToolContext``
and always returns a ``ToolResult``. Failures never escape a handler: they
become results with ``isError`` set and a user-facing message.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from charity_gateway.app.core.logging import get_log_context, get_logger
from charity_gateway.app.providers.charity_api import CharityAPIClient
from charity_gateway.app.services.formatting import format_tool_error, rate_limit_message
from charity_gateway.app.services.rate_limiter import RateLimiter

logger = get_logger(__name__)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Outcome of a tool call."""
    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent]
    is_error: bool = Field(default=False, alias="isError")

    @property
    def text(self) -> str:
        return "\n".join(item.text for item in self.content)


def text_result(text: str) -> ToolResult:
    return ToolResult(content=[TextContent(text=text)])


def error_result(text: str) -> ToolResult:
    return ToolResult(content=[TextContent(text=text)], is_error=True)


@dataclass
class ToolContext:
    """Dependencies a tool call needs."""
    client: CharityAPIClient
    limiter: RateLimiter
    request_id: Optional[str] = None
    cancel_event: Optional[asyncio.Event] = None


Handler = Callable[[Dict[str, Any], ToolContext], Awaitable[ToolResult]]


@dataclass(frozen=True)
class Tool:
    """A callable tool and the JSON schema describing its arguments."""
    name: str
    description: str
    input_schema: Dict[str, Any]
    handler: Handler

    def definition(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def check_rate_limit(context: ToolContext, tool: str) -> Optional[ToolResult]:
    """Admit one call under the tool's own key.

    Returns:
        None when admitted, otherwise the error result to send back
    """
    result = context.limiter.check(tool)
    if result.allowed:
        return None
    # An empty bucket (max_requests=0) has no reset time; report the check time
    reset_time = result.reset_time or result.checked_at
    return error_result(rate_limit_message(tool.replace("_", " "), reset_time))


async def run_tool(
    tool: str,
    arguments: Dict[str, Any],
    context: ToolContext,
    body: Callable[[], Awaitable[ToolResult]],
) -> ToolResult:
    """Run ``body``, timing it and turning any failure into an error result."""
    start = time.perf_counter()
    log_ctx = get_log_context(request_id=context.request_id, tool=tool)
    logger.debug(f"Tool {tool} requested", extra=log_ctx)

    try:
        result = await body()
    except Exception as e:
        duration_ms = int((time.perf_counter() - start) * 1000)
        logger.error(
            f"Tool {tool} failed: {type(e).__name__}: {e}",
            extra={**log_ctx, "duration_ms": duration_ms},
        )
        return error_result(format_tool_error(e))

    duration_ms = int((time.perf_counter() - start) * 1000)
    outcome = "returned an error" if result.is_error else "completed successfully"
    logger.info(f"Tool {tool} {outcome}", extra={**log_ctx, "duration_ms": duration_ms})
    return result
