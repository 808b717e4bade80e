"""list_organizations: organizations updated since a date."""

from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from charity_gateway.app.core.logging import get_log_context, get_logger
from charity_gateway.app.core.utils import to_iso_z
from charity_gateway.app.services.formatting import format_organizations
from charity_gateway.app.services.response_validator import require_data
from charity_gateway.app.services.schemas import ListOrganizationsInput, to_validation_error
from charity_gateway.app.services.transformers import transform_organizations
from charity_gateway.app.tools.base import Tool, ToolContext, ToolResult, check_rate_limit, run_tool, text_result

logger = get_logger(__name__)

NAME = "list_organizations"

DESCRIPTION = """\
List nonprofit organizations from the IRS database that have been updated since a specified date.
This tool retrieves organizations that have had changes to their tax-exempt status or filing information.

Parameters:
- since: ISO date string (required) - Get organizations updated since this date (e.g., "2024-01-01T00:00:00Z")
- limit: Number of results to return (1-1000, default 100)
- offset: Skip first N results for pagination (default 0)

Returns detailed information about organizations including:
- Basic information (EIN, name, address)
- Tax status and classification details
- Financial information (revenue, assets)
- Filing requirements and ruling dates

Use this tool to get bulk organization data or track recent changes to nonprofit status."""

INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "since": {
            "type": "string",
            "description": "ISO date string to get organizations updated since this date (e.g., '2024-01-01T00:00:00Z')",
            "format": "date-time",
        },
        "limit": {
            "type": "number",
            "description": "Number of results to return (1-1000, default 100)",
            "minimum": 1,
            "maximum": 1000,
            "default": 100,
        },
        "offset": {
            "type": "number",
            "description": "Number of results to skip for pagination (default 0)",
            "minimum": 0,
            "default": 0,
        },
    },
    "required": ["since"],
}


async def handle_list_organizations(arguments: Dict[str, Any], context: ToolContext) -> ToolResult:
    async def body() -> ToolResult:
        try:
            params = ListOrganizationsInput.model_validate(arguments)
        except PydanticValidationError as e:
            raise to_validation_error(e) from e

        denied = check_rate_limit(context, NAME)
        if denied:
            return denied

        logger.info(
            "Listing organizations",
            extra=get_log_context(
                request_id=context.request_id, tool=NAME,
                since=to_iso_z(params.since), limit=params.limit, offset=params.offset,
            ),
        )
        response = await context.client.list_organizations(params.since, cancel_event=context.cancel_event)
        output = transform_organizations(require_data(response), params.since, params.limit, params.offset)
        return text_result(format_organizations(output))

    return await run_tool(NAME, arguments, context, body)


LIST_ORGANIZATIONS_TOOL = Tool(
    name=NAME,
    description=DESCRIPTION,
    input_schema=INPUT_SCHEMA,
    handler=handle_list_organizations,
)
