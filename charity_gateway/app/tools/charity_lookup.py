"""charity_lookup: full IRS record for one EIN."""

from typing import Any, Dict

from charity_gateway.app.core.logging import get_log_context, get_logger
from charity_gateway.app.exceptions import ValidationError
from charity_gateway.app.services.formatting import format_lookup
from charity_gateway.app.services.response_validator import validate_lookup_response
from charity_gateway.app.services.transformers import transform_lookup
from charity_gateway.app.services.validation import sanitize_ein, validate_ein
from charity_gateway.app.tools.base import Tool, ToolContext, ToolResult, check_rate_limit, run_tool, text_result

logger = get_logger(__name__)

NAME = "charity_lookup"

DESCRIPTION = """\
Look up detailed information about a charity or nonprofit organization using their EIN (Employer Identification Number).
This tool retrieves comprehensive information from the IRS database including:
- Official organization name and location
- Tax deductibility status and codes
- Organization classification and activity codes
- Current status with the IRS
- Foundation type and ruling information

Use this tool when you need complete details about a specific charity."""

INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "ein": {
            "type": "string",
            "description": "The charity's EIN (Tax ID) in format XX-XXXXXXX or XXXXXXXXX (e.g., '13-1837418' or '131837418')",
            "pattern": "^\\d{2}-?\\d{7}$",
        },
    },
    "required": ["ein"],
}


async def handle_charity_lookup(arguments: Dict[str, Any], context: ToolContext) -> ToolResult:
    async def body() -> ToolResult:
        ein = sanitize_ein(arguments.get("ein"))
        if not ein:
            raise ValidationError("EIN is required", field="ein")
        ein = validate_ein(ein)

        denied = check_rate_limit(context, NAME)
        if denied:
            return denied

        logger.info("Looking up charity", extra=get_log_context(request_id=context.request_id, tool=NAME, ein=ein))
        response = await context.client.get_organization(ein, cancel_event=context.cancel_event)
        charity = transform_lookup(validate_lookup_response(response), ein)
        return text_result(format_lookup(charity))

    return await run_tool(NAME, arguments, context, body)


CHARITY_LOOKUP_TOOL = Tool(
    name=NAME,
    description=DESCRIPTION,
    input_schema=INPUT_SCHEMA,
    handler=handle_charity_lookup,
)
