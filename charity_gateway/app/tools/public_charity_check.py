"""public_charity_check: is an organization a 501(c)(3) public charity?"""

from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from charity_gateway.app.core.logging import get_log_context, get_logger
from charity_gateway.app.exceptions import UpstreamError
from charity_gateway.app.services.formatting import format_public_check
from charity_gateway.app.services.response_validator import require_data
from charity_gateway.app.services.schemas import PublicCharityCheckInput, to_validation_error
from charity_gateway.app.services.transformers import transform_public_check
from charity_gateway.app.tools.base import Tool, ToolContext, ToolResult, check_rate_limit, run_tool, text_result

logger = get_logger(__name__)

NAME = "public_charity_check"

DESCRIPTION = """\
Verify if a nonprofit organization qualifies as a "public charity" according to the IRS.
Public charities are eligible to receive tax-deductible donations under section 501(c)(3).

This tool returns:
- Whether the organization is classified as a public charity
- Tax deductibility status for donations
- EIN confirmation

Use this tool to quickly verify if donations to an organization are tax-deductible."""

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


async def handle_public_charity_check(arguments: Dict[str, Any], context: ToolContext) -> ToolResult:
    async def body() -> ToolResult:
        try:
            params = PublicCharityCheckInput.model_validate(arguments)
        except PydanticValidationError as e:
            raise to_validation_error(e) from e

        denied = check_rate_limit(context, NAME)
        if denied:
            return denied

        logger.info(
            "Checking public charity status",
            extra=get_log_context(request_id=context.request_id, tool=NAME, ein=params.ein),
        )
        response = await context.client.check_public_charity(params.ein, cancel_event=context.cancel_event)
        data = require_data(response)
        if not isinstance(data, dict):
            raise UpstreamError("Invalid response format from CharityAPI", status_code=500)
        result = transform_public_check(data, params.ein)
        return text_result(format_public_check(result))

    return await run_tool(NAME, arguments, context, body)


PUBLIC_CHARITY_CHECK_TOOL = Tool(
    name=NAME,
    description=DESCRIPTION,
    input_schema=INPUT_SCHEMA,
    handler=handle_public_charity_check,
)
