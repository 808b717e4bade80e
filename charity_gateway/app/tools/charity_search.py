"""charity_search: find organizations by name and/or location."""

from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from charity_gateway.app.core.logging import get_log_context, get_logger
from charity_gateway.app.services.formatting import format_search
from charity_gateway.app.services.response_validator import validate_search_response
from charity_gateway.app.services.schemas import CharitySearchInput, to_validation_error
from charity_gateway.app.services.transformers import transform_search
from charity_gateway.app.services.validation import (
    sanitize_search_query,
    validate_city,
    validate_search_query,
    validate_state,
)
from charity_gateway.app.tools.base import (
    Tool,
    ToolContext,
    ToolResult,
    check_rate_limit,
    error_result,
    run_tool,
    text_result,
)

logger = get_logger(__name__)

NAME = "charity_search"

MISSING_CRITERIA = "At least one search parameter (query, city, or state) must be provided."

DESCRIPTION = """\
Search for charities and nonprofit organizations in the IRS database.
You can search by organization name, location, or combine multiple criteria.

Search parameters:
- query: Organization name or keywords
- city: Filter by city name
- state: Filter by state (2-letter code like 'CA', 'NY')
- limit: Number of results to return (1-100, default 25)
- offset: Skip first N results for pagination (default 0)

Returns a list of matching organizations with basic information including:
- Organization name and EIN
- Location (city, state)
- Deductibility status

Use this tool to find organizations when you don't have their exact EIN."""

INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "query": {
            "type": "string",
            "description": "Search term for organization name or keywords (optional)",
            "maxLength": 200,
        },
        "city": {
            "type": "string",
            "description": "Filter by city name (optional)",
            "maxLength": 100,
        },
        "state": {
            "type": "string",
            "description": "Filter by state using 2-letter abbreviation like 'CA' or 'NY' (optional)",
            "pattern": "^[A-Z]{2}$",
        },
        "limit": {
            "type": "number",
            "description": "Number of results to return (1-100, default 25)",
            "minimum": 1,
            "maximum": 100,
            "default": 25,
        },
        "offset": {
            "type": "number",
            "description": "Number of results to skip for pagination (default 0)",
            "minimum": 0,
            "default": 0,
        },
    },
    "required": [],
}


async def handle_charity_search(arguments: Dict[str, Any], context: ToolContext) -> ToolResult:
    async def body() -> ToolResult:
        try:
            params = CharitySearchInput.model_validate(arguments)
        except PydanticValidationError as e:
            raise to_validation_error(e) from e

        query = validate_search_query(params.query)
        query = sanitize_search_query(query) or None
        city = validate_city(params.city)
        state = validate_state(params.state)

        if not (query or city or state):
            return error_result(MISSING_CRITERIA)

        denied = check_rate_limit(context, NAME)
        if denied:
            return denied

        logger.info(
            "Searching charities",
            extra=get_log_context(
                request_id=context.request_id, tool=NAME,
                query=query, city=city, state=state,
            ),
        )
        response = await context.client.search_charities(
            query=query,
            city=city,
            state=state,
            limit=params.limit,
            offset=params.offset,
            cancel_event=context.cancel_event,
        )
        output = transform_search(validate_search_response(response), params.limit, params.offset)
        return text_result(format_search(output, query=query, city=city, state=state))

    return await run_tool(NAME, arguments, context, body)


CHARITY_SEARCH_TOOL = Tool(
    name=NAME,
    description=DESCRIPTION,
    input_schema=INPUT_SCHEMA,
    handler=handle_charity_search,
)
