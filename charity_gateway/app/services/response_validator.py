"""Validation of CharityAPI response bodies.

Each validator parses the raw JSON into its pydantic model and applies the
business checks the tools rely on. Any problem becomes an ``UpstreamError``
whose status code says what went wrong with the response.
"""

from typing import Any, Dict, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.exceptions import UpstreamError
from charity_gateway.app.services.schemas import (
    LookupResponse,
    PublicCharityResponse,
    SearchResponse,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

NO_DATA_MESSAGE = "No data returned from CharityAPI"


def _parse(model: Type[M], response: Any, operation: str) -> M:
    try:
        return model.model_validate(response)
    except PydanticValidationError as e:
        logger.error(
            f"{operation} response schema validation failed",
            extra={"errors": e.errors(include_url=False)},
        )
        raise UpstreamError("Invalid response format from CharityAPI", status_code=500, cause=e)


def _check_error(parsed: Any) -> None:
    if parsed.error:
        raise UpstreamError(f"API Error: {parsed.error}", status_code=400)


def require_data(response: Any) -> Any:
    """Return ``response["data"]`` or raise a 404 ``UpstreamError``."""
    data = response.get("data") if isinstance(response, dict) else None
    if data is None:
        raise UpstreamError(NO_DATA_MESSAGE, status_code=404)
    return data


def validate_lookup_response(response: Any) -> LookupResponse:
    """Validate an organization lookup body.

    Raises:
        UpstreamError: 400 for an API error or a record with neither EIN
            nor name, 404 when no record came back, 500 on schema mismatch
    """
    parsed = _parse(LookupResponse, response, "Charity lookup")
    _check_error(parsed)

    if parsed.data is None:
        raise UpstreamError(NO_DATA_MESSAGE, status_code=404)

    if not parsed.data.ein and not parsed.data.name:
        raise UpstreamError("Invalid response: missing both EIN and name", status_code=400)

    return parsed


def validate_public_check_response(response: Any) -> PublicCharityResponse:
    """Validate a public charity check body that must state both fields."""
    parsed = _parse(PublicCharityResponse, response, "Public charity check")
    _check_error(parsed)

    if parsed.data is None:
        raise UpstreamError(NO_DATA_MESSAGE, status_code=404)

    if parsed.data.public_charity is None:
        raise UpstreamError(
            "Invalid response: public_charity status not provided", status_code=400
        )

    if not parsed.data.ein:
        raise UpstreamError("Invalid response: EIN not provided", status_code=400)

    return parsed


def validate_search_response(response: Any) -> SearchResponse:
    """Validate a search body. Incomplete entries are logged, not rejected."""
    parsed = _parse(SearchResponse, response, "Charity search")
    _check_error(parsed)

    if parsed.data is None:
        raise UpstreamError(NO_DATA_MESSAGE, status_code=404)

    for index, record in enumerate(parsed.data):
        if not record.ein or not record.name:
            logger.warning(f"Incomplete charity entry at index {index}")

    return parsed


def validate_response_health(response: Any, endpoint: str) -> Dict[str, Any]:
    """Reject bodies that are empty, not objects, or carry a known error marker."""
    if not response:
        raise UpstreamError(f"No response received from {endpoint}", status_code=500)

    if not isinstance(response, dict):
        raise UpstreamError(
            f"Invalid response type from {endpoint}: expected object", status_code=500
        )

    error = response.get("error")
    status = response.get("status")
    if error == "unauthorized" or status == 401:
        raise UpstreamError("API key is invalid or unauthorized", status_code=401)
    if error == "rate_limited" or status == 429:
        raise UpstreamError("Rate limit exceeded", status_code=429)
    if error == "not_found" or status == 404:
        raise UpstreamError("Resource not found", status_code=404)

    return response
