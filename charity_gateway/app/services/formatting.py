"""Markdown rendering of tool results and user-facing error text."""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.core.utils import format_epoch_ms, to_iso_z
from charity_gateway.app.exceptions import UpstreamError, ValidationError
from charity_gateway.app.services.schemas import (
    CharityLookupOutput,
    CharitySearchOutput,
    ListOrganizationsOutput,
    Pagination,
    PublicCharityCheckOutput,
)

logger = get_logger(__name__)

DEDUCTIBILITY_CODES = {
    "PC": "✅ Public Charity (Tax-deductible)",
    "PF": "⚠️ Private Foundation (Limited deductibility)",
    "POF": "⚠️ Private Operating Foundation",
    "SO": "✅ Supporting Organization",
    "LODGE": "❓ Fraternal Lodge",
    "UNKWN": "❓ Status Unknown",
}

EXEMPTION_STATUS = {
    "01": "Unconditional Exemption",
    "02": "Conditional Exemption",
    "12": "Trust described in section 4947(a)(2)",
    "25": "Organization terminating private foundation status",
}


# ==================== Results ====================

def format_lookup(charity: CharityLookupOutput) -> str:
    sections: List[str] = ["# 🏛️ Charity Information\n"]

    basic = [f"**Name:** {charity.name}", f"**EIN:** {charity.ein}"]
    if charity.city or charity.state:
        location = ", ".join(p for p in (charity.city, charity.state) if p)
        country = f", {charity.country}" if charity.country and charity.country != "US" else ""
        basic.append(f"**Location:** {location}{country}")
    sections.append("\n".join(basic))

    if charity.deductibility_detail or charity.deductibility_code or charity.status:
        sections.append("\n## 💰 Tax Status")
        tax: List[str] = []
        if charity.deductibility_detail:
            tax.append(f"**Tax Deductibility:** {charity.deductibility_detail}")
        elif charity.deductibility_code:
            tax.append(f"**Deductibility Code:** {charity.deductibility_code}")
        if charity.status:
            tax.append(f"**IRS Status:** {charity.status}")
        sections.append("\n".join(tax))

    if charity.classification or charity.activity or charity.foundation:
        sections.append("\n## 📋 Organization Details")
        details: List[str] = []
        if charity.classification:
            details.append(f"**Classification:** {charity.classification}")
        if charity.activity:
            details.append(f"**Primary Activity:** {charity.activity}")
        if charity.foundation:
            details.append(f"**Foundation Type:** {charity.foundation}")
        sections.append("\n".join(details))

    if charity.ruling:
        sections.append("\n## ⚖️ Legal Information")
        sections.append(f"**IRS Ruling:** {charity.ruling}")

    return "\n".join(sections)


def format_public_check(result: PublicCharityCheckOutput) -> str:
    status = "✅ **Yes**" if result.is_public_charity else "❌ **No**"
    deductible = "✅ **Yes**" if result.deductible else "❌ **No**"

    lines = [
        "# 🔍 Public Charity Status Check\n",
        f"**EIN:** {result.ein}",
        f"**Public Charity Status:** {status}",
        f"**Tax-Deductible Donations:** {deductible}\n",
    ]
    if result.is_public_charity:
        lines += [
            "## ✅ This organization is a public charity\n",
            "This organization is recognized as a public charity under IRS section 501(c)(3). "
            "Donations to this organization are generally **tax-deductible** for donors "
            "who itemize deductions.\n",
            "💡 **Note:** Always consult with a tax professional for specific advice about deductibility.",
        ]
    else:
        lines += [
            "## ❌ This organization is not classified as a public charity\n",
            "This organization is either:",
            "• Not found in the IRS database",
            "• Not a 501(c)(3) organization",
            "• A private foundation rather than a public charity\n",
            "**⚠️ Important:** Donations may not be tax-deductible.",
        ]
    return "\n".join(lines)


def interpret_deductibility_code(code: str) -> str:
    return DEDUCTIBILITY_CODES.get(code.upper(), f"{code} (Contact organization for details)")


def _result_number(pagination: Pagination, index: int) -> int:
    return pagination.offset + index + 1


def format_search(
    output: CharitySearchOutput,
    query: Optional[str] = None,
    city: Optional[str] = None,
    state: Optional[str] = None,
) -> str:
    results, pagination = output.results, output.pagination

    criteria: List[str] = []
    if query:
        criteria.append(f'Query: "{query}"')
    if city:
        criteria.append(f"City: {city}")
    if state:
        criteria.append(f"State: {state}")

    text = "# 🔎 Charity Search Results\n\n"
    text += f"**Search Criteria:** {', '.join(criteria)}\n"
    text += f"**Results Shown:** {len(results)} organizations\n"
    text += f"**Total Available:** {pagination.total:,} organizations\n"
    text += f"**Page:** {pagination.page}\n\n"

    if not results:
        text += "## 📭 No Results Found\n\n"
        text += "No organizations found matching your search criteria.\n\n"
        text += "### 💡 Try these suggestions:\n"
        text += "• **Broaden your search** - Use fewer or more general terms\n"
        text += "• **Check spelling** - Verify organization name and location\n"
        text += "• **Use different keywords** - Try alternative names or abbreviations\n"
        text += "• **Search by location only** - Try just city or state\n"
        return text

    text += "## 📊 Search Results\n\n"
    for index, charity in enumerate(results):
        text += f"### {_result_number(pagination, index)}. {charity.name}\n"
        text += f"**EIN:** `{charity.ein}`\n"
        if charity.city or charity.state:
            text += f"**Location:** {', '.join(p for p in (charity.city, charity.state) if p)}\n"
        if charity.deductibility_code:
            text += f"**Deductibility:** {interpret_deductibility_code(charity.deductibility_code)}\n"
        text += "\n"

    if pagination.has_more:
        next_offset = pagination.offset + pagination.limit
        text += "---\n\n"
        text += "### 📄 More Results Available\n"
        text += "There are additional results available. "
        text += f"Use `offset={next_offset}` to see the next {pagination.limit} results.\n"

    return text


def describe_status(status: str) -> str:
    return EXEMPTION_STATUS.get(status, f"Status Code: {status}")


def format_currency(amount: str) -> str:
    match = re.match(r"^\s*([+-]?\d+)", amount)
    if not match:
        return amount
    return f"{int(match.group(1)):,}"


def format_year_month(value: str) -> str:
    """Render ``YYYYMM`` as ``MM/YYYY``; anything else passes through."""
    if len(value) == 6:
        return f"{value[4:6]}/{value[:4]}"
    return value


def format_organizations(output: ListOrganizationsOutput) -> str:
    organizations, pagination = output.organizations, output.pagination
    since = to_iso_z(output.since)

    text = "# Organizations List\n\n"
    text += f"**Updated Since:** {since}\n"
    text += f"**Results:** {len(organizations)} organizations (Page {pagination.page})\n"
    text += f"**Total Available:** {pagination.total} organizations\n\n"

    if not organizations:
        text += f"No organizations found that have been updated since {since}.\n"
        text += "Try using an earlier date to see more results.\n"
        return text

    for index, org in enumerate(organizations):
        text += f"## {_result_number(pagination, index)}. {org.name}\n"
        text += f"**EIN:** {org.ein}\n"

        address = [p for p in (org.street, org.city, org.state, org.zip) if p]
        if address:
            text += f"**Address:** {', '.join(address)}\n"
        if org.status:
            text += f"**Status:** {describe_status(org.status)}\n"
        if org.subsection:
            text += f"**Subsection:** 501(c)({org.subsection})\n"
        if org.classification:
            text += f"**Classification:** {org.classification}\n"
        if org.foundation:
            text += f"**Foundation Code:** {org.foundation}\n"
        if org.revenue_amount and org.revenue_amount != "0":
            text += f"**Revenue:** ${format_currency(org.revenue_amount)}\n"
        if org.asset_amount and org.asset_amount != "0":
            text += f"**Assets:** ${format_currency(org.asset_amount)}\n"
        if org.tax_period:
            text += f"**Tax Period:** {format_year_month(org.tax_period)}\n"
        if org.ruling:
            text += f"**Ruling Date:** {format_year_month(org.ruling)}\n"
        if org.deductibility:
            text += f"**Deductible:** {'Yes' if org.deductibility == '1' else 'No'}\n"
        text += "\n"

    if pagination.has_more:
        next_offset = pagination.offset + pagination.limit
        text += "---\n"
        text += f"**More Results Available:** Use offset={next_offset} to see the next {pagination.limit} results.\n"

    return text


def rate_limit_message(operation: str, reset_time_ms: int) -> str:
    return (
        f"Rate limit exceeded for {operation}. "
        f"Please try again after {format_epoch_ms(reset_time_ms)}."
    )


# ==================== Errors ====================

@dataclass
class FormattedError:
    """User-facing description of a failure."""
    message: str
    code: str
    details: str = ""
    suggestions: List[str] = field(default_factory=list)


_FIELD_HELP: Dict[str, Any] = {
    "ein": (
        "EIN (Employer Identification Number) must be a valid 9-digit tax ID",
        [
            "Use format XX-XXXXXXX (e.g., 13-1837418)",
            "Ensure the EIN contains exactly 9 digits",
            "Verify the EIN from official charity documents",
        ],
    ),
    "query": (
        "Search queries should contain only standard text characters",
        [
            "Use simpler search terms",
            "Avoid special characters and HTML",
            "Try searching by organization name",
        ],
    ),
    "state": (
        "State must be a valid US state or territory abbreviation",
        ["Use 2-letter state abbreviations (CA, NY, TX, etc.)", "Use uppercase letters"],
    ),
    "city": (
        "City names should contain mostly alphabetic characters",
        ["Check spelling of city name", "Use standard city names"],
    ),
    "limit": (
        "Limit controls how many results are returned per request",
        ["Use a number between 1 and 100"],
    ),
    "offset": (
        "Offset controls which page of results to return",
        ["Use a non-negative number", "Start with 0 for the first page"],
    ),
    "since": (
        "Since must be an ISO-8601 date such as 2024-01-01T00:00:00Z",
        ["Include the date in YYYY-MM-DD form", "Add a time and timezone for precision"],
    ),
}

_SERVER_ERROR_HELP = (
    "SERVER_ERROR",
    "The CharityAPI service is experiencing issues",
    ["Try again in a few minutes", "Contact support if the problem persists"],
)

_STATUS_HELP: Dict[int, Any] = {
    400: (
        "INVALID_REQUEST",
        "The request was invalid or malformed",
        ["Check that all parameters are correct", "Verify EIN format if applicable"],
    ),
    401: (
        "UNAUTHORIZED",
        "API authentication failed",
        ["Check that your API key is correct", "Verify API key permissions"],
    ),
    403: (
        "FORBIDDEN",
        "Access to this resource is forbidden",
        ["Check API key permissions", "Contact support if you believe this is an error"],
    ),
    404: (
        "NOT_FOUND",
        "No charity found matching the provided criteria",
        [
            "Verify the EIN is correct",
            "Try searching by name if EIN lookup fails",
            "Check that the organization is registered with the IRS",
        ],
    ),
    429: (
        "RATE_LIMITED",
        "Too many requests sent in a short time",
        ["Wait a moment before trying again", "Reduce the frequency of requests"],
    ),
    500: _SERVER_ERROR_HELP,
    502: _SERVER_ERROR_HELP,
    503: _SERVER_ERROR_HELP,
}


def format_validation_error(error: ValidationError) -> FormattedError:
    details, suggestions = _FIELD_HELP.get(error.field, ("", []))
    return FormattedError(
        message=f"Input validation failed: {error.message}",
        code="VALIDATION_ERROR",
        details=details,
        suggestions=list(suggestions),
    )


def format_upstream_error(error: UpstreamError) -> FormattedError:
    code, details, suggestions = _STATUS_HELP.get(
        error.status_code,
        (
            "API_ERROR",
            "An unexpected error occurred while calling the CharityAPI",
            ["Try again in a moment"],
        ),
    )
    return FormattedError(
        message=error.message, code=code, details=details, suggestions=list(suggestions)
    )


def format_generic_error(error: BaseException) -> FormattedError:
    return FormattedError(
        message="An unexpected error occurred",
        code="INTERNAL_ERROR",
        details="The server encountered an internal error while processing your request",
        suggestions=["Try again in a moment", "Contact support if the problem persists"],
    )


def format_error(error: BaseException) -> FormattedError:
    if isinstance(error, ValidationError):
        return format_validation_error(error)
    if isinstance(error, UpstreamError):
        return format_upstream_error(error)
    return format_generic_error(error)


def to_user_message(formatted: FormattedError) -> str:
    text = f"❌ {formatted.message}\n"
    if formatted.details:
        text += f"\n**Details:** {formatted.details}\n"
    if formatted.suggestions:
        text += "\n**Suggestions:**\n"
        for suggestion in formatted.suggestions:
            text += f"• {suggestion}\n"
    return text.strip()


def tool_error_message(error: BaseException) -> str:
    """Short message for a failed tool call."""
    if isinstance(error, ValidationError):
        prefix = f"Invalid parameter '{error.field}'" if error.field else "Invalid parameter"
        return f"{prefix}: {error.message}"
    if isinstance(error, UpstreamError):
        if error.status_code == 404:
            return "Charity not found with provided EIN"
        if error.status_code == 429:
            return "Rate limit exceeded. Please try again later."
        return f"Charity API error: {error.message}"
    return str(error) or "Unknown error occurred"


def format_tool_error(error: BaseException) -> str:
    """Full error text for a failed tool call: message, details and suggestions."""
    formatted = format_error(error)
    formatted.message = tool_error_message(error)
    return to_user_message(formatted)
