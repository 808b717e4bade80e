"""Normalize CharityAPI records into tool output models."""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.services.schemas import (
    CharityLookupOutput,
    CharitySearchOutput,
    CharitySearchResult,
    ListOrganizationsOutput,
    LookupResponse,
    OrganizationSummary,
    Pagination,
    PublicCharityCheckOutput,
    SearchResponse,
)

logger = get_logger(__name__)

NAME_NOT_AVAILABLE = "Name not available"

COUNTRY_ALIASES = {
    "UNITED STATES": "US",
    "USA": "US",
    "AMERICA": "US",
    "U.S.": "US",
    "U.S.A.": "US",
}

_WHITESPACE = re.compile(r"\s+")


def to_title_case(value: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), value.lower())


def normalize_ein(ein: Optional[str]) -> str:
    """Format as ``XX-XXXXXXX`` when the value holds exactly 9 digits."""
    if not ein:
        return ""
    digits = re.sub(r"\D", "", ein)
    if len(digits) == 9:
        return f"{digits[:2]}-{digits[2:]}"
    return ein


def normalize_name(name: Optional[str]) -> str:
    if not name:
        return NAME_NOT_AVAILABLE
    normalized = _WHITESPACE.sub(" ", name.strip())
    if normalized == normalized.upper() and len(normalized) > 3:
        normalized = to_title_case(normalized)
    return normalized


def normalize_location(location: Optional[str]) -> Optional[str]:
    if not location:
        return None
    normalized = _WHITESPACE.sub(" ", location.strip())
    if normalized == normalized.upper():
        normalized = to_title_case(normalized)
    return normalized or None


def normalize_state(state: Optional[str]) -> Optional[str]:
    if not state:
        return None
    normalized = state.strip().upper()
    return normalized if len(normalized) == 2 else None


def normalize_country(country: Optional[str]) -> str:
    if not country:
        return "US"
    normalized = country.strip().upper()
    return COUNTRY_ALIASES.get(normalized, normalized)


def normalize_code(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    return code.strip().upper() or None


def normalize_text(text: Optional[str]) -> Optional[str]:
    if not text:
        return None
    return _WHITESPACE.sub(" ", text.strip()) or None


def build_pagination(
    total: int,
    limit: int,
    offset: int,
    page: Optional[int] = None,
) -> Pagination:
    """Compute page metadata for ``limit`` results starting at ``offset``."""
    return Pagination(
        total=total,
        page=page or offset // limit + 1,
        limit=limit,
        has_more=offset + limit < total,
        offset=offset,
    )


def transform_lookup(response: LookupResponse, original_ein: str) -> CharityLookupOutput:
    """Build the lookup output, falling back to eligibility fields."""
    data = response.data
    return CharityLookupOutput(
        ein=normalize_ein(data.ein or original_ein),
        name=normalize_name(data.name or data.eligibilityName),
        city=normalize_location(data.city),
        state=normalize_state(data.state or data.eligibilityState),
        country=normalize_country(data.country),
        deductibility_code=normalize_code(data.deductibilityCode),
        deductibility_detail=normalize_text(data.deductibilityDetail or data.eligibilityDeductibility),
        status=normalize_text(data.eligibilityStatus),
        classification=normalize_text(data.eligibilityClassification),
        activity=normalize_text(data.eligibilityActivity),
        organization=normalize_text(data.eligibilityOrganization),
        ruling=normalize_text(data.eligibilityRuling),
        foundation=normalize_text(data.eligibilityFoundation),
    )


def transform_public_check(data: Dict[str, Any], original_ein: str) -> PublicCharityCheckOutput:
    """Public charity status doubles as the deductibility answer."""
    is_public = bool(data.get("public_charity"))
    return PublicCharityCheckOutput(
        ein=normalize_ein(data.get("ein") or original_ein),
        is_public_charity=is_public,
        deductible=is_public,
    )


def transform_search(response: SearchResponse, limit: int, offset: int) -> CharitySearchOutput:
    """Normalize search hits and compute pagination.

    Entries missing an EIN or a name are dropped. Upstream pagination
    totals win over the local count when present.
    """
    records = response.data or []
    results = [
        CharitySearchResult(
            ein=normalize_ein(record.ein),
            name=normalize_name(record.name),
            city=normalize_location(record.city),
            state=normalize_state(record.state),
            deductibility_code=normalize_code(record.deductibilityCode),
        )
        for record in records
        if record.ein and record.name
    ]
    if len(results) != len(records):
        logger.debug(f"Dropped {len(records) - len(results)} incomplete search entries")

    upstream = response.pagination
    total = (upstream.totalResults if upstream else None) or len(records)
    page = upstream.page if upstream else None
    return CharitySearchOutput(
        results=results,
        pagination=build_pagination(total, limit, offset, page=page),
    )


def _as_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


def _summarize(org: Dict[str, Any]) -> OrganizationSummary:
    return OrganizationSummary(
        ein=_as_text(org.get("ein")),
        name=_as_text(org.get("name")),
        city=_as_text(org.get("city")),
        state=_as_text(org.get("state")),
        zip=_as_text(org.get("zip")),
        street=_as_text(org.get("street")),
        status=_as_text(org.get("status")),
        classification=_as_text(org.get("classification")),
        subsection=_as_text(org.get("subsection")),
        foundation=_as_text(org.get("foundation")),
        activity=_as_text(org.get("activity")),
        organization=_as_text(org.get("organization")),
        deductibility=_as_text(org.get("deductibility")),
        ruling=_as_text(org.get("ruling")),
        tax_period=_as_text(org.get("tax_period")),
        revenue_amount=_as_text(org.get("revenue_amt")),
        income_amount=_as_text(org.get("income_amt")),
        asset_amount=_as_text(org.get("asset_amt")),
    )


def transform_organizations(
    data: Any,
    since: datetime,
    limit: int,
    offset: int,
) -> ListOrganizationsOutput:
    """Page through the organization list locally.

    The upstream returns the full list; a single object counts as a
    one-element list.
    """
    organizations: List[Dict[str, Any]] = data if isinstance(data, list) else [data]
    page = organizations[offset:offset + limit]
    return ListOrganizationsOutput(
        organizations=[_summarize(org) for org in page if isinstance(org, dict)],
        pagination=build_pagination(len(organizations), limit, offset),
        since=since,
    )
