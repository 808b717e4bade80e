"""Pydantic models for tool input, upstream responses and tool output."""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from charity_gateway.app.exceptions import ValidationError


def normalize_ein(value: str) -> str:
    """Normalize a 9-digit EIN (with or without hyphen) to ``XX-XXXXXXX``."""
    if not isinstance(value, str) or not 9 <= len(value) <= 10:
        raise ValueError("EIN must be 9 or 10 characters")
    digits = value.replace("-", "")
    if not re.fullmatch(r"\d{9}", digits):
        raise ValueError("EIN must be a valid 9-digit number in format XX-XXXXXXX or XXXXXXXXX")
    return f"{digits[:2]}-{digits[2:]}"


def to_validation_error(exc: PydanticValidationError) -> ValidationError:
    """Convert the first pydantic error into a field-scoped ``ValidationError``."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error.get("loc") else None
    message = error.get("msg", "Invalid input")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return ValidationError(message, field=field)


# ==================== Tool input ====================

class CharityLookupInput(BaseModel):
    """Input for the charity_lookup tool."""
    ein: str

    @field_validator("ein")
    @classmethod
    def validate_ein(cls, v):
        return normalize_ein(v)


class PublicCharityCheckInput(CharityLookupInput):
    """Input for the public_charity_check tool."""


class CharitySearchInput(BaseModel):
    """Input for the charity_search tool.

    Empty city and state count as absent; a query, when given, must be 3
    to 200 characters.
    """
    query: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    limit: int = Field(default=25, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    @field_validator("query")
    @classmethod
    def validate_query(cls, v):
        if v is None:
            return v
        if len(v) < 3:
            raise ValueError("Search query must be at least 3 characters")
        if len(v) > 200:
            raise ValueError("Search query cannot exceed 200 characters")
        return v

    @field_validator("city")
    @classmethod
    def validate_city(cls, v):
        if not v:
            return None
        if len(v) > 100:
            raise ValueError("City name cannot exceed 100 characters")
        return v

    @field_validator("state")
    @classmethod
    def validate_state(cls, v):
        if not v:
            return None
        v = v.upper()
        if not re.fullmatch(r"[A-Z]{2}", v):
            raise ValueError("State must be a 2-letter abbreviation (e.g., CA, ca, NY, ny)")
        return v


class ListOrganizationsInput(BaseModel):
    """Input for the list_organizations tool."""
    since: datetime
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


# ==================== Upstream responses ====================

class LookupRecord(BaseModel):
    ein: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    deductibilityCode: Optional[str] = None
    deductibilityDetail: Optional[str] = None
    eligibilityEin: Optional[str] = None
    eligibilityName: Optional[str] = None
    eligibilityState: Optional[str] = None
    eligibilitySubsectionCode: Optional[str] = None
    eligibilitySubsectionDetail: Optional[str] = None
    eligibilityAffiliation: Optional[str] = None
    eligibilityClassification: Optional[str] = None
    eligibilityRuling: Optional[str] = None
    eligibilityDeductibility: Optional[str] = None
    eligibilityFoundation: Optional[str] = None
    eligibilityActivity: Optional[str] = None
    eligibilityOrganization: Optional[str] = None
    eligibilityStatus: Optional[str] = None
    eligibilityAdvancedRuling: Optional[str] = None


class LookupResponse(BaseModel):
    data: Optional[LookupRecord] = None
    error: Optional[str] = None
    message: Optional[str] = None


class PublicCharityRecord(BaseModel):
    public_charity: Optional[bool] = None
    ein: Optional[str] = None


class PublicCharityResponse(BaseModel):
    data: Optional[PublicCharityRecord] = None
    error: Optional[str] = None
    message: Optional[str] = None


class SearchRecord(BaseModel):
    ein: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    deductibilityCode: Optional[str] = None


class SearchPagination(BaseModel):
    page: Optional[int] = None
    totalPages: Optional[int] = None
    totalResults: Optional[int] = None


class SearchResponse(BaseModel):
    data: Optional[List[SearchRecord]] = None
    pagination: Optional[SearchPagination] = None
    error: Optional[str] = None
    message: Optional[str] = None


# ==================== Tool output ====================

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    has_more: bool
    offset: int = 0


class CharityLookupOutput(BaseModel):
    ein: str
    name: str
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    deductibility_code: Optional[str] = None
    deductibility_detail: Optional[str] = None
    status: Optional[str] = None
    classification: Optional[str] = None
    activity: Optional[str] = None
    organization: Optional[str] = None
    ruling: Optional[str] = None
    foundation: Optional[str] = None


class PublicCharityCheckOutput(BaseModel):
    ein: str
    is_public_charity: bool
    deductible: bool = False


class CharitySearchResult(BaseModel):
    ein: str
    name: str
    city: Optional[str] = None
    state: Optional[str] = None
    deductibility_code: Optional[str] = None


class CharitySearchOutput(BaseModel):
    results: List[CharitySearchResult]
    pagination: Pagination


class OrganizationSummary(BaseModel):
    ein: Optional[str] = None
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    street: Optional[str] = None
    status: Optional[str] = None
    classification: Optional[str] = None
    subsection: Optional[str] = None
    foundation: Optional[str] = None
    activity: Optional[str] = None
    organization: Optional[str] = None
    deductibility: Optional[str] = None
    ruling: Optional[str] = None
    tax_period: Optional[str] = None
    revenue_amount: Optional[str] = None
    income_amount: Optional[str] = None
    asset_amount: Optional[str] = None


class ListOrganizationsOutput(BaseModel):
    organizations: List[OrganizationSummary]
    pagination: Pagination
    since: datetime
