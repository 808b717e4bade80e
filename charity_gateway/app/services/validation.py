"""Input sanitization and validation for tool arguments.

Sanitizers clean raw text and never fail. Validators enforce business rules
and raise ``ValidationError`` naming the offending field.
"""

import math
import re
from typing import Any, Optional

from charity_gateway.app.core.logging import get_logger
from charity_gateway.app.exceptions import ValidationError

logger = get_logger(__name__)

# Placeholder and test numbers that are never real EINs
INVALID_EINS = frozenset({
    "00-0000000", "11-1111111", "22-2222222", "33-3333333",
    "44-4444444", "55-5555555", "66-6666666", "77-7777777",
    "88-8888888", "99-9999999", "12-3456789",
})

# IRS campus prefixes that are never assigned
RESERVED_PREFIXES = frozenset({
    "00", "07", "08", "09", "17", "18", "19", "28", "29",
    "49", "69", "70", "78", "79", "89",
})

US_STATES = frozenset({
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
    "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
    "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
    "DC", "PR", "VI", "GU", "AS", "MP",
})

MAX_QUERY_LENGTH = 200
MAX_CITY_LENGTH = 100
DEFAULT_LIMIT = 25
MIN_LIMIT = 1
MAX_LIMIT = 100
MAX_OFFSET = 10000

EIN_PATTERN = re.compile(r"^(\d{2})-?(\d{7})$")

FORBIDDEN_QUERY_PATTERNS = [
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL),
    re.compile(r"<iframe[^>]*>.*?</iframe>", re.IGNORECASE | re.DOTALL),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"expression\s*\(", re.IGNORECASE),
]

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_WHITESPACE = re.compile(r"\s+")
_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_HTML_TAG = re.compile(r"<[^>]*>")
_SQL_KEYWORDS = re.compile(r"\b(OR|AND|UNION|SELECT|INSERT|UPDATE|DELETE|DROP)\b", re.IGNORECASE)
_SQL_QUOTE = re.compile(r"'(?=\s*;|$)|'(?=\s*(DROP|DELETE|INSERT|UPDATE|SELECT))", re.IGNORECASE)
_SQL_TERMINATORS = re.compile(r";|--")
_PUNCTUATION_RUN = re.compile(r"[!@#$%^&*()_+={}|\[\]\\:\";,<>?./]{3,}")
_SPECIAL_CHARS = re.compile(r"[<>'\"&;(){}\[\]]")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def sanitize_text(value: Any) -> Optional[str]:
    """Strip control characters and collapse whitespace.

    Returns:
        The cleaned text, or None if nothing is left
    """
    if not isinstance(value, str) or value == "":
        return None

    cleaned = _CONTROL_CHARS.sub("", value)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return cleaned or None


def sanitize_ein(value: Any) -> str:
    """Keep only digits and hyphens; collapse and trim hyphen runs."""
    if not value or not isinstance(value, str):
        return ""

    cleaned = re.sub(r"[^\d-]", "", value)
    cleaned = re.sub(r"-+", "-", cleaned)
    return cleaned.strip("-")


def sanitize_search_query(value: Any) -> str:
    """Remove markup, SQL fragments and punctuation runs from a search query."""
    if not value or not isinstance(value, str):
        return ""

    cleaned = _SCRIPT_BLOCK.sub("", value)
    cleaned = _HTML_TAG.sub(" ", cleaned)
    cleaned = _SQL_KEYWORDS.sub("", cleaned)
    cleaned = _SQL_QUOTE.sub("", cleaned)
    cleaned = _SQL_TERMINATORS.sub("", cleaned)
    # Apostrophes are not in the run class so "Mary's" survives
    cleaned = _PUNCTUATION_RUN.sub("", cleaned)
    return _WHITESPACE.sub(" ", cleaned).strip()


def sanitize_number(value: Any, default: int = 0) -> int:
    """Coerce ``value`` to an int, falling back to ``default``."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return math.floor(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return default


def validate_ein(value: Any) -> str:
    """Validate an EIN and return it as ``XX-XXXXXXX``.

    Raises:
        ValidationError: If the EIN is malformed, a placeholder, or uses a
            prefix the IRS never assigns
    """
    if not value or not isinstance(value, str):
        raise ValidationError("EIN is required and must be a string", field="ein")

    cleaned = _WHITESPACE.sub("", value.strip())
    if not cleaned:
        raise ValidationError("EIN cannot be empty", field="ein")

    match = EIN_PATTERN.match(cleaned)
    if not match:
        raise ValidationError(
            "EIN must be in format XX-XXXXXXX or XXXXXXXXX with exactly 9 digits",
            field="ein",
        )

    prefix, suffix = match.groups()
    formatted = f"{prefix}-{suffix}"

    if formatted in INVALID_EINS:
        raise ValidationError("Invalid EIN: appears to be a placeholder or test number", field="ein")

    if prefix in RESERVED_PREFIXES:
        raise ValidationError(f"Invalid EIN: prefix {prefix} is reserved and not assigned", field="ein")

    if suffix == "0000000":
        raise ValidationError("Invalid EIN: contains invalid number sequences", field="ein")

    logger.debug(f"EIN validated: {formatted}", extra={"ein": formatted})
    return formatted


def validate_search_query(value: Any) -> Optional[str]:
    """Validate a free-text search query.

    Returns:
        The trimmed query, or None when no query was given
    """
    if not value:
        return None
    if not isinstance(value, str):
        raise ValidationError("Search query must be a string", field="query")

    if len(value) > MAX_QUERY_LENGTH:
        raise ValidationError(
            f"Search query cannot exceed {MAX_QUERY_LENGTH} characters", field="query"
        )

    for pattern in FORBIDDEN_QUERY_PATTERNS:
        if pattern.search(value):
            raise ValidationError("Search query contains forbidden patterns", field="query")

    if len(_SPECIAL_CHARS.findall(value)) > len(value) * 0.3:
        raise ValidationError("Search query contains too many special characters", field="query")

    return value.strip() or None


def validate_state(value: Any) -> Optional[str]:
    """Validate a two-letter US state or territory code, upper-casing it."""
    if not value:
        return None
    if not isinstance(value, str):
        raise ValidationError("State must be a string", field="state")

    state = value.strip().upper()
    if len(state) != 2:
        raise ValidationError("State must be a 2-letter abbreviation", field="state")

    if state not in US_STATES:
        raise ValidationError(
            f"Invalid state code: {state}. Must be a valid US state/territory abbreviation.",
            field="state",
        )
    return state


def validate_city(value: Any) -> Optional[str]:
    """Validate a city name; it must be mostly letters."""
    if not value:
        return None
    if not isinstance(value, str):
        raise ValidationError("City must be a string", field="city")

    city = value.strip()
    if not city:
        return None

    if len(city) > MAX_CITY_LENGTH:
        raise ValidationError(
            f"City name cannot exceed {MAX_CITY_LENGTH} characters", field="city"
        )

    letters = len(re.findall(r"[a-zA-Z]", city))
    if letters < len(city) * 0.6:
        raise ValidationError(
            "City name contains too many non-alphabetic characters", field="city"
        )
    return city


def _require_integer(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field.capitalize()} must be an integer", field=field)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise ValidationError(f"{field.capitalize()} must be an integer", field=field)
    return value


def validate_limit(value: Any) -> int:
    """Validate a page size, defaulting to 25."""
    if value is None:
        return DEFAULT_LIMIT

    limit = _require_integer(value, "limit")
    if limit < MIN_LIMIT:
        raise ValidationError(f"Limit must be at least {MIN_LIMIT}", field="limit")
    if limit > MAX_LIMIT:
        raise ValidationError(f"Limit cannot exceed {MAX_LIMIT}", field="limit")
    return limit


def validate_offset(value: Any) -> int:
    """Validate a result offset, defaulting to 0."""
    if value is None:
        return 0

    offset = _require_integer(value, "offset")
    if offset < 0:
        raise ValidationError("Offset cannot be negative", field="offset")
    if offset > MAX_OFFSET:
        raise ValidationError(f"Offset cannot exceed {MAX_OFFSET}", field="offset")
    return offset
