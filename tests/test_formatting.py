"""Tests for markdown rendering and error messages."""

from datetime import datetime, timezone

import pytest

from charity_gateway.app.exceptions import UpstreamError, ValidationError
from charity_gateway.app.services.formatting import (
    format_error,
    format_lookup,
    format_organizations,
    format_public_check,
    format_search,
    format_tool_error,
    interpret_deductibility_code,
    rate_limit_message,
    to_user_message,
    tool_error_message,
)
from charity_gateway.app.services.schemas import (
    CharityLookupOutput,
    CharitySearchOutput,
    CharitySearchResult,
    ListOrganizationsOutput,
    OrganizationSummary,
    Pagination,
    PublicCharityCheckOutput,
)

SINCE = datetime(2024, 1, 1, tzinfo=timezone.utc)


class TestFormatLookup:
    """Tests for the lookup report."""

    def test_full_report(self):
        text = format_lookup(CharityLookupOutput(
            ein="13-1837418",
            name="American Red Cross",
            city="Washington",
            state="DC",
            country="US",
            deductibility_detail="Contributions are deductible",
            status="Unconditional Exemption",
            classification="Charitable Organization",
            ruling="194501",
        ))

        assert text.startswith("# 🏛️ Charity Information")
        assert "**Name:** American Red Cross" in text
        assert "**Location:** Washington, DC\n" in text
        assert "## 💰 Tax Status" in text
        assert "**Tax Deductibility:** Contributions are deductible" in text
        assert "## 📋 Organization Details" in text
        assert "**IRS Ruling:** 194501" in text

    def test_minimal_report_has_no_sections(self):
        text = format_lookup(CharityLookupOutput(ein="13-1837418", name="Org"))

        assert "**EIN:** 13-1837418" in text
        assert "Tax Status" not in text
        assert "Location" not in text

    def test_foreign_country_shown(self):
        text = format_lookup(CharityLookupOutput(ein="13-1837418", name="Org", city="Toronto", country="CA"))
        assert "**Location:** Toronto, CA" in text


class TestFormatPublicCheck:
    """Tests for the public charity report."""

    def test_public(self):
        text = format_public_check(PublicCharityCheckOutput(ein="13-1837418", is_public_charity=True, deductible=True))
        assert "**Public Charity Status:** ✅ **Yes**" in text
        assert "tax-deductible" in text

    def test_not_public(self):
        text = format_public_check(PublicCharityCheckOutput(ein="13-1837418", is_public_charity=False))
        assert "**Tax-Deductible Donations:** ❌ **No**" in text
        assert "not classified as a public charity" in text


class TestFormatSearch:
    """Tests for the search report."""

    def test_results_and_next_page(self):
        output = CharitySearchOutput(
            results=[
                CharitySearchResult(ein="13-1837418", name="Red Cross", city="Washington", state="DC", deductibility_code="PC"),
                CharitySearchResult(ein="53-0196605", name="Salvation Army"),
            ],
            pagination=Pagination(total=1500, page=2, limit=2, has_more=True, offset=2),
        )

        text = format_search(output, query="red cross", state="DC")

        assert '**Search Criteria:** Query: "red cross", State: DC' in text
        assert "**Total Available:** 1,500 organizations" in text
        assert "### 3. Red Cross" in text
        assert "### 4. Salvation Army" in text
        assert "✅ Public Charity (Tax-deductible)" in text
        assert "Use `offset=4`" in text

    def test_no_results(self):
        output = CharitySearchOutput(results=[], pagination=Pagination(total=0, page=1, limit=25, has_more=False))

        text = format_search(output, city="Nowhere")

        assert "## 📭 No Results Found" in text
        assert "offset=" not in text

    def test_offset_not_aligned_to_limit(self):
        """Numbering and the next offset follow the requested offset, not the page."""
        output = CharitySearchOutput(
            results=[CharitySearchResult(ein="13-1837418", name="Red Cross")],
            pagination=Pagination(total=100, page=1, limit=25, has_more=True, offset=10),
        )

        text = format_search(output, query="red cross")

        assert "### 11. Red Cross" in text
        assert "Use `offset=35`" in text

    def test_unknown_deductibility_code(self):
        assert interpret_deductibility_code("zz") == "zz (Contact organization for details)"


class TestFormatOrganizations:
    """Tests for the organization list report."""

    def test_details(self):
        output = ListOrganizationsOutput(
            organizations=[OrganizationSummary(
                ein="131837418",
                name="Red Cross",
                street="430 17th St NW",
                city="Washington",
                state="DC",
                zip="20006",
                status="01",
                subsection="3",
                revenue_amount="2750000000",
                asset_amount="0",
                tax_period="202306",
                deductibility="1",
            )],
            pagination=Pagination(total=1, page=1, limit=100, has_more=False),
            since=SINCE,
        )

        text = format_organizations(output)

        assert "**Updated Since:** 2024-01-01T00:00:00.000Z" in text
        assert "## 1. Red Cross" in text
        assert "**Address:** 430 17th St NW, Washington, DC, 20006" in text
        assert "**Status:** Unconditional Exemption" in text
        assert "**Subsection:** 501(c)(3)" in text
        assert "**Revenue:** $2,750,000,000" in text
        assert "Assets" not in text
        assert "**Tax Period:** 06/2023" in text
        assert "**Deductible:** Yes" in text

    def test_empty(self):
        output = ListOrganizationsOutput(
            organizations=[],
            pagination=Pagination(total=0, page=1, limit=100, has_more=False),
            since=SINCE,
        )

        assert "No organizations found that have been updated since 2024-01-01T00:00:00.000Z" in format_organizations(output)

    def test_more_results(self):
        output = ListOrganizationsOutput(
            organizations=[OrganizationSummary(ein="1", name="A")],
            pagination=Pagination(total=5, page=1, limit=1, has_more=True),
            since=SINCE,
        )

        assert "Use offset=1 to see the next 1 results." in format_organizations(output)

    def test_offset_not_aligned_to_limit(self):
        output = ListOrganizationsOutput(
            organizations=[OrganizationSummary(ein="1", name="A")],
            pagination=Pagination(total=100, page=1, limit=25, has_more=True, offset=10),
            since=SINCE,
        )

        text = format_organizations(output)

        assert "## 11. A" in text
        assert "Use offset=35 to see the next 25 results." in text


class TestErrorMessages:
    """Tests for user-facing error text."""

    def test_rate_limit_message(self):
        assert rate_limit_message("charity lookup", 0) == (
            "Rate limit exceeded for charity lookup. Please try again after 1970-01-01T00:00:00.000Z."
        )

    @pytest.mark.parametrize(
        "error,expected",
        [
            (ValidationError("bad", field="ein"), "Invalid parameter 'ein': bad"),
            (ValidationError("bad"), "Invalid parameter: bad"),
            (UpstreamError("Charity not found", status_code=404), "Charity not found with provided EIN"),
            (UpstreamError("Rate limit exceeded", status_code=429), "Rate limit exceeded. Please try again later."),
            (UpstreamError("Internal server error", status_code=500), "Charity API error: Internal server error"),
            (RuntimeError("boom"), "boom"),
            (RuntimeError(), "Unknown error occurred"),
        ],
    )
    def test_tool_error_message(self, error, expected):
        assert tool_error_message(error) == expected

    def test_validation_error_help(self):
        formatted = format_error(ValidationError("bad state", field="state"))

        assert formatted.code == "VALIDATION_ERROR"
        assert formatted.message == "Input validation failed: bad state"
        assert "Use 2-letter state abbreviations (CA, NY, TX, etc.)" in formatted.suggestions

    @pytest.mark.parametrize(
        "status,code",
        [(401, "UNAUTHORIZED"), (404, "NOT_FOUND"), (502, "SERVER_ERROR"), (None, "API_ERROR")],
    )
    def test_upstream_codes(self, status, code):
        assert format_error(UpstreamError("x", status_code=status)).code == code

    def test_generic_error_hides_message(self):
        formatted = format_error(KeyError("secret"))
        assert formatted.code == "INTERNAL_ERROR"
        assert "secret" not in formatted.message

    def test_user_message_layout(self):
        text = to_user_message(format_error(UpstreamError("Charity not found", status_code=404)))

        assert text.startswith("❌ Charity not found\n")
        assert "**Details:** No charity found matching the provided criteria" in text
        assert "**Suggestions:**\n• Verify the EIN is correct" in text

    def test_format_tool_error(self):
        text = format_tool_error(ValidationError("EIN is required", field="ein"))

        assert text.startswith("❌ Invalid parameter 'ein': EIN is required")
        assert "Use format XX-XXXXXXX (e.g., 13-1837418)" in text
