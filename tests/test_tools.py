"""Tests for the tool handlers."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from charity_gateway.app.exceptions import RequestCancelledError, UpstreamError
from charity_gateway.app.providers.charity_api import CharityAPIClient
from charity_gateway.app.services.rate_limiter import RateLimiter
from charity_gateway.app.tools import call_tool, get_tool, list_tools
from charity_gateway.app.tools.base import ToolContext, ToolResult

LOOKUP_BODY = {
    "data": {
        "ein": "131837418",
        "name": "AMERICAN NATIONAL RED CROSS",
        "city": "WASHINGTON",
        "state": "DC",
        "eligibilityStatus": "Unconditional Exemption",
    }
}


@pytest.fixture
def client():
    return MagicMock(spec=CharityAPIClient)


@pytest.fixture
def context(client):
    return ToolContext(
        client=client,
        limiter=RateLimiter(max_requests=100, window_ms=60_000),
        request_id="req-1",
    )


class TestRegistry:
    """Tests for tool listing and dispatch."""

    def test_list_tools(self):
        names = [t["name"] for t in list_tools()]
        assert names == ["charity_lookup", "public_charity_check", "charity_search", "list_organizations"]

    def test_definitions_have_schema(self):
        for definition in list_tools():
            assert definition["inputSchema"]["type"] == "object"
            assert definition["description"]

    def test_unknown_tool(self):
        with pytest.raises(KeyError, match="Unknown tool: nope"):
            get_tool("nope")

    @pytest.mark.asyncio
    async def test_call_tool_without_arguments(self, context):
        result = await call_tool("charity_lookup", None, context)

        assert result.is_error is True
        assert "EIN is required" in result.text

    def test_result_serializes_with_alias(self):
        dumped = ToolResult(content=[], is_error=True).model_dump(by_alias=True)
        assert dumped == {"content": [], "isError": True}


class TestCharityLookup:
    """Tests for charity_lookup."""

    @pytest.mark.asyncio
    async def test_success(self, client, context):
        client.get_organization = AsyncMock(return_value=LOOKUP_BODY)

        result = await call_tool("charity_lookup", {"ein": "131837418"}, context)

        assert result.is_error is False
        assert "**Name:** American National Red Cross" in result.text
        assert "**EIN:** 13-1837418" in result.text
        client.get_organization.assert_awaited_once_with("13-1837418", cancel_event=None)

    @pytest.mark.asyncio
    async def test_invalid_ein_never_reaches_upstream(self, client, context):
        client.get_organization = AsyncMock()

        result = await call_tool("charity_lookup", {"ein": "00-0000000"}, context)

        assert result.is_error is True
        assert result.text.startswith("❌ Invalid parameter 'ein': Invalid EIN: appears to be a placeholder")
        client.get_organization.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_input_does_not_consume_quota(self, client, context):
        client.get_organization = AsyncMock()

        await call_tool("charity_lookup", {"ein": "abc"}, context)

        assert context.limiter.remaining("charity_lookup") == 100

    @pytest.mark.asyncio
    async def test_not_found(self, client, context):
        client.get_organization = AsyncMock(
            side_effect=UpstreamError("Charity not found", status_code=404)
        )

        result = await call_tool("charity_lookup", {"ein": "13-1837418"}, context)

        assert result.is_error is True
        assert result.text.startswith("❌ Charity not found with provided EIN")
        assert "**Suggestions:**" in result.text

    @pytest.mark.asyncio
    async def test_rate_limited(self, client):
        client.get_organization = AsyncMock(return_value=LOOKUP_BODY)
        context = ToolContext(client=client, limiter=RateLimiter(max_requests=1, window_ms=60_000))

        first = await call_tool("charity_lookup", {"ein": "13-1837418"}, context)
        second = await call_tool("charity_lookup", {"ein": "13-1837418"}, context)

        assert first.is_error is False
        assert second.is_error is True
        assert second.text.startswith("Rate limit exceeded for charity lookup. Please try again after ")
        assert client.get_organization.await_count == 1

    @pytest.mark.asyncio
    async def test_rate_limit_message_uses_limiter_clock(self, client):
        client.get_organization = AsyncMock(return_value=LOOKUP_BODY)
        context = ToolContext(
            client=client,
            limiter=RateLimiter(max_requests=1, window_ms=60_000, clock=lambda: 1_000),
        )

        await call_tool("charity_lookup", {"ein": "13-1837418"}, context)
        denied = await call_tool("charity_lookup", {"ein": "13-1837418"}, context)

        assert denied.text == (
            "Rate limit exceeded for charity lookup. Please try again after 1970-01-01T00:01:01.000Z."
        )

    @pytest.mark.asyncio
    async def test_zero_capacity_reports_limiter_time(self, client):
        client.get_organization = AsyncMock()
        context = ToolContext(
            client=client,
            limiter=RateLimiter(max_requests=0, window_ms=60_000, clock=lambda: 5_000),
        )

        denied = await call_tool("charity_lookup", {"ein": "13-1837418"}, context)

        assert denied.text.endswith("Please try again after 1970-01-01T00:00:05.000Z.")
        client.get_organization.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_limits_are_per_tool(self, client):
        client.get_organization = AsyncMock(return_value=LOOKUP_BODY)
        client.check_public_charity = AsyncMock(
            return_value={"data": {"public_charity": True, "ein": "13-1837418"}}
        )
        context = ToolContext(client=client, limiter=RateLimiter(max_requests=1, window_ms=60_000))

        await call_tool("charity_lookup", {"ein": "13-1837418"}, context)
        result = await call_tool("public_charity_check", {"ein": "13-1837418"}, context)

        assert result.is_error is False

    @pytest.mark.asyncio
    async def test_cancelled(self, client, context):
        client.get_organization = AsyncMock(side_effect=RequestCancelledError())
        context.cancel_event = asyncio.Event()

        result = await call_tool("charity_lookup", {"ein": "13-1837418"}, context)

        assert result.is_error is True
        assert "Request cancelled by caller" in result.text
        assert client.get_organization.await_args.kwargs["cancel_event"] is context.cancel_event


class TestPublicCharityCheck:
    """Tests for public_charity_check."""

    @pytest.mark.asyncio
    async def test_public(self, client, context):
        client.check_public_charity = AsyncMock(
            return_value={"data": {"public_charity": True, "ein": "13-1837418"}}
        )

        result = await call_tool("public_charity_check", {"ein": "131837418"}, context)

        assert result.is_error is False
        assert "**Public Charity Status:** ✅ **Yes**" in result.text
        client.check_public_charity.assert_awaited_once_with("13-1837418", cancel_event=None)

    @pytest.mark.asyncio
    async def test_bad_ein(self, client, context):
        client.check_public_charity = AsyncMock()

        result = await call_tool("public_charity_check", {"ein": "12"}, context)

        assert result.is_error is True
        assert result.text.startswith("❌ Invalid parameter 'ein': EIN must be 9 or 10 characters")

    @pytest.mark.asyncio
    async def test_missing_data(self, client, context):
        client.check_public_charity = AsyncMock(return_value={})

        result = await call_tool("public_charity_check", {"ein": "13-1837418"}, context)

        assert result.is_error is True
        assert result.text.startswith("❌ Charity not found with provided EIN")


class TestCharitySearch:
    """Tests for charity_search."""

    @pytest.mark.asyncio
    async def test_search(self, client, context):
        client.search_charities = AsyncMock(return_value={
            "data": [
                {"ein": "131837418", "name": "AMERICAN RED CROSS", "city": "WASHINGTON", "state": "DC"},
                {"ein": "", "name": "Broken"},
            ],
            "pagination": {"page": 1, "totalResults": 2},
        })

        result = await call_tool("charity_search", {"query": "red cross", "state": "dc"}, context)

        assert result.is_error is False
        assert "### 1. American Red Cross" in result.text
        assert "Broken" not in result.text
        client.search_charities.assert_awaited_once_with(
            query="red cross", city=None, state="DC", limit=25, offset=0, cancel_event=None
        )

    @pytest.mark.asyncio
    async def test_query_is_sanitized(self, client, context):
        client.search_charities = AsyncMock(return_value={"data": []})

        await call_tool("charity_search", {"query": "food bank; DROP"}, context)

        assert client.search_charities.await_args.kwargs["query"] == "food bank"

    @pytest.mark.asyncio
    async def test_no_criteria(self, client, context):
        client.search_charities = AsyncMock()

        result = await call_tool("charity_search", {"limit": 10}, context)

        assert result.is_error is True
        assert result.text == "At least one search parameter (query, city, or state) must be provided."
        client.search_charities.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_state(self, client, context):
        client.search_charities = AsyncMock()

        result = await call_tool("charity_search", {"state": "ZZ"}, context)

        assert result.is_error is True
        assert "Invalid parameter 'state'" in result.text

    @pytest.mark.asyncio
    async def test_forbidden_query(self, client, context):
        client.search_charities = AsyncMock()

        result = await call_tool("charity_search", {"query": "<script>alert(1)</script>"}, context)

        assert result.is_error is True
        assert "Search query contains forbidden patterns" in result.text

    @pytest.mark.asyncio
    async def test_limit_out_of_range(self, client, context):
        client.search_charities = AsyncMock()

        result = await call_tool("charity_search", {"city": "Boston", "limit": 500}, context)

        assert result.is_error is True
        assert "Invalid parameter 'limit'" in result.text

    @pytest.mark.asyncio
    async def test_upstream_failure(self, client, context):
        client.search_charities = AsyncMock(
            side_effect=UpstreamError("Internal server error", status_code=500)
        )

        result = await call_tool("charity_search", {"city": "Boston"}, context)

        assert result.is_error is True
        assert result.text.startswith("❌ Charity API error: Internal server error")


class TestListOrganizations:
    """Tests for list_organizations."""

    @pytest.mark.asyncio
    async def test_list(self, client, context):
        client.list_organizations = AsyncMock(return_value={
            "data": [{"ein": str(100000000 + i), "name": f"Org {i}"} for i in range(3)]
        })

        result = await call_tool(
            "list_organizations", {"since": "2024-01-01T00:00:00Z", "limit": 2}, context
        )

        assert result.is_error is False
        assert "## 1. Org 0" in result.text
        assert "## 2. Org 1" in result.text
        assert "Org 2" not in result.text
        assert "Use offset=2" in result.text
        since = client.list_organizations.await_args.args[0]
        assert since.year == 2024

    @pytest.mark.asyncio
    async def test_missing_since(self, client, context):
        client.list_organizations = AsyncMock()

        result = await call_tool("list_organizations", {}, context)

        assert result.is_error is True
        assert "Invalid parameter 'since'" in result.text

    @pytest.mark.asyncio
    async def test_bad_date(self, client, context):
        client.list_organizations = AsyncMock()

        result = await call_tool("list_organizations", {"since": "yesterday"}, context)

        assert result.is_error is True
        assert "Invalid parameter 'since'" in result.text
        client.list_organizations.assert_not_awaited()
