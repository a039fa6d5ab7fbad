"""Tests for the fleet analytics tools."""

import json
from unittest.mock import patch

import httpx
import pytest
from respx import MockRouter

from automate_mcp.libs.automate import (
    AutomateClient,
    AutomateConfig,
    AutomateNetworkError,
    BatchCheckResult,
    ComputerLookup,
    ComputersSummary,
    TokenManager,
)
from automate_mcp.tools.analytics import (
    check_computers_exist,
    get_computers_summary,
    get_offline_computers,
    get_stale_computers,
)
from tests.unit.libs.automate.helpers import (
    COMPUTERS_URL,
    SERVER_URL,
    TOKEN_URL,
    MockAutomateClientBuilder,
)

CLIENT_FACTORY = "automate_mcp.tools.analytics.get_automate_client"


class TestGetComputersSummary:
    """Test get_computers_summary tool."""

    @pytest.mark.asyncio
    async def test_returns_summary(self) -> None:
        """Test that the summary is serialized with its breakdowns."""
        summary = ComputersSummary(
            total_count=3,
            online=2,
            offline=1,
            by_client={"Acme": 3},
            by_os={"Windows 11": 2, "Linux": 1},
        )
        client = MockAutomateClientBuilder.create(get_computers_summary=summary)

        with patch(CLIENT_FACTORY, return_value=client):
            result = await get_computers_summary(client_id=5)

        data = json.loads(result)
        assert data["total_count"] == 3
        assert data["by_os"] == {"Windows 11": 2, "Linux": 1}
        client.get_computers_summary.assert_awaited_once_with(5)

    @pytest.mark.asyncio
    async def test_invalid_client_id(self) -> None:
        """Test that a non-positive client_id is rejected."""
        with pytest.raises(ValueError, match="client_id"):
            await get_computers_summary(client_id=0)

    @pytest.mark.asyncio
    async def test_network_error_propagates(self) -> None:
        """Test that network failures pass through unchanged."""
        client = MockAutomateClientBuilder.create(
            get_computers_summary=AutomateNetworkError("Network error: reset")
        )

        with patch(CLIENT_FACTORY, return_value=client):
            with pytest.raises(AutomateNetworkError):
                await get_computers_summary()


class TestOfflineAndStale:
    """Test get_offline_computers and get_stale_computers tools."""

    @pytest.mark.asyncio
    async def test_offline_defaults(self) -> None:
        """Test the default arguments reach the client."""
        client = MockAutomateClientBuilder.create(get_offline_computers=[{"Id": 1}])

        with patch(CLIENT_FACTORY, return_value=client):
            result = await get_offline_computers()

        assert json.loads(result) == [{"Id": 1}]
        client.get_offline_computers.assert_awaited_once_with(
            days_offline=1, client_id=None, limit=100
        )

    @pytest.mark.asyncio
    async def test_stale_arguments(self) -> None:
        """Test that the type filter reaches the client."""
        client = MockAutomateClientBuilder.create(get_stale_computers=[])

        with patch(CLIENT_FACTORY, return_value=client):
            result = await get_stale_computers(days_old=90, client_id=3, type_filter="Server", limit=10)

        assert json.loads(result) == []
        client.get_stale_computers.assert_awaited_once_with(
            days_old=90, client_id=3, type_filter="Server", limit=10
        )

    @pytest.mark.parametrize(
        "kwargs",
        [
            pytest.param({"days_offline": -1}, id="negative-days"),
            pytest.param({"days_offline": float("nan")}, id="nan-days"),
            pytest.param({"limit": 0}, id="zero-limit"),
            pytest.param({"limit": 1001}, id="limit-too-large"),
            pytest.param({"client_id": -5}, id="negative-client"),
        ],
    )
    @pytest.mark.asyncio
    async def test_offline_validation(self, kwargs: dict[str, float]) -> None:
        """Test out-of-range arguments."""
        with pytest.raises(ValueError):
            await get_offline_computers(**kwargs)

    @pytest.mark.asyncio
    async def test_stale_rejects_unknown_type(self) -> None:
        """Test that type_filter is limited to Workstation or Server."""
        with pytest.raises(ValueError, match="type_filter"):
            await get_stale_computers(type_filter="Laptop")

    @pytest.mark.asyncio
    async def test_zero_days_allowed(self) -> None:
        """Test that zero days is a valid horizon."""
        client = MockAutomateClientBuilder.create(get_stale_computers=[])

        with patch(CLIENT_FACTORY, return_value=client):
            await get_stale_computers(days_old=0)

        client.get_stale_computers.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_huge_horizon_returns_empty_list(self, respx_mock: MockRouter) -> None:
        """Test that a horizon older than any datetime yields an empty result."""
        config = AutomateConfig(
            server_url=SERVER_URL, username="api-user", password="pw", client_id="cid"
        )
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"AccessToken": "tok-1"})
        )
        respx_mock.get(COMPUTERS_URL).mock(return_value=httpx.Response(200, json=[]))

        with patch(CLIENT_FACTORY, return_value=AutomateClient(config, TokenManager(config))):
            stale = await get_stale_computers(days_old=1_000_000)
            offline = await get_offline_computers(days_offline=float("inf"))

        assert json.loads(stale) == []
        assert json.loads(offline) == []


class TestCheckComputersExist:
    """Test check_computers_exist tool."""

    @pytest.mark.asyncio
    async def test_returns_batch_result(self) -> None:
        """Test that the batch result is serialized."""
        batch = BatchCheckResult(
            total=2,
            found=1,
            not_found=1,
            online=1,
            offline=0,
            results=[
                ComputerLookup(name="PC-01", found=True, id=1, status="Online"),
                ComputerLookup(name="PC-99", found=False),
            ],
        )
        client = MockAutomateClientBuilder.create(check_computers_exist=batch)

        with patch(CLIENT_FACTORY, return_value=client):
            result = await check_computers_exist(["PC-01", "PC-99"])

        data = json.loads(result)
        assert data["found"] == 1
        assert data["results"][1] == {
            "name": "PC-99",
            "found": False,
            "id": None,
            "status": None,
            "last_contact": None,
            "client": None,
            "type": None,
            "os": None,
            "error": None,
        }

    @pytest.mark.parametrize(
        "names",
        [
            pytest.param([], id="empty"),
            pytest.param(["", "  "], id="blank-only"),
            pytest.param([f"PC-{i}" for i in range(51)], id="too-many"),
        ],
    )
    @pytest.mark.asyncio
    async def test_invalid_name_lists(self, names: list[str]) -> None:
        """Test that the list must hold 1 to 50 names."""
        with patch(CLIENT_FACTORY) as factory:
            with pytest.raises(ValueError):
                await check_computers_exist(names)

        factory.assert_not_called()
