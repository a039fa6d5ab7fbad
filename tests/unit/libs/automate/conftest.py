"""Fixtures shared by the Automate client library tests."""

from collections.abc import Callable

import httpx
import pytest
from respx import MockRouter, Route

from automate_mcp.libs.automate.auth import TokenManager
from automate_mcp.libs.automate.config import AutomateConfig
from tests.unit.libs.automate.helpers import SERVER_URL, TOKEN_URL, FakeClock


@pytest.fixture
def config() -> AutomateConfig:
    """Connection configuration pointing at a fake Automate server."""
    return AutomateConfig(
        server_url=SERVER_URL,
        username="api-user",
        password="s3cret-password",
        client_id="client-123",
    )


@pytest.fixture
def clock() -> FakeClock:
    """A clock tests can move forward."""
    return FakeClock()


@pytest.fixture
def token_manager(config: AutomateConfig, clock: FakeClock) -> TokenManager:
    """Token manager driven by the fake clock."""
    return TokenManager(config, clock=clock)


@pytest.fixture
def token_route(respx_mock: MockRouter) -> Callable[..., Route]:
    """Factory registering the token endpoint; successive logins issue tok-1, tok-2, ..."""

    def _register(status_code: int = 200) -> Route:
        issued = 0

        def _issue(request: httpx.Request) -> httpx.Response:
            nonlocal issued
            if status_code != 200:
                return httpx.Response(status_code, text="Invalid credentials")
            issued += 1
            return httpx.Response(200, json={"AccessToken": f"tok-{issued}"})

        return respx_mock.post(TOKEN_URL).mock(side_effect=_issue)

    return _register
