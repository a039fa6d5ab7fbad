"""Pytest configuration and shared fixtures for the automate-mcp unit tests.

Provides environment isolation for the ``AUTOMATE_`` settings and resets the
process-wide caches (settings and the shared token manager) between tests.
"""

import os
from collections.abc import Generator

import pytest

from automate_mcp.config import ENV_PREFIX


@pytest.fixture
def clean_env() -> Generator[dict[str, str | None], None, None]:
    """Remove every ``AUTOMATE_`` variable for the test, restoring them afterwards.

    Yields:
        Dict containing the original values of the removed variables
    """
    original_env = {key: value for key, value in os.environ.items() if key.startswith(ENV_PREFIX)}
    for key in original_env:
        del os.environ[key]

    yield dict(original_env)

    for key in [key for key in os.environ if key.startswith(ENV_PREFIX)]:
        del os.environ[key]
    os.environ.update(original_env)


@pytest.fixture
def valid_env_config(clean_env: dict[str, str | None]) -> dict[str, str]:
    """Provide a complete, valid configuration environment.

    Returns:
        Dict containing the variables that were set
    """
    config = {
        f"{ENV_PREFIX}SERVER_URL": "https://automate.example.test",
        f"{ENV_PREFIX}USERNAME": "api-user",
        f"{ENV_PREFIX}PASSWORD": "test-password-12345",
        f"{ENV_PREFIX}CLIENT_ID": "test-client-id",
    }
    os.environ.update(config)
    return config


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (may require external resources)"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (no external dependencies)"
    )


@pytest.fixture(autouse=True)
def reset_lru_cache() -> Generator[None, None, None]:
    """Reset cached settings and the shared token manager between tests."""
    yield

    from automate_mcp.config import get_settings
    from automate_mcp.tools.common import get_token_manager

    get_settings.cache_clear()
    get_token_manager.cache_clear()
