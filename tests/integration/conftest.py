"""Integration test configuration and utilities.

These tests talk to a real Automate server and are skipped unless real
connection settings are available in the environment or a ``.env.test`` file.
"""

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from automate_mcp.config import REQUIRED_ENV_VARS


def load_test_env() -> None:
    """Load environment variables from .env.test file if it exists."""
    env_test_path = Path(__file__).parent.parent.parent / ".env.test"
    if env_test_path.exists():
        with env_test_path.open() as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    # Only set if not already in environment
                    if key not in os.environ:
                        os.environ[key] = value


def is_real_environment() -> tuple[bool, list[str]]:
    """Check if we have real environment variables for integration testing.

    Returns:
        Tuple of (is_real, missing_or_example_vars)
    """
    load_test_env()

    example_values = {
        "https://automate.example.test",
        "automate.example.test",
        "example.test",
        "your-password-here",
        "your-client-id",
        "",
        "none",
        "null",
    }

    missing_or_example = [
        var
        for var in REQUIRED_ENV_VARS
        if os.environ.get(var, "").strip().lower() in example_values
    ]
    return len(missing_or_example) == 0, missing_or_example


@pytest.fixture(scope="session")
def integration_env_check() -> dict[str, str]:
    """Check integration environment and skip if not properly configured."""
    is_real, missing_vars = is_real_environment()

    if not is_real:
        missing_list = "\n  - ".join(missing_vars)
        pytest.skip(
            f"Integration tests require real environment variables. "
            f"Missing or example values found for:\n  - {missing_list}\n\n"
            f"Please set these in .env.test file with real values."
        )

    return {var: os.environ[var] for var in REQUIRED_ENV_VARS}


@pytest.fixture
def integration_settings(integration_env_check: dict[str, str]) -> Generator[None, None, None]:
    """Start and finish each test with fresh settings and a fresh token."""
    from automate_mcp.config import get_settings
    from automate_mcp.tools.common import get_token_manager

    get_settings.cache_clear()
    get_token_manager.cache_clear()

    yield

    get_settings.cache_clear()
    get_token_manager.cache_clear()


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest for integration tests."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests requiring real environment"
    )
    config.addinivalue_line("markers", "slow: marks tests as slow (may take several seconds)")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Automatically mark integration tests."""
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)
