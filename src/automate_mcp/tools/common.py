"""Shared plumbing for the Automate MCP tools.

Every tool builds a fresh ``AutomateClient`` per call, but all clients share
one ``TokenManager`` so that the bearer token obtained by the first call is
reused until it expires.
"""

import json
import logging
from functools import lru_cache
from typing import Final

from pydantic import JsonValue

from automate_mcp.config import get_settings
from automate_mcp.libs.automate import (
    AutomateClient,
    AutomateConfig,
    AutomateConfigError,
    TokenManager,
)

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE: Final = 1000


def build_automate_config() -> AutomateConfig:
    """Translate application settings into a client configuration.

    Raises:
        AutomateConfigError: If the settings are missing or invalid.
    """
    try:
        settings = get_settings()
    except Exception as e:
        raise AutomateConfigError(
            "Settings not initialized. Please check your environment configuration.",
            details=str(e),
        ) from e

    return AutomateConfig(
        server_url=settings.server_url,
        username=settings.username,
        password=settings.password,
        client_id=settings.client_id,
        two_factor_passcode=settings.two_factor_passcode,
        online_status_value=settings.online_status_value,
        offline_status_value=settings.offline_status_value,
        timeout=settings.timeout,
    )


@lru_cache
def get_token_manager() -> TokenManager:
    """Return the process-wide credential owner."""
    return TokenManager(build_automate_config())


def get_automate_client() -> AutomateClient:
    """Get a configured AutomateClient bound to the shared token manager."""
    token_manager = get_token_manager()
    return AutomateClient(token_manager.config, token_manager)


def to_json(value: JsonValue) -> str:
    """Serialize plain JSON data the way the tools return it."""
    return json.dumps(value, indent=2, default=str)


def validate_pagination(page_size: int, page: int) -> None:
    """Raise ValueError unless 1 <= page_size <= 1000 and page >= 1."""
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
    if page < 1:
        raise ValueError("page must be 1 or greater")


def validate_id(name: str, value: int) -> None:
    """Raise ValueError unless ``value`` is a positive identifier."""
    if value < 1:
        raise ValueError(f"{name} must be a positive integer")


def validate_optional_id(name: str, value: int | None) -> None:
    """Like validate_id, but None is allowed."""
    if value is not None:
        validate_id(name, value)
