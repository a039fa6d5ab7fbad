"""Application configuration management using Pydantic Settings.

Settings are loaded from ``AUTOMATE_``-prefixed environment variables and
validated when the server starts, so that a missing server URL or credential
is reported once at startup instead of on the first tool call.
"""

import logging
from functools import lru_cache
from typing import ClassVar, Final, Literal
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX_NAME: Final[str] = "AUTOMATE"
ENV_PREFIX_DELIMITER: Final[str] = "_"
ENV_PREFIX: Final[str] = f"{ENV_PREFIX_NAME}{ENV_PREFIX_DELIMITER}"

SERVER_URL_ENV: Final[str] = f"{ENV_PREFIX}SERVER_URL"
USERNAME_ENV: Final[str] = f"{ENV_PREFIX}USERNAME"
PASSWORD_ENV: Final[str] = f"{ENV_PREFIX}PASSWORD"
CLIENT_ID_ENV: Final[str] = f"{ENV_PREFIX}CLIENT_ID"
TWO_FACTOR_PASSCODE_ENV: Final[str] = f"{ENV_PREFIX}2FA_PASSCODE"
ONLINE_STATUS_ENV: Final[str] = f"{ENV_PREFIX}ONLINE_STATUS"
OFFLINE_STATUS_ENV: Final[str] = f"{ENV_PREFIX}OFFLINE_STATUS"
TIMEOUT_ENV: Final[str] = f"{ENV_PREFIX}TIMEOUT"
ENVIRONMENT_ENV: Final[str] = f"{ENV_PREFIX}ENV"
LOGFIRE_TOKEN_ENV: Final[str] = f"{ENV_PREFIX}LOGFIRE_TOKEN"
STATELESS_HTTP_ENV: Final[str] = f"{ENV_PREFIX}STATELESS_HTTP"
TRANSPORT_MODE_ENV: Final[str] = f"{ENV_PREFIX}TRANSPORT_MODE"

REQUIRED_ENV_VARS: Final[tuple[str, ...]] = (
    SERVER_URL_ENV,
    USERNAME_ENV,
    PASSWORD_ENV,
    CLIENT_ID_ENV,
)


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # ConnectWise Automate connection
    server_url: str = Field(
        ...,
        description="Automate server URL, e.g. https://yourcompany.hostedrmm.com",
        validation_alias=SERVER_URL_ENV,
    )
    username: str = Field(
        ...,
        description="Automate username used for the token exchange",
        validation_alias=USERNAME_ENV,
    )
    password: str = Field(
        ...,
        description="Automate password used for the token exchange",
        validation_alias=PASSWORD_ENV,
    )
    client_id: str = Field(
        ...,
        description="ConnectWise developer clientId sent with every request",
        validation_alias=CLIENT_ID_ENV,
    )
    two_factor_passcode: str | None = Field(
        default=None,
        description="Optional two-factor passcode for the token exchange",
        validation_alias=TWO_FACTOR_PASSCODE_ENV,
    )

    # Status literals differ between Automate server versions
    online_status_value: str = Field(
        default="Online",
        description="Value of the computer Status field that means online",
        validation_alias=ONLINE_STATUS_ENV,
    )
    offline_status_value: str = Field(
        default="Offline",
        description="Value of the computer Status field that means offline",
        validation_alias=OFFLINE_STATUS_ENV,
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds for Automate API requests",
        validation_alias=TIMEOUT_ENV,
    )

    environment: str = Field(
        default="development",
        description="Environment name (e.g., 'development', 'production', 'staging')",
        validation_alias=ENVIRONMENT_ENV,
    )

    logfire_token: str | None = Field(
        default=None,
        description="Optional Pydantic Logfire token for observability",
        validation_alias=LOGFIRE_TOKEN_ENV,
    )

    stateless_http: bool = Field(
        default=False,
        description="Stateless mode (new transport per request)",
        validation_alias=STATELESS_HTTP_ENV,
    )

    transport_mode: Literal["stdio", "http", "streamable-http", "sse"] = Field(
        default="stdio",
        description="MCP transport mode (stdio, http, streamable-http, or sse)",
        validation_alias=TRANSPORT_MODE_ENV,
    )

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        """Require an HTTPS origin and strip any trailing slash."""
        if not v.startswith("https://"):
            raise ValueError("Automate server URL must use HTTPS (https://)")

        v = v.rstrip("/")
        parsed = urlparse(v)
        if not parsed.hostname:
            raise ValueError("Automate server URL must have a valid hostname")
        if parsed.query or parsed.fragment:
            raise ValueError("Automate server URL must not contain a query or fragment")

        return v

    @field_validator("username", "password", "client_id")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty credentials."""
        if not v.strip():
            raise ValueError("value cannot be empty")
        return v

    @property
    def api_base_url(self) -> str:
        """Base URL of the Automate REST API."""
        return f"{self.server_url}/cwa/api/v1"

    def model_post_init(self, __context: object, /) -> None:
        """Log configuration after initialization."""
        logger.info("Application configuration loaded successfully")
        logger.info("Automate API URL configured", extra={"api_base_url": self.api_base_url})
        logger.info(
            "Automate credentials configured",
            extra={
                "username": self.username,
                "two_factor": self.two_factor_passcode is not None,
            },
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: The application settings

    Raises:
        ValidationError: If required settings are missing or invalid
    """
    try:
        settings = Settings()

        from automate_mcp.logging_security import register_secret

        register_secret(settings.password)
        if settings.two_factor_passcode:
            register_secret(settings.two_factor_passcode)

        return settings
    except Exception:
        logger.critical(
            "Failed to initialize application configuration",
            exc_info=True,
        )
        raise
