"""Configuration for the ConnectWise Automate client."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class _ProgrammaticSettings(BaseSettings):
    """Base class to disable environment variable loading for settings."""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Disable all settings sources except for programmatic initialization."""
        return (init_settings,)


class AutomateConfig(_ProgrammaticSettings):
    """Connection configuration for the Automate REST API.

    Immutable once constructed; the application settings layer builds one
    from environment variables and hands it to every client.
    """

    model_config = SettingsConfigDict(frozen=True)

    server_url: str = Field(
        ...,
        description="Automate server URL (must use HTTPS).",
    )
    username: str = Field(
        ...,
        description="Username for the token exchange.",
    )
    password: str = Field(
        ...,
        description="Password for the token exchange.",
    )
    client_id: str = Field(
        ...,
        description="ConnectWise developer clientId sent as a request header.",
    )
    two_factor_passcode: str | None = Field(
        default=None,
        description="Optional two-factor passcode for the token exchange.",
    )
    online_status_value: str = Field(
        default="Online",
        description="Status field value that marks a computer as online.",
    )
    offline_status_value: str = Field(
        default="Offline",
        description="Status field value that marks a computer as offline.",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds.",
    )

    @field_validator("server_url")
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        """Validate and normalize server_url.

        Requirements:
        1. Must use HTTPS protocol
        2. Strips trailing slashes

        Args:
            v: The server_url value to validate

        Returns:
            Normalized server_url

        Raises:
            ValueError: If server_url is empty or doesn't use HTTPS
        """
        if not v:
            raise ValueError("server_url cannot be empty")

        if not v.startswith("https://"):
            raise ValueError("server_url must use HTTPS protocol")

        return v.rstrip("/")

    @field_validator("username", "password", "client_id")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Reject empty credentials."""
        if not v:
            raise ValueError("value cannot be empty")
        return v

    @property
    def api_base_url(self) -> str:
        """Get the base URL of the Automate REST API."""
        return f"{self.server_url}/cwa/api/v1"
