"""Exceptions for ConnectWise Automate operations."""


class AutomateError(Exception):
    """Base exception for all Automate-related errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: The main error message.
            details: Optional additional details about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        """Return a string representation of the error."""
        if self.details:
            return f"{self.message}. Details: {self.details}"
        return self.message


class AutomateConfigError(AutomateError):
    """Configuration-related errors, such as missing connection settings."""

    pass


class AutomateClientError(AutomateError):
    """HTTP/network-related errors when communicating with the Automate API."""

    def __init__(
        self, message: str, status_code: int | None = None, details: str | None = None
    ) -> None:
        """Initialize the client error.

        Args:
            message: The main error message.
            status_code: HTTP status code if applicable.
            details: Optional response body or other diagnostic text.
        """
        self.status_code = status_code
        super().__init__(message, details)

    def __str__(self) -> str:
        """Return a string representation of the error."""
        base_message = self.message
        if self.status_code:
            base_message = f"{base_message} (HTTP {self.status_code})"
        if self.details:
            base_message = f"{base_message}. Details: {self.details}"
        return base_message


class AutomateAuthenticationError(AutomateClientError):
    """Raised when the token exchange fails or a request is denied for good."""

    pass


class AutomateTokenRejectedError(AutomateAuthenticationError):
    """Raised when the API answers HTTP 401 to a request carrying a bearer token.

    This is the only condition the request gateway retries, once, after
    discarding the cached token and logging in again.
    """

    pass


class AutomateNotFoundError(AutomateClientError):
    """Raised when the requested resource does not exist (HTTP 404)."""

    pass


class AutomateAPIError(AutomateClientError):
    """Raised when the API returns an error or an unparseable response."""

    pass


class AutomateNetworkError(AutomateClientError):
    """Raised when network/connection errors occur."""

    pass
