"""Bearer token lifecycle for the Automate API.

Automate issues a bearer token from ``POST /cwa/api/v1/apitoken`` in exchange
for a username, password and optional two-factor passcode. Tokens live for
about an hour; this module treats them as expired after 55 minutes so that a
token is never sent in its final minutes.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Final

import httpx

from automate_mcp.libs.automate.config import AutomateConfig
from automate_mcp.libs.automate.exceptions import AutomateAuthenticationError
from automate_mcp.libs.automate.models import CredentialSession
from automate_mcp.logging_security import register_secret
from automate_mcp.user_agent import get_user_agent

logger = logging.getLogger(__name__)

TOKEN_LIFETIME: Final = timedelta(minutes=55)
TOKEN_PATH: Final = "/apitoken"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class TokenManager:
    """Owns the credential session shared by every client request.

    The manager never retries a failed login; the request gateway decides
    when a fresh login is worth attempting.

    Concurrent callers that find the token expired at the same time may both
    log in. The second login simply replaces the first token.
    """

    def __init__(
        self, config: AutomateConfig, clock: Callable[[], datetime] = utc_now
    ) -> None:
        """Initialize the token manager.

        Args:
            config: Connection configuration holding the credentials.
            clock: Returns the current aware datetime; replaceable in tests.
        """
        self.config = config
        self._clock = clock
        self._session: CredentialSession | None = None

    @property
    def clock(self) -> Callable[[], datetime]:
        """Time source shared with clients that compute age cutoffs."""
        return self._clock

    @property
    def session(self) -> CredentialSession | None:
        """The current credential session, if any."""
        return self._session

    def invalidate(self) -> None:
        """Discard the cached session so the next call logs in again."""
        if self._session is not None:
            logger.debug("Discarding cached Automate access token")
        self._session = None

    async def ensure_authenticated(self, http: httpx.AsyncClient) -> str:
        """Return a token that has not reached its recorded expiry.

        Args:
            http: Open HTTP client used for the login exchange when needed.

        Returns:
            The bearer token to attach to the next request.

        Raises:
            AutomateAuthenticationError: If a required login fails.
        """
        session = self._session
        if session is not None and session.is_valid(self._clock()):
            return session.access_token

        logger.debug(
            "No valid Automate access token, logging in",
            extra={"had_session": session is not None},
        )
        session = await self.login(http)
        return session.access_token

    async def login(self, http: httpx.AsyncClient) -> CredentialSession:
        """Exchange the configured credentials for a new bearer token.

        Raises:
            AutomateAuthenticationError: If the exchange fails for any reason,
                including network errors and a missing or rejected passcode.
        """
        body = {"UserName": self.config.username, "Password": self.config.password}
        if self.config.two_factor_passcode:
            body["TwoFactorPasscode"] = self.config.two_factor_passcode

        url = f"{self.config.api_base_url}{TOKEN_PATH}"
        logger.info(
            "Requesting Automate access token",
            extra={"url": url, "username": self.config.username},
        )

        issued_at = self._clock()
        try:
            response = await http.post(
                url,
                json=body,
                headers={"Content-Type": "application/json", "User-Agent": get_user_agent()},
            )
        except httpx.TimeoutException as e:
            logger.exception("Timeout requesting Automate access token", extra={"url": url})
            raise AutomateAuthenticationError(
                "Authentication request timed out", details=str(e)
            ) from e
        except httpx.RequestError as e:
            logger.exception("Network error requesting Automate access token", extra={"url": url})
            raise AutomateAuthenticationError(
                "Authentication request failed", details=str(e)
            ) from e

        if response.status_code >= 400:
            logger.error(
                "Automate authentication failed",
                extra={"status_code": response.status_code, "url": url},
            )
            raise AutomateAuthenticationError(
                "Authentication failed",
                status_code=response.status_code,
                details=response.text or None,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise AutomateAuthenticationError(
                "Authentication response was not valid JSON",
                status_code=response.status_code,
                details=response.text[:500] or None,
            ) from e

        token = data.get("AccessToken") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            logger.error(
                "Automate authentication response had no AccessToken",
                extra={"status_code": response.status_code},
            )
            raise AutomateAuthenticationError(
                "Authentication response did not contain an access token",
                status_code=response.status_code,
            )

        register_secret(token)
        self._session = CredentialSession(access_token=token, expires_at=issued_at + TOKEN_LIFETIME)
        logger.info(
            "Obtained Automate access token",
            extra={"expires_at": self._session.expires_at.isoformat()},
        )
        return self._session
