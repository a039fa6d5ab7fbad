"""HTTP gateway for the ConnectWise Automate REST API.

Every request goes through ``AutomateGateway._dispatch``, which:

1. asks the ``TokenManager`` for a token that has not expired,
2. sends the request with the bearer token and the ``clientId`` header,
3. on HTTP 401 discards the token, logs in again and resubmits once.

A second 401 is final. Other failures are never retried and surface as typed
exceptions carrying the status code and response body.
"""

import logging
import os
from collections.abc import Sequence
from http import HTTPStatus
from typing import Final

import httpx
from pydantic import JsonValue
from tenacity import RetryCallState, retry, retry_if_exception_type, stop_after_attempt

from automate_mcp.libs.automate.auth import TokenManager
from automate_mcp.libs.automate.config import AutomateConfig
from automate_mcp.libs.automate.exceptions import (
    AutomateAPIError,
    AutomateClientError,
    AutomateNetworkError,
    AutomateNotFoundError,
    AutomateTokenRejectedError,
)
from automate_mcp.libs.automate.models import Record
from automate_mcp.libs.automate.query import ListQuery
from automate_mcp.user_agent import get_user_agent

logger = logging.getLogger(__name__)

ALL_PAGES_PAGE_SIZE: Final = 1000
ITEMS_KEY: Final = "items"


def _unsafe_logging_enabled() -> bool:
    return os.environ.get("AUTOMATE_DEBUG_UNSAFE_LOGGING") == "1"


def extract_items(payload: JsonValue) -> list[Record]:
    """Resolve a list response into a list of records.

    List endpoints answer either with a bare JSON array or with an object
    holding the records under ``items``. Anything else yields no records.
    """
    if isinstance(payload, dict):
        payload = payload.get(ITEMS_KEY)
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


def _discard_rejected_token(retry_state: RetryCallState) -> None:
    """Drop the cached token after a 401 so the retry performs a fresh login."""
    gateway = retry_state.args[0]
    logger.warning(
        "Automate rejected the access token, re-authenticating and retrying once",
        extra={"attempt": retry_state.attempt_number},
    )
    gateway.token_manager.invalidate()


class AutomateGateway:
    """Authenticated, read-only access to Automate REST endpoints.

    The gateway is an async context manager owning one ``httpx.AsyncClient``.
    The credential session lives on the ``TokenManager``, which may be shared
    between gateways so that a token outlives a single context.
    """

    def __init__(self, config: AutomateConfig, token_manager: TokenManager | None = None):
        """Initialize the gateway.

        Args:
            config: Connection configuration.
            token_manager: Shared credential owner; a private one is created
                when omitted.
        """
        self.config = config
        self.token_manager = token_manager or TokenManager(config)
        self._client: httpx.AsyncClient | None = None
        logger.debug(
            "Initialized Automate gateway", extra={"api_base_url": config.api_base_url}
        )

    async def __aenter__(self) -> "AutomateGateway":
        """Enter async context manager."""
        logger.debug("Opening HTTP client connection")
        self._client = httpx.AsyncClient(
            base_url=self.config.api_base_url,
            headers={
                "clientId": self.config.client_id,
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": get_user_agent(),
            },
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=True,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client connection closed")

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            logger.error("Client not initialized")
            raise AutomateAPIError("Client not initialized. Use async context manager.")
        return self._client

    @retry(
        stop=stop_after_attempt(2),
        retry=retry_if_exception_type(AutomateTokenRejectedError),
        before_sleep=_discard_rejected_token,
        reraise=True,
    )
    async def _dispatch(
        self, path: str, params: Sequence[tuple[str, str]] | None = None
    ) -> httpx.Response:
        """Send one authenticated GET request.

        Raises:
            AutomateTokenRejectedError: On HTTP 401 (retried once by tenacity).
            AutomateAuthenticationError: If logging in fails.
            AutomateNetworkError: On timeouts and connection failures.
            AutomateClientError: If the request cannot be built or sent.
        """
        http = self._require_client()
        token = await self.token_manager.ensure_authenticated(http)

        try:
            response = await http.get(
                path,
                params=list(params) if params else None,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TimeoutException as e:
            logger.exception("Timeout calling Automate API", extra={"path": path})
            raise AutomateNetworkError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            logger.exception("Network error calling Automate API", extra={"path": path})
            raise AutomateNetworkError(f"Network error: {e}") from e
        except Exception as e:
            # e.g. UnicodeEncodeError while httpx encodes the query string
            logger.exception("Failed to send Automate API request", extra={"path": path})
            raise AutomateClientError("Failed to send request", details=str(e)) from e

        if response.status_code == HTTPStatus.UNAUTHORIZED:
            raise AutomateTokenRejectedError(
                "Authentication failed: access token rejected",
                status_code=response.status_code,
                details=response.text or None,
            )
        return response

    def _handle_response(self, response: httpx.Response) -> JsonValue:
        """Map error statuses to exceptions and decode the JSON body.

        Raises:
            AutomateNotFoundError: If the resource does not exist (404).
            AutomateAPIError: For other error statuses or invalid JSON.
        """
        if response.status_code == HTTPStatus.NOT_FOUND:
            logger.warning("Resource not found", extra={"url": str(response.url)})
            raise AutomateNotFoundError(
                "Automate resource not found",
                status_code=response.status_code,
                details=response.text or None,
            )

        if response.status_code >= 400:
            raw_body = response.text
            logger.error(
                "API error",
                extra={
                    "status_code": response.status_code,
                    "url": str(response.url),
                    "body": raw_body[:500],
                },
            )
            raise AutomateAPIError(
                "Automate API request failed",
                status_code=response.status_code,
                details=raw_body or None,
            )

        if not response.content:
            return None

        try:
            data: JsonValue = response.json()
        except ValueError as e:
            logger.exception(
                "Failed to parse Automate response",
                extra={"url": str(response.url), "response": response.text[:500]},
            )
            raise AutomateAPIError(
                "Failed to parse response",
                status_code=response.status_code,
                details=str(e),
            ) from e
        return data

    async def _get_json(
        self, path: str, params: Sequence[tuple[str, str]] | None = None
    ) -> JsonValue:
        response = await self._dispatch(path, params)
        logger.debug(
            "Received Automate response",
            extra={"status_code": response.status_code, "path": path},
        )
        try:
            return self._handle_response(response)
        except AutomateClientError:
            raise
        except Exception as e:
            logger.exception("Unexpected error handling Automate response", extra={"path": path})
            raise AutomateAPIError(f"Unexpected error: {e}") from e

    async def get_list(self, path: str, query: ListQuery | None = None) -> list[Record]:
        """Fetch one page from a list endpoint.

        Args:
            path: Endpoint path relative to the API base, e.g. ``/Computers``.
            query: Condition, pagination, ordering and projection.

        Returns:
            The records of the page, in server order.
        """
        query = query or ListQuery()
        if _unsafe_logging_enabled():
            logger.debug(
                "Listing Automate records",
                extra={"path": path, "query": query.model_dump()},
            )
        else:
            logger.debug(
                "Listing Automate records",
                extra={
                    "path": path,
                    "page": query.page,
                    "page_size": query.page_size,
                    "has_condition": bool(query.condition),
                    "projected_fields": len(query.included_fields or ()),
                },
            )
        payload = await self._get_json(path, query.to_params())
        return extract_items(payload)

    async def get_detail(self, path: str) -> Record:
        """Fetch a single full record.

        Raises:
            AutomateNotFoundError: If no record exists at ``path``.
            AutomateAPIError: If the response is not a JSON object.
        """
        logger.debug("Fetching Automate record", extra={"path": path})
        payload = await self._get_json(path)
        if not isinstance(payload, dict):
            raise AutomateAPIError(
                "Unexpected response shape for single record",
                details=type(payload).__name__,
            )
        return payload

    async def fetch_all_pages(
        self,
        path: str,
        condition: str | None = None,
        included_fields: Sequence[str] | None = None,
    ) -> list[Record]:
        """Fetch every record of a list endpoint, 1000 at a time.

        Paging stops at the first page holding fewer than 1000 records, which
        works for endpoints that do not report a total count. There is no page
        ceiling.
        """
        records: list[Record] = []
        page = 1
        fields = tuple(included_fields) if included_fields else None
        while True:
            batch = await self.get_list(
                path,
                ListQuery(
                    condition=condition,
                    page_size=ALL_PAGES_PAGE_SIZE,
                    page=page,
                    included_fields=fields,
                ),
            )
            records.extend(batch)
            if len(batch) < ALL_PAGES_PAGE_SIZE:
                break
            page += 1

        logger.debug(
            "Fetched all pages",
            extra={"path": path, "pages": page, "record_count": len(records)},
        )
        return records
