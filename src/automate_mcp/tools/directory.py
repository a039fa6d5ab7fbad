"""Tools for browsing clients, locations and agent groups in ConnectWise Automate."""

import logging
from collections.abc import Awaitable, Callable
from textwrap import dedent
from typing import Final

from automate_mcp.libs.automate import AutomateClient, AutomateClientError, AutomateError, Record
from automate_mcp.tools.common import (
    get_automate_client,
    to_json,
    validate_id,
    validate_pagination,
)

logger = logging.getLogger(__name__)

_LIST_ARGS: Final[str] = """
    Args:
        condition: Automate filter condition (optional).
        page_size: Number of results to return (1-1000, default: 25).
        page: Page number, starting at 1 (default: 1).
        order_by: Sort clause, e.g. "Name asc" (optional).
"""

GET_CLIENTS_DESCRIPTION: Final[str] = (
    dedent(
        """
    Search for clients (companies/organisations) in ConnectWise Automate.

    Use condition to filter, e.g. "Name like '%Acme%'".
    """
    ).strip()
    + "\n"
    + dedent(_LIST_ARGS).rstrip()
    + "\n\nReturns:\n    JSON array of client records."
)

GET_CLIENT_DESCRIPTION: Final[str] = dedent(
    """
    Get detailed information about a specific client by its ID.

    Args:
        client_id: The client ID.

    Returns:
        JSON object with the client record.
    """
).strip()

GET_LOCATIONS_DESCRIPTION: Final[str] = (
    dedent(
        """
    Search for locations in ConnectWise Automate.

    Locations are sub-groupings within a client. Use condition to filter,
    e.g. "ClientId=5".
    """
    ).strip()
    + "\n"
    + dedent(_LIST_ARGS).rstrip()
    + "\n\nReturns:\n    JSON array of location records."
)

GET_LOCATION_DESCRIPTION: Final[str] = dedent(
    """
    Get detailed information about a specific location by its ID.

    Args:
        location_id: The location ID.

    Returns:
        JSON object with the location record.
    """
).strip()

GET_GROUPS_DESCRIPTION: Final[str] = (
    dedent(
        """
    Search for agent groups in ConnectWise Automate.

    Groups are used to organise and target computers for scripts and
    monitoring. Use condition to filter, e.g. "Name like '%Servers%'".
    """
    ).strip()
    + "\n"
    + dedent(_LIST_ARGS).rstrip()
    + "\n\nReturns:\n    JSON array of group records."
)

GET_GROUP_DESCRIPTION: Final[str] = dedent(
    """
    Get detailed information about a specific agent group by its ID.

    Args:
        group_id: The group ID.

    Returns:
        JSON object with the group record.
    """
).strip()

ListMethod = Callable[[AutomateClient], Callable[..., Awaitable[list[Record]]]]
DetailMethod = Callable[[AutomateClient], Callable[[int], Awaitable[Record]]]


async def _list_records(
    resource: str,
    method: ListMethod,
    condition: str | None,
    page_size: int,
    page: int,
    order_by: str | None,
) -> str:
    try:
        validate_pagination(page_size, page)

        client = get_automate_client()
        async with client:
            records = await method(client)(
                condition=condition, page_size=page_size, page=page, order_by=order_by
            )
        return to_json(records)

    except ValueError:
        logger.warning("Invalid parameters for listing %s", resource, exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error listing %s", resource)
        raise
    except Exception as exc:
        logger.exception("Unexpected error listing %s", resource)
        raise AutomateClientError(f"Failed to list {resource}") from exc


async def _get_record(resource: str, method: DetailMethod, record_id: int) -> str:
    try:
        validate_id(f"{resource}_id", record_id)

        client = get_automate_client()
        async with client:
            record = await method(client)(record_id)
        return to_json(record)

    except ValueError:
        logger.warning("Invalid parameters for retrieving %s", resource, exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error retrieving %s", resource)
        raise
    except Exception as exc:
        logger.exception("Unexpected error retrieving %s", resource)
        raise AutomateClientError(f"Failed to retrieve {resource} {record_id}") from exc


async def get_clients(
    condition: str | None = None,
    page_size: int = 25,
    page: int = 1,
    order_by: str | None = None,
) -> str:
    """List clients."""
    return await _list_records(
        "clients", lambda c: c.get_clients, condition, page_size, page, order_by
    )


async def get_client(client_id: int) -> str:
    """Get a single client record."""
    return await _get_record("client", lambda c: c.get_client, client_id)


async def get_locations(
    condition: str | None = None,
    page_size: int = 25,
    page: int = 1,
    order_by: str | None = None,
) -> str:
    """List locations."""
    return await _list_records(
        "locations", lambda c: c.get_locations, condition, page_size, page, order_by
    )


async def get_location(location_id: int) -> str:
    """Get a single location record."""
    return await _get_record("location", lambda c: c.get_location, location_id)


async def get_groups(
    condition: str | None = None,
    page_size: int = 25,
    page: int = 1,
    order_by: str | None = None,
) -> str:
    """List agent groups."""
    return await _list_records(
        "groups", lambda c: c.get_groups, condition, page_size, page, order_by
    )


async def get_group(group_id: int) -> str:
    """Get a single agent group record."""
    return await _get_record("group", lambda c: c.get_group, group_id)
