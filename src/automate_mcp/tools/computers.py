"""Tools for browsing computers (managed agents) in ConnectWise Automate."""

import logging
from textwrap import dedent
from typing import Final

from automate_mcp.libs.automate import AutomateClientError, AutomateError
from automate_mcp.tools.common import (
    get_automate_client,
    to_json,
    validate_id,
    validate_pagination,
)

logger = logging.getLogger(__name__)

GET_COMPUTERS_DESCRIPTION: Final[str] = dedent(
    """
    Search for computers (managed agents) in ConnectWise Automate.

    Use the condition parameter to filter results. Conditions use Automate's
    SQL-like syntax, for example:
        - "ClientId=5"
        - "OperatingSystemName like '%Windows 10%'"
        - "ComputerName='DESKTOP-ABC123'"
        - "Type='Server'"
        - "Status='Offline'"

    Date comparisons (e.g. "RemoteAgentLastContact < '2024-01-01'") are rejected
    by the server; use get_offline_computers or get_stale_computers instead.

    Args:
        condition: Automate filter condition (optional).
        page_size: Number of results to return (1-1000, default: 25).
        page: Page number, starting at 1 (default: 1).
        order_by: Sort clause, e.g. "ComputerName asc" (optional).
        compact: Return compact records (default: true). Set to false to include
                 every field, including the large port/IRQ/DMA arrays.

    Returns:
        JSON array of computer records.

    Raises:
        ValueError: If parameters are out of range.
        AutomateAuthenticationError: If authentication fails.
        AutomateNetworkError: If network operation fails.
        AutomateAPIError: If the API returns an error (e.g. an invalid condition).
    """
).strip()

GET_COMPUTER_DESCRIPTION: Final[str] = dedent(
    """
    Get detailed information about a specific computer/agent by its ID.

    Returns the full, uncompacted record with every field Automate reports.

    Args:
        computer_id: The computer ID.

    Returns:
        JSON object with the computer record.

    Raises:
        ValueError: If computer_id is not positive.
        AutomateNotFoundError: If no computer has this ID.
        AutomateAuthenticationError: If authentication fails.
        AutomateAPIError: If the API returns an error.
    """
).strip()

GET_COMPUTERS_BY_CLIENT_DESCRIPTION: Final[str] = dedent(
    """
    Search for computers belonging to a client by client name (partial match).

    Convenience wrapper: no need to look up a client ID first. If several
    clients match the name, the list of matching clients is returned instead of
    computers so that you can ask for a more specific name.

    Args:
        client_name: Client name to search for (partial match, e.g. "Northrop").
        page_size: Number of computers to return (1-1000, default: 25).
        page: Page number, starting at 1 (default: 1).
        order_by: Sort clause, e.g. "ComputerName asc" (optional).

    Returns:
        JSON object. One of:
            - {"client": {...}, "total_returned": n, "computers": [...]}
            - {"multiple_clients_found": [{"id": .., "name": ..}], "message": "..."}
            - {"error": "No clients found ...", "computers": []}

    Raises:
        ValueError: If client_name is empty or parameters are out of range.
        AutomateAuthenticationError: If authentication fails.
        AutomateAPIError: If the API returns an error.
    """
).strip()

GET_COMPUTER_SOFTWARE_DESCRIPTION: Final[str] = dedent(
    """
    List the software installed on a specific computer.

    Args:
        computer_id: The computer ID.
        condition: Automate filter condition (optional), e.g. "Name like '%Office%'".
        page_size: Number of results to return (1-1000, default: 25).
        page: Page number, starting at 1 (default: 1).
        order_by: Sort clause, e.g. "Name asc" (optional).

    Returns:
        JSON array of installed software records.

    Raises:
        ValueError: If parameters are out of range.
        AutomateNotFoundError: If no computer has this ID.
        AutomateAuthenticationError: If authentication fails.
        AutomateAPIError: If the API returns an error.
    """
).strip()


async def get_computers(
    condition: str | None = None,
    page_size: int = 25,
    page: int = 1,
    order_by: str | None = None,
    compact: bool = True,
) -> str:
    """List computers with optional condition, paging, ordering and compaction.

    Returns:
        JSON array of computer records.
    """
    try:
        validate_pagination(page_size, page)

        client = get_automate_client()
        async with client:
            computers = await client.get_computers(
                condition=condition,
                page_size=page_size,
                page=page,
                order_by=order_by,
                compact=compact,
            )
        return to_json(computers)

    except ValueError:
        logger.warning("Invalid parameters for get_computers", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error listing computers")
        raise
    except Exception as exc:
        logger.exception("Unexpected error listing computers")
        raise AutomateClientError("Failed to list computers") from exc


async def get_computer(computer_id: int) -> str:
    """Get the full record of a single computer.

    Returns:
        JSON object with the computer record.
    """
    try:
        validate_id("computer_id", computer_id)

        client = get_automate_client()
        async with client:
            computer = await client.get_computer(computer_id)
        return to_json(computer)

    except ValueError:
        logger.warning("Invalid parameters for get_computer", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error retrieving computer")
        raise
    except Exception as exc:
        logger.exception("Unexpected error retrieving computer")
        raise AutomateClientError(f"Failed to retrieve computer {computer_id}") from exc


async def get_computers_by_client(
    client_name: str,
    page_size: int = 25,
    page: int = 1,
    order_by: str | None = None,
) -> str:
    """Resolve a client by partial name and list its computers.

    Returns:
        JSON object describing the match outcome.
    """
    try:
        if not client_name or not client_name.strip():
            raise ValueError("client_name cannot be empty")
        validate_pagination(page_size, page)

        client = get_automate_client()
        async with client:
            result = await client.get_computers_by_client(
                client_name.strip(), page_size=page_size, page=page, order_by=order_by
            )
        return result.model_dump_json(indent=2)

    except ValueError:
        logger.warning("Invalid parameters for get_computers_by_client", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error listing computers by client")
        raise
    except Exception as exc:
        logger.exception("Unexpected error listing computers by client")
        raise AutomateClientError("Failed to list computers by client") from exc


async def get_computer_software(
    computer_id: int,
    condition: str | None = None,
    page_size: int = 25,
    page: int = 1,
    order_by: str | None = None,
) -> str:
    """List software installed on a computer.

    Returns:
        JSON array of software records.
    """
    try:
        validate_id("computer_id", computer_id)
        validate_pagination(page_size, page)

        client = get_automate_client()
        async with client:
            software = await client.get_computer_software(
                computer_id,
                condition=condition,
                page_size=page_size,
                page=page,
                order_by=order_by,
            )
        return to_json(software)

    except ValueError:
        logger.warning("Invalid parameters for get_computer_software", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error listing computer software")
        raise
    except Exception as exc:
        logger.exception("Unexpected error listing computer software")
        raise AutomateClientError(f"Failed to list software for computer {computer_id}") from exc
