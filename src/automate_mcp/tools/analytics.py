"""Fleet analytics tools: summaries, offline and stale agents, batch existence checks."""

import logging
from textwrap import dedent
from typing import Final

from automate_mcp.libs.automate import AutomateClientError, AutomateError
from automate_mcp.tools.common import (
    MAX_PAGE_SIZE,
    get_automate_client,
    to_json,
    validate_optional_id,
)

logger = logging.getLogger(__name__)

MAX_BATCH_NAMES: Final = 50
TYPE_FILTERS: Final = ("Workstation", "Server")

GET_COMPUTERS_SUMMARY_DESCRIPTION: Final[str] = dedent(
    """
    Get a summary of all computers: total count, online/offline split and
    breakdowns by client and by operating system.

    This is far more efficient than listing computers and counting them
    yourself. Operating systems are grouped into families such as
    "Windows 11", "Windows Server 2019" or "macOS".

    Args:
        client_id: Limit the summary to one client (optional).

    Returns:
        JSON object with total_count, online, offline, by_client and by_os.

    Raises:
        ValueError: If client_id is not positive.
        AutomateAuthenticationError: If authentication fails.
        AutomateAPIError: If the API returns an error.
    """
).strip()

GET_OFFLINE_COMPUTERS_DESCRIPTION: Final[str] = dedent(
    """
    Find computers that are offline and have not checked in for a number of days.

    Automate conditions cannot compare dates, so offline computers are
    fetched (oldest contact first, at most 1000) and filtered by their last
    contact time.

    Args:
        days_offline: Minimum days since last contact (default: 1).
        client_id: Limit to one client (optional).
        limit: Maximum number of computers to return (1-1000, default: 100).

    Returns:
        JSON array of compact computer records, oldest contact first.

    Raises:
        ValueError: If parameters are out of range.
        AutomateAuthenticationError: If authentication fails.
        AutomateAPIError: If the API returns an error.
    """
).strip()

GET_STALE_COMPUTERS_DESCRIPTION: Final[str] = dedent(
    """
    Find stale agents: offline computers that have not checked in for a long
    time and may need cleanup or investigation.

    Args:
        days_old: Minimum days since last contact (default: 30).
        client_id: Limit to one client (optional).
        type_filter: "Workstation" or "Server" (optional).
        limit: Maximum number of computers to return (1-1000, default: 100).

    Returns:
        JSON array of compact computer records, oldest contact first.

    Raises:
        ValueError: If parameters are out of range or type_filter is unknown.
        AutomateAuthenticationError: If authentication fails.
        AutomateAPIError: If the API returns an error.
    """
).strip()

CHECK_COMPUTERS_EXIST_DESCRIPTION: Final[str] = dedent(
    """
    Check whether a list of computer names exist in Automate.

    Useful for reconciling an inventory list (e.g. from a CMDB or another
    security tool) against the agents Automate knows about. Names are matched
    exactly, case-insensitively; duplicates are checked once.

    Args:
        computer_names: Computer names to check (1-50).

    Returns:
        JSON object with total, found, not_found, online, offline and a
        per-name results list (id, status, last contact, client, type, os).

    Raises:
        ValueError: If the list is empty or has more than 50 names.
        AutomateAuthenticationError: If authentication fails.
    """
).strip()


def _validate_days(name: str, value: float) -> None:
    # NaN fails this comparison too
    if not value >= 0:
        raise ValueError(f"{name} must be 0 or greater")


def _validate_limit(limit: int) -> None:
    if limit < 1 or limit > MAX_PAGE_SIZE:
        raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")


async def get_computers_summary(client_id: int | None = None) -> str:
    """Summarize the fleet, optionally for a single client.

    Returns:
        JSON object with the summary counts.
    """
    try:
        validate_optional_id("client_id", client_id)

        client = get_automate_client()
        async with client:
            summary = await client.get_computers_summary(client_id)
        return summary.model_dump_json(indent=2)

    except ValueError:
        logger.warning("Invalid parameters for get_computers_summary", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error summarizing computers")
        raise
    except Exception as exc:
        logger.exception("Unexpected error summarizing computers")
        raise AutomateClientError("Failed to summarize computers") from exc


async def get_offline_computers(
    days_offline: float = 1,
    client_id: int | None = None,
    limit: int = 100,
) -> str:
    """List computers offline for at least ``days_offline`` days."""
    try:
        _validate_days("days_offline", days_offline)
        validate_optional_id("client_id", client_id)
        _validate_limit(limit)

        client = get_automate_client()
        async with client:
            computers = await client.get_offline_computers(
                days_offline=days_offline, client_id=client_id, limit=limit
            )
        return to_json(computers)

    except ValueError:
        logger.warning("Invalid parameters for get_offline_computers", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error listing offline computers")
        raise
    except Exception as exc:
        logger.exception("Unexpected error listing offline computers")
        raise AutomateClientError("Failed to list offline computers") from exc


async def get_stale_computers(
    days_old: float = 30,
    client_id: int | None = None,
    type_filter: str | None = None,
    limit: int = 100,
) -> str:
    """List offline computers that have not checked in for ``days_old`` days."""
    try:
        _validate_days("days_old", days_old)
        validate_optional_id("client_id", client_id)
        _validate_limit(limit)
        if type_filter is not None and type_filter not in TYPE_FILTERS:
            raise ValueError(f"type_filter must be one of: {', '.join(TYPE_FILTERS)}")

        client = get_automate_client()
        async with client:
            computers = await client.get_stale_computers(
                days_old=days_old, client_id=client_id, type_filter=type_filter, limit=limit
            )
        return to_json(computers)

    except ValueError:
        logger.warning("Invalid parameters for get_stale_computers", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error listing stale computers")
        raise
    except Exception as exc:
        logger.exception("Unexpected error listing stale computers")
        raise AutomateClientError("Failed to list stale computers") from exc


async def check_computers_exist(computer_names: list[str]) -> str:
    """Report which of the given computer names are known to Automate."""
    try:
        if not computer_names:
            raise ValueError("computer_names cannot be empty")
        if len(computer_names) > MAX_BATCH_NAMES:
            raise ValueError(f"At most {MAX_BATCH_NAMES} computer names can be checked at once")
        if not any(name and name.strip() for name in computer_names):
            raise ValueError("computer_names must contain at least one non-empty name")

        client = get_automate_client()
        async with client:
            result = await client.check_computers_exist(computer_names)
        return result.model_dump_json(indent=2)

    except ValueError:
        logger.warning("Invalid parameters for check_computers_exist", exc_info=True)
        raise
    except AutomateError:
        logger.exception("Automate client error checking computers")
        raise
    except Exception as exc:
        logger.exception("Unexpected error checking computers")
        raise AutomateClientError("Failed to check computers") from exc
