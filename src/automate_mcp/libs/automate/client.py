"""Client for the ConnectWise Automate REST API.

``AutomateClient`` adds the resource accessors (computers, clients,
locations, groups, installed software) and the fleet analytics operations on
top of the authenticated ``AutomateGateway``.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Final

from automate_mcp.libs.automate.analytics import (
    chunked,
    contact_cutoff,
    dedupe_names,
    last_contact_before,
    lookup_from_record,
    pick_exact_match,
    summarize_computers,
    summarize_lookups,
)
from automate_mcp.libs.automate.compaction import COMPACT_FIELDS, SUMMARY_FIELDS, compact_record
from automate_mcp.libs.automate.exceptions import AutomateError
from automate_mcp.libs.automate.gateway import AutomateGateway
from automate_mcp.libs.automate.models import (
    BatchCheckResult,
    ClientComputers,
    ClientNotFound,
    ClientRef,
    ClientResolution,
    ComputerLookup,
    ComputersSummary,
    MultipleClientsFound,
    Record,
)
from automate_mcp.libs.automate.query import (
    DEFAULT_PAGE_SIZE,
    ListQuery,
    and_conditions,
    quote_condition_value,
)

logger = logging.getLogger(__name__)

COMPUTERS_PATH: Final = "/Computers"
CLIENTS_PATH: Final = "/Clients"
LOCATIONS_PATH: Final = "/Locations"
GROUPS_PATH: Final = "/Groups"

LAST_CONTACT_ASC: Final = "RemoteAgentLastContact asc"
OFFLINE_FETCH_LIMIT: Final = 1000
STALE_FETCH_LIMIT: Final = 2000
DEFAULT_RESULT_LIMIT: Final = 100
CLIENT_MATCH_LIMIT: Final = 20
MAX_BATCH_NAMES: Final = 50
BATCH_GROUP_SIZE: Final = 10


class AutomateClient(AutomateGateway):
    """Read-only client for ConnectWise Automate inventory data.

    Use as an async context manager:

        async with AutomateClient(config, token_manager) as client:
            summary = await client.get_computers_summary()
    """

    async def __aenter__(self) -> "AutomateClient":
        """Enter async context manager."""
        await super().__aenter__()
        return self

    # Computers

    async def get_computers(
        self,
        condition: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
        order_by: str | None = None,
        compact: bool = True,
    ) -> list[Record]:
        """List computers (managed agents).

        Args:
            condition: Automate condition, e.g. ``"ClientId=5"`` or ``"Type='Server'"``.
            page_size: Records per page.
            page: 1-based page number.
            order_by: Sort clause, e.g. ``"ComputerName asc"``.
            compact: Request and keep only the compact field set.

        Returns:
            The computer records of the requested page.
        """
        records = await self.get_list(
            COMPUTERS_PATH,
            ListQuery(
                condition=condition,
                page_size=page_size,
                page=page,
                order_by=order_by,
                included_fields=COMPACT_FIELDS if compact else None,
            ),
        )
        if compact:
            return [compact_record(record) for record in records]
        return records

    async def get_computer(self, computer_id: int) -> Record:
        """Get the full record of one computer."""
        return await self.get_detail(f"{COMPUTERS_PATH}/{computer_id}")

    async def get_computer_software(
        self,
        computer_id: int,
        condition: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
        order_by: str | None = None,
    ) -> list[Record]:
        """List the software installed on one computer."""
        return await self.get_list(
            f"{COMPUTERS_PATH}/{computer_id}/Software",
            ListQuery(condition=condition, page_size=page_size, page=page, order_by=order_by),
        )

    # Clients, locations and groups

    async def get_clients(
        self,
        condition: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
        order_by: str | None = None,
    ) -> list[Record]:
        """List clients (companies)."""
        return await self.get_list(
            CLIENTS_PATH,
            ListQuery(condition=condition, page_size=page_size, page=page, order_by=order_by),
        )

    async def get_client(self, client_id: int) -> Record:
        """Get the full record of one client."""
        return await self.get_detail(f"{CLIENTS_PATH}/{client_id}")

    async def get_locations(
        self,
        condition: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
        order_by: str | None = None,
    ) -> list[Record]:
        """List locations, the sub-groupings of a client."""
        return await self.get_list(
            LOCATIONS_PATH,
            ListQuery(condition=condition, page_size=page_size, page=page, order_by=order_by),
        )

    async def get_location(self, location_id: int) -> Record:
        """Get the full record of one location."""
        return await self.get_detail(f"{LOCATIONS_PATH}/{location_id}")

    async def get_groups(
        self,
        condition: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
        order_by: str | None = None,
    ) -> list[Record]:
        """List agent groups."""
        return await self.get_list(
            GROUPS_PATH,
            ListQuery(condition=condition, page_size=page_size, page=page, order_by=order_by),
        )

    async def get_group(self, group_id: int) -> Record:
        """Get the full record of one agent group."""
        return await self.get_detail(f"{GROUPS_PATH}/{group_id}")

    # Analytics

    async def get_computers_summary(self, client_id: int | None = None) -> ComputersSummary:
        """Aggregate every computer into per-client, per-OS and online counts.

        All pages are fetched with a three-field projection. The result is
        recomputed on every call.
        """
        condition = f"ClientId={client_id}" if client_id is not None else None
        records = await self.fetch_all_pages(COMPUTERS_PATH, condition, SUMMARY_FIELDS)
        summary = summarize_computers(records, self.config.online_status_value)
        logger.info(
            "Computed computers summary",
            extra={
                "client_id": client_id,
                "total_count": summary.total_count,
                "online": summary.online,
            },
        )
        return summary

    async def _offline_since(
        self,
        days: float,
        condition: str | None,
        fetch_limit: int,
        limit: int,
    ) -> list[Record]:
        # The filter grammar cannot compare timestamps, so the server only
        # filters on status and the age check happens here.
        cutoff = contact_cutoff(self.token_manager.clock(), days)
        candidates = await self.get_list(
            COMPUTERS_PATH,
            ListQuery(
                condition=condition,
                page_size=fetch_limit,
                page=1,
                order_by=LAST_CONTACT_ASC,
                included_fields=COMPACT_FIELDS,
            ),
        )
        matches = last_contact_before(candidates, cutoff)[:limit]
        logger.debug(
            "Filtered offline computers by last contact",
            extra={
                "candidates": len(candidates),
                "returned": len(matches),
                "cutoff": cutoff.isoformat(),
            },
        )
        return [compact_record(record) for record in matches]

    def _offline_condition(self, client_id: int | None) -> str | None:
        return and_conditions(
            f"Status={quote_condition_value(self.config.offline_status_value)}",
            f"ClientId={client_id}" if client_id is not None else None,
        )

    async def get_offline_computers(
        self,
        days_offline: float = 1,
        client_id: int | None = None,
        limit: int = DEFAULT_RESULT_LIMIT,
    ) -> list[Record]:
        """Computers that are offline and last checked in over ``days_offline`` days ago.

        At most 1000 offline computers are considered, oldest contact first.
        """
        return await self._offline_since(
            days_offline, self._offline_condition(client_id), OFFLINE_FETCH_LIMIT, limit
        )

    async def get_stale_computers(
        self,
        days_old: float = 30,
        client_id: int | None = None,
        type_filter: str | None = None,
        limit: int = DEFAULT_RESULT_LIMIT,
    ) -> list[Record]:
        """Offline computers whose agent has not checked in for ``days_old`` days.

        Like ``get_offline_computers`` with a longer horizon, a 2000 record
        fetch ceiling and an optional ``Type`` filter ("Workstation" or "Server").
        """
        condition = and_conditions(
            self._offline_condition(client_id),
            f"Type={quote_condition_value(type_filter)}" if type_filter else None,
        )
        return await self._offline_since(days_old, condition, STALE_FETCH_LIMIT, limit)

    async def get_computers_by_client(
        self,
        client_name: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
        order_by: str | None = None,
    ) -> ClientResolution:
        """Resolve a partial client name and list that client's computers.

        Returns:
            ``ClientNotFound`` when nothing matches, ``MultipleClientsFound``
            listing every match when the name is ambiguous, otherwise
            ``ClientComputers`` with the compact computer records.
        """
        pattern = quote_condition_value(f"%{client_name}%")
        clients = await self.get_clients(f"Name like {pattern}", page_size=CLIENT_MATCH_LIMIT)

        if not clients:
            logger.info("No client matched name", extra={"client_name": client_name})
            return ClientNotFound(error=f'No clients found matching "{client_name}"')

        matches = [ClientRef.model_validate(client) for client in clients]
        if len(matches) > 1:
            logger.info(
                "Client name is ambiguous",
                extra={"client_name": client_name, "match_count": len(matches)},
            )
            return MultipleClientsFound(
                multiple_clients_found=matches,
                message=(
                    f'Found {len(matches)} clients matching "{client_name}". '
                    "Use a more specific name or pass a ClientId condition to get_computers."
                ),
            )

        client = matches[0]
        computers = await self.get_computers(
            f"ClientId={client.id}", page_size=page_size, page=page, order_by=order_by
        )
        return ClientComputers(
            client=client, total_returned=len(computers), computers=computers
        )

    async def _lookup_computer(self, name: str) -> ComputerLookup:
        try:
            records = await self.get_computers(
                f"ComputerName={quote_condition_value(name)}", page_size=1
            )
        except AutomateError as e:
            logger.warning(
                "Computer lookup failed", extra={"computer_name": name, "error": str(e)}
            )
            return ComputerLookup(name=name, found=False, error=str(e))
        return lookup_from_record(name, pick_exact_match(name, records))

    async def check_computers_exist(self, names: Sequence[str]) -> BatchCheckResult:
        """Check which computer names exist in Automate.

        Names are looked up in groups of 10 concurrent requests; a group
        finishes completely before the next one starts. A failed lookup is
        reported as not found with its error instead of failing the batch.

        Raises:
            ValueError: If more than 50 names are given.
        """
        if len(names) > MAX_BATCH_NAMES:
            raise ValueError(f"At most {MAX_BATCH_NAMES} computer names can be checked at once")

        unique = dedupe_names(names)
        results: list[ComputerLookup] = []
        for group in chunked(unique, BATCH_GROUP_SIZE):
            results.extend(await asyncio.gather(*(self._lookup_computer(n) for n in group)))

        summary = summarize_lookups(results, self.config.online_status_value)
        logger.info(
            "Checked computer names",
            extra={"total": summary.total, "found": summary.found, "not_found": summary.not_found},
        )
        return summary
