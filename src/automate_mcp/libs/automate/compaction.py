"""Field allow-lists used to shrink computer records.

A full computer record has around sixty fields, including port, IRQ and DMA
arrays that are useless for fleet questions. List operations ask the server
to project records onto ``COMPACT_FIELDS`` and then filter client-side as
well, because the projection option is not honoured by every server version.
Single-record detail fetches are never compacted.
"""

from collections.abc import Collection, Mapping
from typing import Final

from pydantic import JsonValue

COMPACT_FIELDS: Final[tuple[str, ...]] = (
    "Id",
    "ComputerName",
    "Client",
    "Location",
    "Type",
    "OperatingSystemName",
    "Status",
    "RemoteAgentLastContact",
    "LastUserName",
    "LoggedInUsers",
    "LocalIPAddress",
    "Comment",
    "IsRebootNeeded",
    "IsVirtualMachine",
    "IsMaintenanceModeEnabled",
    "TotalMemory",
    "FreeMemory",
    "CpuUsage",
    "LastHeartbeat",
    "SerialNumber",
    "AssetTag",
    "VirusScanner",
    "IsHeartbeatRunning",
)

# The summary only reads these three
SUMMARY_FIELDS: Final[tuple[str, ...]] = ("Client", "Status", "OperatingSystemName")


def compact_record(
    record: Mapping[str, JsonValue], fields: Collection[str] = COMPACT_FIELDS
) -> dict[str, JsonValue]:
    """Return a copy of ``record`` restricted to the allow-listed ``fields``."""
    return {key: value for key, value in record.items() if key in fields}
