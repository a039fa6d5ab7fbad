"""Test helpers for the Automate client library and tool tests."""

from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

SERVER_URL = "https://automate.example.test"
API_BASE = f"{SERVER_URL}/cwa/api/v1"
TOKEN_URL = f"{API_BASE}/apitoken"
COMPUTERS_URL = f"{API_BASE}/Computers"
CLIENTS_URL = f"{API_BASE}/Clients"


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def automate_timestamp(moment: datetime) -> str:
    """Format ``moment`` the way Automate does: naive, seven fractional digits."""
    return moment.astimezone(timezone.utc).replace(tzinfo=None).isoformat(timespec="microseconds") + "0"


def make_computer(computer_id: int, name: str, **fields: Any) -> dict[str, Any]:
    """Build a raw computer record with a few bulky fields compaction should drop."""
    record: dict[str, Any] = {
        "Id": computer_id,
        "ComputerName": name,
        "Client": {"Id": 1, "Name": "Acme Corp"},
        "Location": {"Id": 1, "Name": "HQ"},
        "Type": "Workstation",
        "OperatingSystemName": "Microsoft Windows 11 Pro x64",
        "Status": "Online",
        "RemoteAgentLastContact": "2024-06-01T11:59:00",
        "Ports": [{"Port": 80}, {"Port": 443}],
        "Irqs": [1, 2, 3],
        "Dmas": [],
    }
    record.update(fields)
    return record


class MockAutomateClientBuilder:
    """Builds AsyncMock-backed stand-ins for AutomateClient used by tool tests."""

    @staticmethod
    def create(**methods: Any) -> MagicMock:
        """Create a client mock usable as an async context manager.

        Each keyword becomes an AsyncMock attribute: an exception instance is
        used as ``side_effect``, anything else as ``return_value``.
        """
        client = MagicMock()
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=None)
        for name, result in methods.items():
            if isinstance(result, BaseException):
                setattr(client, name, AsyncMock(side_effect=result))
            else:
                setattr(client, name, AsyncMock(return_value=result))
        return client
