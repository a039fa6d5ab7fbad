"""Pydantic models for ConnectWise Automate requests and derived results.

Raw Automate records (computers carry around sixty fields) are kept as plain
JSON dictionaries; the models here describe what this package builds on top
of them.
"""

from datetime import datetime
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field

from automate_mcp.type_defs import JsonDict

Record: TypeAlias = JsonDict


class CredentialSession(BaseModel):
    """A bearer token and the moment it stops being usable."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        """Return True while ``now`` is strictly before the recorded expiry."""
        return now < self.expires_at


class ClientRef(BaseModel):
    """Identity of an Automate client (company)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = Field(None, alias="Id")
    name: str | None = Field(None, alias="Name")


class ComputersSummary(BaseModel):
    """Aggregate counts over a set of computers."""

    total_count: int = 0
    online: int = 0
    offline: int = 0
    by_client: dict[str, int] = Field(default_factory=dict)
    by_os: dict[str, int] = Field(default_factory=dict)


class ClientNotFound(BaseModel):
    """No client matched the requested name."""

    error: str
    computers: list[Record] = Field(default_factory=list)


class MultipleClientsFound(BaseModel):
    """Several clients matched; the caller has to pick one."""

    multiple_clients_found: list[ClientRef]
    message: str


class ClientComputers(BaseModel):
    """Computers of the single client that matched the requested name."""

    client: ClientRef
    total_returned: int
    computers: list[Record]


ClientResolution: TypeAlias = ClientNotFound | MultipleClientsFound | ClientComputers


class ComputerLookup(BaseModel):
    """Outcome of looking up one computer name."""

    name: str
    found: bool
    id: int | None = None
    status: str | None = None
    last_contact: str | None = None
    client: str | None = None
    type: str | None = None
    os: str | None = None
    error: str | None = None


class BatchCheckResult(BaseModel):
    """Summary of a batch existence check."""

    total: int
    found: int
    not_found: int
    online: int
    offline: int
    results: list[ComputerLookup]
