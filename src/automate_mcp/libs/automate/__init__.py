"""ConnectWise Automate API client library."""

from automate_mcp.libs.automate.auth import TokenManager
from automate_mcp.libs.automate.client import AutomateClient
from automate_mcp.libs.automate.compaction import COMPACT_FIELDS, SUMMARY_FIELDS, compact_record
from automate_mcp.libs.automate.config import AutomateConfig
from automate_mcp.libs.automate.exceptions import (
    AutomateAPIError,
    AutomateAuthenticationError,
    AutomateClientError,
    AutomateConfigError,
    AutomateError,
    AutomateNetworkError,
    AutomateNotFoundError,
    AutomateTokenRejectedError,
)
from automate_mcp.libs.automate.models import (
    BatchCheckResult,
    ClientComputers,
    ClientNotFound,
    ClientRef,
    ComputerLookup,
    ComputersSummary,
    CredentialSession,
    MultipleClientsFound,
    Record,
)
from automate_mcp.libs.automate.query import ListQuery

__all__ = [
    "COMPACT_FIELDS",
    "SUMMARY_FIELDS",
    "AutomateAPIError",
    "AutomateAuthenticationError",
    "AutomateClient",
    "AutomateClientError",
    "AutomateConfig",
    "AutomateConfigError",
    "AutomateError",
    "AutomateNetworkError",
    "AutomateNotFoundError",
    "AutomateTokenRejectedError",
    "BatchCheckResult",
    "ClientComputers",
    "ClientNotFound",
    "ClientRef",
    "ComputerLookup",
    "ComputersSummary",
    "CredentialSession",
    "ListQuery",
    "MultipleClientsFound",
    "Record",
    "TokenManager",
    "compact_record",
]
