"""Query parameter encoding for Automate list endpoints.

Conditions are SQL-like predicates (``Status='Offline'``, ``ClientId=5``)
that the server evaluates. This module does not validate them. Two quirks of
the remote grammar shape how callers use it:

* relational comparisons on timestamp fields (``RemoteAgentLastContact < ...``)
  make the server fail, so date filtering is done after retrieval;
* some fields that are returned by the API are not part of the filterable
  schema and are rejected with HTTP 400.
"""

from typing import Final

from pydantic import BaseModel, Field

DEFAULT_PAGE_SIZE: Final = 25
INCLUDED_FIELDS_PARAM: Final = "options.includedFields"


class ListQuery(BaseModel):
    """Condition, pagination, ordering and projection for one list request."""

    condition: str | None = None
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    page: int = Field(default=1, ge=1)
    order_by: str | None = None
    included_fields: tuple[str, ...] | None = None

    def to_params(self) -> list[tuple[str, str]]:
        """Encode the query as ordered parameter pairs for httpx.

        Each projected field becomes its own ``options.includedFields`` entry;
        the API does not understand a single comma-joined value.
        """
        params: list[tuple[str, str]] = [
            ("pageSize", str(self.page_size)),
            ("page", str(self.page)),
        ]
        if self.condition:
            params.append(("condition", self.condition))
        if self.order_by:
            params.append(("orderBy", self.order_by))
        if self.included_fields:
            params.extend((INCLUDED_FIELDS_PARAM, field) for field in self.included_fields)
        return params


def quote_condition_value(value: str) -> str:
    """Return ``value`` as a single-quoted condition literal."""
    return "'" + value.replace("'", "''") + "'"


def and_conditions(*parts: str | None) -> str | None:
    """Join the non-empty parts with ``AND``; None when nothing is left."""
    present = [part for part in parts if part]
    if not present:
        return None
    return " AND ".join(present)
