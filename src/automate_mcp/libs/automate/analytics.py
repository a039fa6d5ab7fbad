"""Pure helpers behind the fleet analytics operations.

Nothing in this module performs I/O. ``AutomateClient`` fetches the records
and uses these functions to normalize operating system names, filter by last
contact time, aggregate counts and shape batch lookup results.
"""

import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Final, TypeVar

from pydantic import JsonValue

from automate_mcp.libs.automate.models import (
    BatchCheckResult,
    ComputerLookup,
    ComputersSummary,
    Record,
)

T = TypeVar("T")

UNKNOWN_OS: Final = "Unknown"
EARLIEST_CUTOFF: Final = datetime.min.replace(tzinfo=timezone.utc)

# Checked in order; more specific patterns first
_OS_PATTERNS: Final[tuple[tuple[tuple[str, ...], str], ...]] = (
    (("windows 11",), "Windows 11"),
    (("windows 10",), "Windows 10"),
    (("windows server 2022",), "Windows Server 2022"),
    (("windows server 2019",), "Windows Server 2019"),
    (("windows server 2016",), "Windows Server 2016"),
    (("windows server 2012",), "Windows Server 2012"),
    (("windows server",), "Windows Server (other)"),
    (("windows",), "Windows (other)"),
    (("mac", "darwin"), "macOS"),
    (("linux", "ubuntu", "debian", "centos", "rhel"), "Linux"),
)

_FRACTION_RE = re.compile(r"\.(\d+)")


def normalize_os(raw: str | None) -> str:
    """Map a raw OperatingSystemName to a canonical label.

    Matching is a case-insensitive substring test. Empty input maps to
    "Unknown"; an unrecognized name is returned unchanged.

    Examples:
        >>> normalize_os("Microsoft Windows Server 2019 Standard")
        'Windows Server 2019'
        >>> normalize_os("Ubuntu 22.04.1 LTS")
        'Linux'
    """
    if not raw:
        return UNKNOWN_OS
    lowered = raw.lower()
    for needles, label in _OS_PATTERNS:
        if any(needle in lowered for needle in needles):
            return label
    return raw


def parse_timestamp(value: JsonValue) -> datetime | None:
    """Parse an Automate timestamp into an aware datetime.

    Automate emits ISO 8601 strings, sometimes with seven fractional digits
    and usually without an offset. Naive values are taken as UTC. Returns
    None for anything that is not a parseable string.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if text[-1] in "Zz":
        text = text[:-1] + "+00:00"
    # fromisoformat wants exactly six fractional digits on older interpreters
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def contact_cutoff(now: datetime, days: float) -> datetime:
    """Return the moment ``days`` days before ``now``.

    Horizons reaching past the first representable datetime are clamped to
    it, so nothing is old enough to match.
    """
    try:
        return now - timedelta(days=days)
    except OverflowError:
        return EARLIEST_CUTOFF


def last_contact_before(records: Iterable[Record], cutoff: datetime) -> list[Record]:
    """Keep records whose RemoteAgentLastContact is strictly before ``cutoff``.

    Records without a parseable last-contact time are dropped.
    """
    kept = []
    for record in records:
        last_contact = parse_timestamp(record.get("RemoteAgentLastContact"))
        if last_contact is not None and last_contact < cutoff:
            kept.append(record)
    return kept


def _nested_name(value: JsonValue) -> str | None:
    if isinstance(value, Mapping):
        name = value.get("Name")
        if isinstance(name, str) and name:
            return name
    return None


def client_label(record: Mapping[str, JsonValue]) -> str:
    """Name of the client a computer belongs to, with fallbacks."""
    name = _nested_name(record.get("Client"))
    if name:
        return name
    client_name = record.get("ClientName")
    if isinstance(client_name, str) and client_name:
        return client_name
    client_id = record.get("ClientId")
    if client_id is None:
        client = record.get("Client")
        if isinstance(client, Mapping):
            client_id = client.get("Id")
    return f"Client {client_id if client_id is not None else 'Unknown'}"


def status_text(record: Mapping[str, JsonValue]) -> str | None:
    """The Status field as text; some servers send a numeric code."""
    status = record.get("Status")
    if status is None:
        return None
    return str(status)


def summarize_computers(records: Iterable[Record], online_status: str) -> ComputersSummary:
    """Count computers per client, per normalized OS and by online state."""
    summary = ComputersSummary()
    for record in records:
        summary.total_count += 1

        client = client_label(record)
        summary.by_client[client] = summary.by_client.get(client, 0) + 1

        os_name = record.get("OperatingSystemName")
        os_label = normalize_os(os_name if isinstance(os_name, str) else None)
        summary.by_os[os_label] = summary.by_os.get(os_label, 0) + 1

        if status_text(record) == online_status:
            summary.online += 1
        else:
            summary.offline += 1
    return summary


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of ``items`` holding at most ``size`` elements."""
    if size < 1:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield items[start : start + size]


def dedupe_names(names: Iterable[str]) -> list[str]:
    """Strip names, drop blanks and remove case-insensitive duplicates.

    The first spelling of each name wins and input order is preserved.
    """
    seen: set[str] = set()
    unique = []
    for name in names:
        stripped = name.strip()
        key = stripped.casefold()
        if not stripped or key in seen:
            continue
        seen.add(key)
        unique.append(stripped)
    return unique


def pick_exact_match(name: str, records: Sequence[Record]) -> Record | None:
    """Return the record whose ComputerName equals ``name`` ignoring case."""
    wanted = name.casefold()
    for record in records:
        computer_name = record.get("ComputerName")
        if isinstance(computer_name, str) and computer_name.casefold() == wanted:
            return record
    return None


def lookup_from_record(name: str, record: Record | None) -> ComputerLookup:
    """Build the lookup entry for ``name`` from the matching record, if any."""
    if record is None:
        return ComputerLookup(name=name, found=False)

    record_id = record.get("Id")
    last_contact = record.get("RemoteAgentLastContact")
    computer_type = record.get("Type")
    os_name = record.get("OperatingSystemName")
    return ComputerLookup(
        name=name,
        found=True,
        id=record_id if isinstance(record_id, int) else None,
        status=status_text(record),
        last_contact=last_contact if isinstance(last_contact, str) else None,
        client=_nested_name(record.get("Client")),
        type=computer_type if isinstance(computer_type, str) else None,
        os=os_name if isinstance(os_name, str) else None,
    )


def summarize_lookups(results: Sequence[ComputerLookup], online_status: str) -> BatchCheckResult:
    """Aggregate per-name lookups into the batch check summary."""
    found = [result for result in results if result.found]
    online = sum(1 for result in found if result.status == online_status)
    return BatchCheckResult(
        total=len(results),
        found=len(found),
        not_found=len(results) - len(found),
        online=online,
        offline=len(found) - online,
        results=list(results),
    )
