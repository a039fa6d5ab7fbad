"""Tests for the pure analytics helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from automate_mcp.libs.automate.analytics import (
    EARLIEST_CUTOFF,
    chunked,
    client_label,
    contact_cutoff,
    dedupe_names,
    last_contact_before,
    lookup_from_record,
    normalize_os,
    parse_timestamp,
    pick_exact_match,
    summarize_computers,
    summarize_lookups,
)
from automate_mcp.libs.automate.models import ComputerLookup


class TestNormalizeOs:
    """Test operating system family mapping."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Microsoft Windows 11 Pro x64", "Windows 11"),
            ("Microsoft Windows 10 Enterprise x64", "Windows 10"),
            ("Microsoft Windows Server 2022 Datacenter", "Windows Server 2022"),
            ("Microsoft Windows Server 2019 Standard", "Windows Server 2019"),
            ("Microsoft Windows Server 2016 Standard", "Windows Server 2016"),
            ("Microsoft Windows Server 2012 R2 Standard", "Windows Server 2012"),
            ("Microsoft Windows Server 2008 R2", "Windows Server (other)"),
            ("Microsoft Windows 7 Professional", "Windows (other)"),
            ("macOS 14.2 Sonoma", "macOS"),
            ("Darwin 23.1.0", "macOS"),
            ("Ubuntu 22.04.3 LTS", "Linux"),
            ("CentOS Linux 7", "Linux"),
            ("Red Hat Enterprise Linux (RHEL) 9", "Linux"),
            ("FreeBSD 13", "FreeBSD 13"),
        ],
    )
    def test_families(self, raw: str, expected: str) -> None:
        """Test representative operating system names."""
        assert normalize_os(raw) == expected

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_is_unknown(self, raw: str | None) -> None:
        """Test that missing names map to Unknown."""
        assert normalize_os(raw) == "Unknown"

    def test_case_insensitive(self) -> None:
        """Test that matching ignores case."""
        assert normalize_os("WINDOWS 11 HOME") == "Windows 11"


class TestParseTimestamp:
    """Test Automate timestamp parsing."""

    def test_naive_seven_digit_fraction(self) -> None:
        """Test the format Automate usually sends."""
        parsed = parse_timestamp("2024-05-30T08:15:42.1234567")
        assert parsed == datetime(2024, 5, 30, 8, 15, 42, 123456, tzinfo=timezone.utc)

    def test_zulu_suffix(self) -> None:
        """Test a trailing Z."""
        assert parse_timestamp("2024-05-30T08:15:42Z") == datetime(
            2024, 5, 30, 8, 15, 42, tzinfo=timezone.utc
        )

    def test_explicit_offset(self) -> None:
        """Test that an explicit offset is honored."""
        parsed = parse_timestamp("2024-05-30T10:15:42+02:00")
        assert parsed == datetime(2024, 5, 30, 8, 15, 42, tzinfo=timezone.utc)

    def test_short_fraction(self) -> None:
        """Test that short fractions are padded."""
        parsed = parse_timestamp("2024-05-30T08:15:42.5")
        assert parsed is not None
        assert parsed.microsecond == 500000

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", 12345])
    def test_unparseable(self, value: object) -> None:
        """Test that junk yields None."""
        assert parse_timestamp(value) is None  # type: ignore[arg-type]


class TestContactCutoff:
    """Test the age cutoff computation."""

    NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def test_subtracts_days(self) -> None:
        """Test the ordinary case, including fractional days."""
        assert contact_cutoff(self.NOW, 1) == datetime(2024, 5, 31, 12, 0, tzinfo=timezone.utc)
        assert contact_cutoff(self.NOW, 0.5) == datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("days", [1_000_000, 10**12, float("inf")])
    def test_clamps_out_of_range_horizons(self, days: float) -> None:
        """Test that horizons past the earliest datetime are clamped."""
        assert contact_cutoff(self.NOW, days) == EARLIEST_CUTOFF


class TestLastContactBefore:
    """Test the client-side age filter."""

    def test_strictly_before_cutoff(self) -> None:
        """Test the boundary and that unparseable values are dropped."""
        cutoff = datetime(2024, 6, 1, tzinfo=timezone.utc)
        records = [
            {"Id": 1, "RemoteAgentLastContact": "2024-05-31T23:59:59"},
            {"Id": 2, "RemoteAgentLastContact": "2024-06-01T00:00:00"},
            {"Id": 3, "RemoteAgentLastContact": None},
            {"Id": 4},
        ]
        assert [record["Id"] for record in last_contact_before(records, cutoff)] == [1]

    def test_order_preserved(self) -> None:
        """Test that server order is kept."""
        cutoff = datetime.now(timezone.utc)
        records = [
            {"Id": i, "RemoteAgentLastContact": (cutoff - timedelta(days=d)).isoformat()}
            for i, d in enumerate([5, 3, 9])
        ]
        assert [record["Id"] for record in last_contact_before(records, cutoff)] == [0, 1, 2]


class TestClientLabel:
    """Test client naming fallbacks."""

    @pytest.mark.parametrize(
        ("record", "expected"),
        [
            pytest.param({"Client": {"Id": 3, "Name": "Acme"}}, "Acme", id="nested-name"),
            pytest.param({"ClientName": "Globex"}, "Globex", id="flat-name"),
            pytest.param({"ClientId": 9}, "Client 9", id="client-id"),
            pytest.param({"Client": {"Id": 4}}, "Client 4", id="nested-id"),
            pytest.param({}, "Client Unknown", id="nothing"),
        ],
    )
    def test_fallbacks(self, record: dict[str, object], expected: str) -> None:
        """Test each fallback level."""
        assert client_label(record) == expected  # type: ignore[arg-type]


class TestSummaries:
    """Test count aggregation."""

    def test_empty(self) -> None:
        """Test that no records produce zero counts."""
        summary = summarize_computers([], "Online")
        assert summary.total_count == 0
        assert summary.by_client == {}
        assert summary.by_os == {}

    def test_missing_status_counts_offline(self) -> None:
        """Test that anything other than the online literal is offline."""
        summary = summarize_computers([{"Status": None}, {"Status": "online"}], "Online")
        assert summary.online == 0
        assert summary.offline == 2

    def test_lookup_summary(self) -> None:
        """Test the batch counts."""
        results = [
            ComputerLookup(name="a", found=True, status="Online"),
            ComputerLookup(name="b", found=True, status="Offline"),
            ComputerLookup(name="c", found=False),
        ]
        summary = summarize_lookups(results, "Online")
        assert (summary.total, summary.found, summary.not_found) == (3, 2, 1)
        assert (summary.online, summary.offline) == (1, 1)
        assert summary.found + summary.not_found == summary.total
        assert summary.online + summary.offline == summary.found


class TestBatchHelpers:
    """Test chunking, de-duplication and matching."""

    def test_chunked(self) -> None:
        """Test slicing into groups."""
        assert list(chunked(list(range(12)), 10)) == [list(range(10)), [10, 11]]
        assert list(chunked([], 10)) == []

    def test_chunked_rejects_zero(self) -> None:
        """Test that a zero group size is invalid."""
        with pytest.raises(ValueError):
            list(chunked([1], 0))

    def test_dedupe_names(self) -> None:
        """Test that the first spelling wins and blanks are dropped."""
        assert dedupe_names(["PC-1", " pc-1 ", "", "PC-2", "Pc-2"]) == ["PC-1", "PC-2"]

    def test_pick_exact_match(self) -> None:
        """Test case-insensitive whole-name matching."""
        records = [{"ComputerName": "PC-10"}, {"ComputerName": "pc-1"}]
        assert pick_exact_match("PC-1", records) == {"ComputerName": "pc-1"}
        assert pick_exact_match("PC", records) is None

    def test_lookup_from_missing_record(self) -> None:
        """Test the not-found entry."""
        lookup = lookup_from_record("PC-1", None)
        assert lookup.found is False
        assert lookup.id is None
