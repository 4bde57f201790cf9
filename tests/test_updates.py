"""Tests for lawindex.updates — new/updated document detection."""
from __future__ import annotations

from lawindex.legal_types import DocumentStub
from lawindex.updates import detect_updates, is_newer


def _stub(number: int, updated: str, year: int = 2020) -> DocumentStub:
    return DocumentStub(
        collection="ukpga",
        year=year,
        number=number,
        title=f"Act {number}",
        url=f"https://www.legislation.gov.uk/ukpga/{year}/{number}",
        updated=updated,
    )


class TestDetectUpdates:
    def test_new_and_updated(self) -> None:
        local_index = [_stub(1, "2024-01-01T00:00:00Z"), _stub(2, "2024-01-01T00:00:00Z")]
        remote = [
            _stub(1, "2024-06-01T00:00:00Z"),   # updated
            _stub(2, "2024-01-01T00:00:00Z"),   # unchanged
            _stub(3, "2024-06-01T00:00:00Z"),   # new
        ]
        report = detect_updates(remote, local_index, ["ukpga-2020-1", "ukpga-2020-2"])
        assert [s.number for s in report.updated] == [1]
        assert [s.number for s in report.new] == [3]
        assert report.has_updates

    def test_absent_from_store_is_new_even_if_indexed(self) -> None:
        local_index = [_stub(1, "2024-01-01T00:00:00Z")]
        report = detect_updates([_stub(1, "2024-01-01T00:00:00Z")], local_index, [])
        assert [s.number for s in report.new] == [1]
        assert report.updated == ()

    def test_no_updates(self) -> None:
        entries = [_stub(1, "2024-01-01T00:00:00Z")]
        report = detect_updates(entries, entries, ["ukpga-2020-1"])
        assert not report.has_updates

    def test_stored_but_not_indexed_is_not_updated(self) -> None:
        report = detect_updates([_stub(1, "2024-06-01T00:00:00Z")], [], ["ukpga-2020-1"])
        assert not report.has_updates


class TestIsNewer:
    def test_later(self) -> None:
        assert is_newer("2024-06-01T00:00:00Z", "2024-01-01T00:00:00Z")

    def test_equal_or_earlier(self) -> None:
        assert not is_newer("2024-01-01T00:00:00Z", "2024-01-01T00:00:00Z")
        assert not is_newer("2023-01-01T00:00:00Z", "2024-01-01T00:00:00Z")

    def test_mixed_offsets(self) -> None:
        assert is_newer("2024-01-01T12:00:00", "2024-01-01T00:00:00Z")

    def test_unparseable(self) -> None:
        assert not is_newer("", "2024-01-01T00:00:00Z")
        assert not is_newer("yesterday", "2024-01-01T00:00:00Z")
