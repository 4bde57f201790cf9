"""Tests for lawindex.feed_index — Atom feed page reading and catalog merge."""
from __future__ import annotations

from lawindex.feed_index import (
    canonical_url,
    iter_feed_pages,
    merge_catalog,
    parse_feed_page,
)


def _entry(title: str, href: str, *, rel: str = "self", updated: str = "2024-01-01T00:00:00Z") -> str:
    return (
        "<entry>"
        f"<id>{href.replace('/ukpga/', '/id/ukpga/')}</id>"
        f"<title>{title}</title>"
        f'<link rel="{rel}" href="{href}"/>'
        f"<updated>{updated}</updated>"
        "</entry>"
    )


def _feed(*entries: str, next_link: bool = True, total: str | None = "2") -> str:
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<feed xmlns="http://www.w3.org/2005/Atom" '
        'xmlns:openSearch="http://a9.com/-/spec/opensearch/1.1/">',
        "<title>UK Public General Acts</title>",
    ]
    if next_link:
        parts.append('<link rel="next" href="https://www.legislation.gov.uk/ukpga/data.feed?page=2"/>')
    if total is not None:
        parts.append(f"<openSearch:totalResults>{total}</openSearch:totalResults>")
    parts.extend(entries)
    parts.append("</feed>")
    return "".join(parts)


DPA = _entry("Data Protection Act 2018", "http://www.legislation.gov.uk/ukpga/2018/12")
HRA = _entry("Human Rights Act 1998", "http://www.legislation.gov.uk/ukpga/1998/42")


class TestParseFeedPage:
    def test_entries_in_order(self) -> None:
        page = parse_feed_page(_feed(DPA, HRA))
        assert [(s.year, s.number) for s in page.entries] == [(2018, 12), (1998, 42)]
        first = page.entries[0]
        assert first.title == "Data Protection Act 2018"
        assert first.collection == "ukpga"
        assert first.url == "https://www.legislation.gov.uk/ukpga/2018/12"
        assert first.updated == "2024-01-01T00:00:00Z"
        assert first.document_id == "ukpga-2018-12"

    def test_next_page_and_total(self) -> None:
        page = parse_feed_page(_feed(DPA))
        assert page.has_next_page is True
        assert page.total_results == 2

    def test_no_next_link(self) -> None:
        page = parse_feed_page(_feed(DPA, next_link=False))
        assert page.has_next_page is False

    def test_empty_page_never_has_next(self) -> None:
        page = parse_feed_page(_feed(next_link=True))
        assert page.entries == ()
        assert page.has_next_page is False

    def test_non_numeric_total_ignored(self) -> None:
        assert parse_feed_page(_feed(DPA, total="many")).total_results is None
        assert parse_feed_page(_feed(DPA, total=None)).total_results is None

    def test_entry_without_title_dropped(self) -> None:
        page = parse_feed_page(_feed(_entry("  ", "http://www.legislation.gov.uk/ukpga/2020/1"), DPA))
        assert [s.number for s in page.entries] == [12]

    def test_entry_from_other_collection_dropped(self) -> None:
        uksi = _entry("Some Regulations 2020", "http://www.legislation.gov.uk/uksi/2020/5")
        page = parse_feed_page(_feed(uksi, DPA))
        assert [s.number for s in page.entries] == [12]

    def test_id_used_when_link_does_not_match(self) -> None:
        entry = (
            "<entry><id>http://www.legislation.gov.uk/id/ukpga/2010/15</id>"
            "<title>Equality Act 2010</title>"
            '<link rel="alternate" href="http://example.com/equality"/></entry>'
        )
        page = parse_feed_page(_feed(entry))
        assert [(s.year, s.number) for s in page.entries] == [(2010, 15)]
        assert page.entries[0].updated == ""

    def test_self_link_preferred(self) -> None:
        entry = (
            "<entry><title>Equality Act 2010</title>"
            '<link rel="related" href="http://www.legislation.gov.uk/ukpga/1999/1"/>'
            '<link rel="self" href="http://www.legislation.gov.uk/ukpga/2010/15"/></entry>'
        )
        page = parse_feed_page(_feed(entry))
        assert page.entries[0].number == 15

    def test_title_whitespace_collapsed(self) -> None:
        page = parse_feed_page(_feed(_entry("Data   Protection\n Act 2018", "http://x/ukpga/2018/12")))
        assert page.entries[0].title == "Data Protection Act 2018"

    def test_other_collection(self) -> None:
        uksi = _entry("Some Regulations 2020", "http://www.legislation.gov.uk/uksi/2020/5")
        page = parse_feed_page(_feed(uksi, DPA), collection="uksi")
        assert [s.document_id for s in page.entries] == ["uksi-2020-5"]

    def test_not_a_feed(self) -> None:
        page = parse_feed_page("<html><body>oops</body></html>")
        assert page.entries == ()
        assert page.has_next_page is False


class TestMergeCatalog:
    def test_first_occurrence_wins(self) -> None:
        dpa_later = _entry("Data Protection Act 2018 (renamed)", "http://www.legislation.gov.uk/ukpga/2018/12")
        pages = [parse_feed_page(_feed(DPA, HRA)), parse_feed_page(_feed(dpa_later))]
        merged = merge_catalog(pages)
        assert [s.key for s in merged] == [(2018, 12), (1998, 42)]
        assert merged[0].title == "Data Protection Act 2018"


class TestIterFeedPages:
    def test_stops_at_last_page(self) -> None:
        texts = [_feed(DPA), _feed(HRA, next_link=False), _feed(DPA)]
        pages = list(iter_feed_pages(texts))
        assert len(pages) == 2

    def test_stops_at_empty_page(self) -> None:
        texts = [_feed(DPA), _feed(), _feed(HRA)]
        assert len(list(iter_feed_pages(texts))) == 2

    def test_page_ceiling(self) -> None:
        texts = [_feed(DPA)] * 5
        assert len(list(iter_feed_pages(texts, max_pages=3))) == 3


def test_canonical_url() -> None:
    assert canonical_url("ukpga", 2018, 12) == "https://www.legislation.gov.uk/ukpga/2018/12"
