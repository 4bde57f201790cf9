"""Reader for the paginated legislation.gov.uk Atom entry-list feed.

Each feed page lists documents as ``<entry>`` elements::

    <entry>
      <id>http://www.legislation.gov.uk/id/ukpga/2018/12</id>
      <title>Data Protection Act 2018</title>
      <link rel="self" href="http://www.legislation.gov.uk/ukpga/2018/12"/>
      <updated>2024-03-01T00:00:00Z</updated>
    </entry>

plus a feed-level ``<link rel="next">`` and an optional
``<openSearch:totalResults>``. Pages are fetched elsewhere; this module only
reads text that is already in memory.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator

from bs4 import BeautifulSoup
from bs4.element import Tag

from lawindex.legal_types import (
    DEFAULT_COLLECTION,
    LEGISLATION_BASE_URL,
    DocumentStub,
    FeedPage,
)

logger = logging.getLogger(__name__)

# Safety ceiling for page traversal
MAX_FEED_PAGES = 1000

_PREFERRED_LINK_RELS = ("self", "alternate")


def _local_name(tag: Tag) -> str:
    return (tag.name or "").rsplit(":", 1)[-1]


def _children(tag: Tag, name: str) -> list[Tag]:
    return [c for c in tag.children if isinstance(c, Tag) and _local_name(c) == name]


def _text(tag: Tag | None) -> str:
    if tag is None:
        return ""
    return " ".join(tag.get_text().split())


def _document_path_re(collection: str) -> re.Pattern[str]:
    return re.compile(rf"/{re.escape(collection)}/(\d{{4}})/(\d+)")


def _rel(link: Tag) -> str:
    rel = link.get("rel")
    if isinstance(rel, list):
        return " ".join(rel)
    return rel or ""


def _entry_link(entry: Tag) -> str:
    """href of the entry's self/alternate link, else its first link."""
    links = _children(entry, "link")
    for link in links:
        if _rel(link) in _PREFERRED_LINK_RELS and link.get("href"):
            return str(link.get("href"))
    for link in links:
        if link.get("href"):
            return str(link.get("href"))
    return ""


def canonical_url(collection: str, year: int, number: int) -> str:
    """``https://www.legislation.gov.uk/<collection>/<year>/<number>``."""
    return f"{LEGISLATION_BASE_URL}/{collection}/{year}/{number}"


def _parse_entry(entry: Tag, collection: str, path_re: re.Pattern[str]) -> DocumentStub | None:
    title = _text(next(iter(_children(entry, "title")), None))
    if not title:
        return None
    match = None
    for candidate in (_entry_link(entry), _text(next(iter(_children(entry, "id")), None))):
        match = path_re.search(candidate) if candidate else None
        if match:
            break
    if match is None:
        return None
    year, number = int(match.group(1)), int(match.group(2))
    return DocumentStub(
        collection=collection,
        year=year,
        number=number,
        title=title,
        url=canonical_url(collection, year, number),
        updated=_text(next(iter(_children(entry, "updated")), None)),
    )


def _total_results(feed: Tag) -> int | None:
    for tag in _children(feed, "totalResults"):
        raw = _text(tag)
        if raw.isdigit():
            return int(raw)
    return None


def parse_feed_page(xml: str, collection: str = DEFAULT_COLLECTION) -> FeedPage:
    """Parse one feed page into stubs, a next-page flag and a total hint.

    Entries without a title, or without a link/id naming
    ``/<collection>/<year>/<number>``, are dropped. Entry order is kept.
    ``has_next_page`` is False whenever the page yielded no entries, even if
    a stale next link is present.
    """
    soup = BeautifulSoup(xml.encode("utf-8"), "xml")
    feed = soup.find(lambda t: isinstance(t, Tag) and _local_name(t) == "feed")
    if not isinstance(feed, Tag):
        logger.warning("Feed page has no <feed> root; treating as empty")
        return FeedPage(entries=(), has_next_page=False)

    path_re = _document_path_re(collection)
    entries: list[DocumentStub] = []
    dropped = 0
    for entry in _children(feed, "entry"):
        stub = _parse_entry(entry, collection, path_re)
        if stub is None:
            dropped += 1
        else:
            entries.append(stub)
    if dropped:
        logger.debug("Dropped %d feed entries without title or %s path", dropped, collection)

    has_next_link = any(_rel(link) == "next" for link in _children(feed, "link"))
    return FeedPage(
        entries=tuple(entries),
        has_next_page=has_next_link and bool(entries),
        total_results=_total_results(feed),
    )


def merge_catalog(pages: Iterable[FeedPage]) -> list[DocumentStub]:
    """Concatenate page entries, dropping later duplicates of (year, number)."""
    seen: set[tuple[int, int]] = set()
    merged: list[DocumentStub] = []
    for page in pages:
        for stub in page.entries:
            if stub.key in seen:
                continue
            seen.add(stub.key)
            merged.append(stub)
    return merged


def iter_feed_pages(
    pages: Iterable[str],
    *,
    collection: str = DEFAULT_COLLECTION,
    max_pages: int = MAX_FEED_PAGES,
) -> Iterator[FeedPage]:
    """Parse pre-fetched page texts in order until the feed says stop.

    Stops after a page without a next link (or without entries), or after
    *max_pages* pages.
    """
    count = 0
    for xml in pages:
        if count >= max_pages:
            logger.warning("Reached page ceiling (%d); stopping feed traversal", max_pages)
            return
        page = parse_feed_page(xml, collection)
        count += 1
        logger.debug(
            "Feed page %d: %d entries (next=%s, total=%s)",
            count, len(page.entries), page.has_next_page, page.total_results,
        )
        yield page
        if not page.has_next_page:
            return
