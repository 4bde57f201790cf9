#!/usr/bin/env python3
"""Build the document catalog from saved legislation.gov.uk feed pages.

Reads Atom feed pages (one file per page) from a directory in name order,
stops at the last page (no next link, or an empty page), de-duplicates
entries by (year, number) and writes the catalog as JSON.

Usage:
    python3 scripts/build_catalog.py \
        --feed-dir feeds/ukpga/ \
        --output data/act-index.json
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from lawindex.feed_index import MAX_FEED_PAGES, iter_feed_pages, merge_catalog
from lawindex.io_utils import save_json, stubs_to_json
from lawindex.legal_types import DEFAULT_COLLECTION

log = logging.getLogger("build_catalog")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build the document catalog from saved feed pages."
    )
    parser.add_argument(
        "--feed-dir", required=True, type=Path,
        help="Directory of saved feed pages (*.xml, read in name order)",
    )
    parser.add_argument(
        "--output", required=True, type=Path, help="Catalog JSON to write",
    )
    parser.add_argument(
        "--collection", default=DEFAULT_COLLECTION,
        help=f"Legislation collection code (default: {DEFAULT_COLLECTION})",
    )
    parser.add_argument(
        "--max-pages", type=int, default=MAX_FEED_PAGES,
        help=f"Page-count safety ceiling (default: {MAX_FEED_PAGES})",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Debug logging to stderr",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    feed_dir: Path = args.feed_dir
    if not feed_dir.is_dir():
        print(f"Error: feed directory not found: {feed_dir}", file=sys.stderr)
        return 1
    if args.max_pages <= 0:
        print("Error: --max-pages must be > 0", file=sys.stderr)
        return 1

    page_files = sorted(feed_dir.glob("*.xml"))
    if not page_files:
        print(f"Error: no *.xml feed pages in {feed_dir}", file=sys.stderr)
        return 1

    pages = list(iter_feed_pages(
        (p.read_text(encoding="utf-8") for p in page_files),
        collection=args.collection,
        max_pages=args.max_pages,
    ))
    catalog = merge_catalog(pages)
    save_json(stubs_to_json(catalog), args.output)

    raw_entries = sum(len(p.entries) for p in pages)
    log.info(
        "Catalog: %d documents from %d pages (%d duplicate entries dropped) -> %s",
        len(catalog), len(pages), raw_entries - len(catalog), args.output,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
