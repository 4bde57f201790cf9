#!/usr/bin/env python3
"""Check saved feed pages for documents that are new or updated locally.

Compares the first ``--page-limit`` feed pages with the local catalog and the
provision store and prints the result as JSON.

Exit codes:
    0  no updates
    1  updates found
    2  check failed

Usage:
    python3 scripts/check_updates.py \
        --feed-dir feeds/latest/ \
        --index data/act-index.json \
        --db data/legislation.duckdb
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from lawindex.feed_index import iter_feed_pages, merge_catalog
from lawindex.io_utils import load_json, stubs_from_json, to_jsonable
from lawindex.legal_types import DEFAULT_COLLECTION
from lawindex.provision_store import ProvisionStore
from lawindex.updates import detect_updates

log = logging.getLogger("check_updates")

EXIT_NO_UPDATES = 0
EXIT_UPDATES_FOUND = 1
EXIT_CHECK_FAILED = 2


def dump_json(obj: object) -> None:
    print(orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Report new and updated documents from recent feed pages."
    )
    parser.add_argument(
        "--feed-dir", required=True, type=Path,
        help="Directory of recent feed pages (*.xml, newest first by name)",
    )
    parser.add_argument(
        "--index", required=True, type=Path, help="Local catalog JSON",
    )
    parser.add_argument(
        "--db", required=True, type=Path, help="Provision store (DuckDB file)",
    )
    parser.add_argument(
        "--collection", default=DEFAULT_COLLECTION,
        help=f"Legislation collection code (default: {DEFAULT_COLLECTION})",
    )
    parser.add_argument(
        "--page-limit", type=int, default=3,
        help="Number of feed pages to check (default: 3)",
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

    try:
        if args.page_limit <= 0:
            raise ValueError("--page-limit must be > 0")
        if not args.feed_dir.is_dir():
            raise FileNotFoundError(f"feed directory not found: {args.feed_dir}")
        local_index = stubs_from_json(load_json(args.index))
        pages = iter_feed_pages(
            (p.read_text(encoding="utf-8") for p in sorted(args.feed_dir.glob("*.xml"))),
            collection=args.collection,
            max_pages=args.page_limit,
        )
        remote = merge_catalog(pages)
        with ProvisionStore(args.db) as store:
            known_ids = store.document_ids(type="statute")
        report = detect_updates(remote, local_index, known_ids)
    except Exception as exc:
        print(f"Error: update check failed: {exc}", file=sys.stderr)
        return EXIT_CHECK_FAILED

    dump_json({
        "updated": to_jsonable(report.updated),
        "new": to_jsonable(report.new),
    })
    if report.has_updates:
        log.info("%d updated, %d new", len(report.updated), len(report.new))
        return EXIT_UPDATES_FOUND
    log.info("No updates")
    return EXIT_NO_UPDATES


if __name__ == "__main__":
    sys.exit(main())
