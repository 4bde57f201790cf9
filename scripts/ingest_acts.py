#!/usr/bin/env python3
"""Parse fetched Akoma Ntoso markup into seed files and the provision store.

For every catalog entry, reads ``<markup-dir>/<year>_<number>.xml`` (when
present), parses it into provisions and writes ``<seed-dir>/<year>_<number>.json``.
Entries without markup get a minimal seed. One failing document never stops
the run. Existing seeds are skipped unless ``--force``.

Usage:
    python3 scripts/ingest_acts.py \
        --catalog data/act-index.json \
        --markup-dir markup/ukpga/ \
        --seed-dir seeds/ukpga/ \
        --db data/legislation.duckdb
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import orjson

from lawindex.ingest import IngestOptions, ingest_with_options
from lawindex.io_utils import load_json, stubs_from_json
from lawindex.legal_types import DocumentStub
from lawindex.provision_store import ProvisionStore

log = logging.getLogger("ingest_acts")


def dump_json(obj: object) -> None:
    print(orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8"))


def markup_path(markup_dir: Path, stub: DocumentStub) -> Path:
    return markup_dir / f"{stub.year}_{stub.number}.xml"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Parse fetched legislation markup into seeds and the provision store."
    )
    parser.add_argument(
        "--catalog", required=True, type=Path, help="Catalog JSON from build_catalog.py",
    )
    parser.add_argument(
        "--markup-dir", required=True, type=Path,
        help="Directory of fetched markup files named <year>_<number>.xml",
    )
    parser.add_argument(
        "--seed-dir", required=True, type=Path, help="Directory for seed JSON files",
    )
    parser.add_argument(
        "--db", type=Path, default=None,
        help="Optional provision store (DuckDB file, created if missing)",
    )
    parser.add_argument(
        "--limit", type=int, default=None, help="Process only first N catalog entries",
    )
    parser.add_argument(
        "--force", action="store_true", help="Re-parse documents that already have a seed",
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

    if not args.catalog.exists():
        print(f"Error: catalog not found: {args.catalog}", file=sys.stderr)
        return 1
    if not args.markup_dir.is_dir():
        print(f"Error: markup directory not found: {args.markup_dir}", file=sys.stderr)
        return 1
    if args.limit is not None and args.limit <= 0:
        print("Error: --limit must be > 0", file=sys.stderr)
        return 1

    stubs = stubs_from_json(load_json(args.catalog))
    log.info("Loaded %d catalog entries from %s", len(stubs), args.catalog)

    markup_dir: Path = args.markup_dir

    def load_markup(stub: DocumentStub) -> str | None:
        path = markup_path(markup_dir, stub)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    options = IngestOptions(
        limit=args.limit,
        seed_dir=args.seed_dir,
        skip_existing=not args.force,
    )

    if args.db is None:
        report = ingest_with_options(stubs, load_markup, options)
    else:
        with ProvisionStore(args.db, create_if_missing=True) as store:
            report = ingest_with_options(stubs, load_markup, options, store=store)

    dump_json(report.to_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
