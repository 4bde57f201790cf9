#!/usr/bin/env python3
"""Citation and search-query utilities.

Subcommands print JSON (or plain text for ``format``) to stdout and
diagnostics to stderr.

Usage:
    python3 scripts/cite.py parse "Section 3, Data Protection Act 2018"
    python3 scripts/cite.py format "s. 1(1)(a) Data Protection Act 2018" --style pinpoint
    python3 scripts/cite.py validate "s. 3 DPA 2018" --db data/legislation.duckdb
    python3 scripts/cite.py query "data protection"
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import orjson

from lawindex.citation_validator import validate_citation
from lawindex.citations import format_citation, parse_citation
from lawindex.fts_query import build_fts_query_variants
from lawindex.io_utils import to_jsonable
from lawindex.legal_types import CITATION_FORMATS, Err, Ok, ParsedCitation
from lawindex.provision_store import ProvisionStore


def dump_json(obj: object) -> None:
    print(orjson.dumps(obj, option=orjson.OPT_INDENT_2).decode("utf-8"))


def _citation_payload(parsed: ParsedCitation) -> dict[str, Any]:
    match parsed:
        case Ok(value=citation):
            return {"valid": True, "citation": to_jsonable(citation)}
        case Err(error=err):
            return {"valid": False, "reason": err.reason}
    raise TypeError(f"not a parse result: {parsed!r}")


def _handle_parse(args: argparse.Namespace) -> int:
    parsed = parse_citation(args.text)
    dump_json(_citation_payload(parsed))
    return 0 if isinstance(parsed, Ok) else 1


def _handle_format(args: argparse.Namespace) -> int:
    parsed = parse_citation(args.text)
    rendered = format_citation(parsed, args.style)
    if not rendered:
        reason = parsed.error.reason if isinstance(parsed, Err) else "citation has no section"
        print(f"Error: {reason}", file=sys.stderr)
        return 1
    print(rendered)
    return 0


def _handle_validate(args: argparse.Namespace) -> int:
    if not args.db.exists():
        print(f"Error: database not found: {args.db}", file=sys.stderr)
        return 1
    with ProvisionStore(args.db) as store:
        result = validate_citation(store, args.text)
    payload = _citation_payload(result.citation)
    payload.update({
        "document_exists": result.document_exists,
        "provision_exists": result.provision_exists,
        "document_title": result.document_title,
        "status": result.status,
        "warnings": list(result.warnings),
    })
    dump_json(payload)
    return 0


def _handle_query(args: argparse.Namespace) -> int:
    dump_json(to_jsonable(build_fts_query_variants(args.text)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="UK legislation citation utilities.")
    sub = parser.add_subparsers(dest="command", required=True)

    parse_p = sub.add_parser("parse", help="Parse a citation into its parts")
    parse_p.add_argument("text", help="Citation text")
    parse_p.set_defaults(func=_handle_parse)

    format_p = sub.add_parser("format", help="Re-render a citation")
    format_p.add_argument("text", help="Citation text")
    format_p.add_argument(
        "--style", choices=CITATION_FORMATS, default="full",
        help="Output convention (default: full)",
    )
    format_p.set_defaults(func=_handle_format)

    validate_p = sub.add_parser("validate", help="Check a citation against the provision store")
    validate_p.add_argument("text", help="Citation text")
    validate_p.add_argument("--db", required=True, type=Path, help="Provision store (DuckDB file)")
    validate_p.set_defaults(func=_handle_validate)

    query_p = sub.add_parser("query", help="Build full-text search expressions")
    query_p.add_argument("text", help="Free-text query")
    query_p.set_defaults(func=_handle_query)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
