"""Batch ingestion: catalog stubs + fetched markup -> seed files and store rows.

Each document is independent: a failure in one is logged and counted and
the run moves on. Seed files (``<year>_<number>.json``) make reruns
incremental.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from lawindex.akn_parser import minimal_act, parse_akn_document
from lawindex.io_utils import save_json, to_jsonable
from lawindex.legal_types import DocumentStub, ParsedAct
from lawindex.provision_store import ProvisionStore

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 100

type MarkupLoader = Callable[[DocumentStub], str | None]


@dataclass(frozen=True, slots=True)
class IngestOptions:
    """Pipeline settings shared by the ingestion script and library callers."""
    limit: int | None = None
    seed_dir: Path | None = None
    skip_existing: bool = True
    progress_every: int = PROGRESS_EVERY


@dataclass(slots=True)
class IngestReport:
    """Counters for one ingestion run."""
    total: int = 0
    parsed: int = 0
    no_markup: int = 0
    failed: int = 0
    skipped_existing: int = 0
    provisions: int = 0
    conflicts: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "parsed": self.parsed,
            "no_markup": self.no_markup,
            "failed": self.failed,
            "skipped_existing": self.skipped_existing,
            "provisions": self.provisions,
            "conflicts": self.conflicts,
            "errors": [{"document_id": d, "error": e} for d, e in self.errors],
        }


def seed_path(seed_dir: Path, stub: DocumentStub) -> Path:
    """``<seed_dir>/<year>_<number>.json``."""
    return seed_dir / f"{stub.year}_{stub.number}.json"


def write_seed(seed_dir: Path, act: ParsedAct, stub: DocumentStub) -> Path:
    path = seed_path(seed_dir, stub)
    save_json(to_jsonable(act), path)
    return path


def ingest_documents(
    stubs: Iterable[DocumentStub],
    load_markup: MarkupLoader,
    *,
    limit: int | None = None,
    seed_dir: Path | None = None,
    store: ProvisionStore | None = None,
    skip_existing: bool = True,
    progress_every: int = PROGRESS_EVERY,
) -> IngestReport:
    """Parse each stub's markup and write seeds and/or store rows.

    Args:
        stubs: Catalog entries, in processing order.
        load_markup: Returns already-fetched markup for a stub, or None when
            none is available (a minimal seed is then written).
        limit: Process at most this many stubs.
        seed_dir: Where seed JSON files go (None: no seeds).
        store: Optional provision store to write parsed acts into.
        skip_existing: Skip stubs whose seed file already exists.

    Returns:
        IngestReport with per-run counters and per-document errors.
    """
    report = IngestReport()
    for i, stub in enumerate(stubs):
        if limit is not None and i >= limit:
            break
        report.total += 1
        doc_id = stub.document_id

        if skip_existing and seed_dir is not None and seed_path(seed_dir, stub).exists():
            report.skipped_existing += 1
            continue

        try:
            markup = load_markup(stub)
            if markup is None:
                act = minimal_act(stub)
                report.no_markup += 1
                logger.info("No markup for %s; writing minimal seed", doc_id)
            else:
                act = parse_akn_document(markup, stub)
                report.parsed += 1
                report.provisions += len(act.provisions)
                report.conflicts += len(act.conflicts)

            if seed_dir is not None:
                write_seed(seed_dir, act, stub)
            if store is not None:
                store.store_act(act)
        except Exception as exc:
            report.failed += 1
            report.errors.append((doc_id, f"{type(exc).__name__}: {exc}"))
            logger.warning("Failed to ingest %s: %s", doc_id, exc)
            continue

        if progress_every and report.total % progress_every == 0:
            logger.info(
                "Progress: %d documents (%d parsed, %d without markup, %d failed)",
                report.total, report.parsed, report.no_markup, report.failed,
            )

    logger.info(
        "Ingestion complete: %d documents, %d parsed, %d provisions, "
        "%d without markup, %d failed, %d skipped",
        report.total, report.parsed, report.provisions,
        report.no_markup, report.failed, report.skipped_existing,
    )
    return report


def ingest_with_options(
    stubs: Iterable[DocumentStub],
    load_markup: MarkupLoader,
    options: IngestOptions,
    *,
    store: ProvisionStore | None = None,
) -> IngestReport:
    """``ingest_documents`` driven by an IngestOptions bundle."""
    return ingest_documents(
        stubs,
        load_markup,
        limit=options.limit,
        seed_dir=options.seed_dir,
        store=store,
        skip_existing=options.skip_existing,
        progress_every=options.progress_every,
    )
