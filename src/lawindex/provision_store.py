"""DuckDB store for parsed legislation and its provisions.

Holds two tables:

* ``legal_documents``  one row per statute (id, title, status, ...)
* ``legal_provisions`` one row per addressable provision, unique on
  (document_id, provision_ref)

Ingestion writes through ``store_act``; citation validation reads through
the ``DocumentLookup`` subset (``get_document``, ``find_document_by_title``,
``section_exists``).
"""
from __future__ import annotations

import contextlib
import importlib
import logging
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

from lawindex.legal_types import ParsedAct, ProvisionRecord

logger = logging.getLogger(__name__)

# Dynamic DuckDB import for pyright compatibility
_duckdb_mod = importlib.import_module("duckdb")

SCHEMA_VERSION = "1.0.0"


class SchemaVersionError(RuntimeError):
    """Raised when a store's schema version does not match expected."""


class ProvisionConflictError(ValueError):
    """Raised when one document's provisions repeat a provision_ref."""

    def __init__(self, document_id: str, duplicates: list[str]) -> None:
        self.document_id = document_id
        self.duplicates = duplicates
        super().__init__(
            f"Duplicate provision references in {document_id}: {', '.join(duplicates)}"
        )


# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_DDL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS _schema_version (
    table_name VARCHAR PRIMARY KEY,
    version VARCHAR NOT NULL
);

-- ─── DOCUMENTS ───────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS legal_documents (
    id VARCHAR PRIMARY KEY,
    type VARCHAR NOT NULL DEFAULT 'statute',
    title VARCHAR NOT NULL,
    short_name VARCHAR NOT NULL DEFAULT '',
    status VARCHAR NOT NULL DEFAULT 'in_force',
    issued_date VARCHAR,
    url VARCHAR,
    last_updated TIMESTAMP DEFAULT current_timestamp
);

-- ─── PROVISIONS ──────────────────────────────────────────────────────
CREATE TABLE IF NOT EXISTS legal_provisions (
    document_id VARCHAR NOT NULL,
    provision_ref VARCHAR NOT NULL,
    ordinal INTEGER NOT NULL,
    section VARCHAR NOT NULL,
    title VARCHAR,
    content VARCHAR NOT NULL,
    UNIQUE (document_id, provision_ref)
);

CREATE INDEX IF NOT EXISTS idx_provisions_section
    ON legal_provisions (document_id, section);
"""

_DOCUMENT_COLS = ["id", "type", "title", "short_name", "status", "issued_date", "url"]
_PROVISION_COLS = ["provision_ref", "section", "title", "content"]


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _to_dict(cols: list[str], row: tuple[Any, ...]) -> dict[str, Any]:
    """Zip column names with a row tuple into a dict (strict length check)."""
    return dict(zip(cols, row, strict=True))


@dataclass(frozen=True, slots=True)
class DocumentRow:
    """One row of ``legal_documents``."""
    id: str
    type: str
    title: str
    short_name: str
    status: str
    issued_date: str | None
    url: str | None


class DocumentLookup(Protocol):
    """The read surface citation validation needs."""

    def get_document(self, document_id: str) -> DocumentRow | None: ...

    def find_document_by_title(self, title: str, year: int | None) -> DocumentRow | None: ...

    def section_exists(self, document_id: str, section: str) -> bool: ...


def duplicate_refs(provisions: Iterable[ProvisionRecord]) -> list[str]:
    """provision_ref values occurring more than once, sorted."""
    counts = Counter(p.provision_ref for p in provisions)
    return sorted(ref for ref, n in counts.items() if n > 1)


# ---------------------------------------------------------------------------
# ProvisionStore class
# ---------------------------------------------------------------------------

class ProvisionStore:
    """Read/write interface to a legislation DuckDB file."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        create_if_missing: bool = False,
    ) -> None:
        self._db_path = Path(db_path)
        if not self._db_path.exists() and not create_if_missing:
            raise FileNotFoundError(f"Provision database not found: {self._db_path}")

        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Any = _duckdb_mod.connect(str(self._db_path))
        self._create_schema()

    def _create_schema(self) -> None:
        """Create all tables if they don't exist, then check the version."""
        for stmt in _SCHEMA_DDL.split(";"):
            stmt = stmt.strip()
            if stmt:
                self._conn.execute(stmt)

        row = self._conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = '_global'"
        ).fetchone()
        if row is None:
            self._conn.execute(
                "INSERT INTO _schema_version VALUES ('_global', ?)", [SCHEMA_VERSION]
            )
        elif row[0] != SCHEMA_VERSION:
            raise SchemaVersionError(
                f"Schema version mismatch in {self._db_path}: "
                f"expected {SCHEMA_VERSION}, got {row[0]}"
            )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> ProvisionStore:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()

    @property
    def schema_version(self) -> str:
        row = self._conn.execute(
            "SELECT version FROM _schema_version WHERE table_name = '_global'"
        ).fetchone()
        return str(row[0]) if row else ""

    # ── Writes ─────────────────────────────────────────────────────────

    def upsert_document(self, act: ParsedAct) -> None:
        """Insert or replace the ``legal_documents`` row for *act*."""
        self._conn.execute(
            """
            INSERT OR REPLACE INTO legal_documents
                (id, type, title, short_name, status, issued_date, url, last_updated)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                act.id, act.type, act.title, act.short_name, act.status,
                act.issued_date, act.url, _now(),
            ],
        )

    def _write_provisions(
        self, document_id: str, records: list[ProvisionRecord],
    ) -> None:
        self._conn.execute(
            "DELETE FROM legal_provisions WHERE document_id = ?", [document_id]
        )
        if records:
            self._conn.executemany(
                """
                INSERT INTO legal_provisions
                    (document_id, provision_ref, ordinal, section, title, content)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    [document_id, p.provision_ref, i, p.section, p.heading, p.content]
                    for i, p in enumerate(records)
                ],
            )

    def replace_provisions(
        self,
        document_id: str,
        provisions: Iterable[ProvisionRecord],
    ) -> int:
        """Replace every provision of *document_id*. Returns rows written.

        The delete and the insert commit together; a failed insert rolls
        back to the previously stored provisions.

        Raises:
            ProvisionConflictError: two records share a provision_ref. The
                stored provisions are left untouched.
        """
        records = list(provisions)
        dupes = duplicate_refs(records)
        if dupes:
            raise ProvisionConflictError(document_id, dupes)

        self._conn.execute("BEGIN TRANSACTION")
        try:
            self._write_provisions(document_id, records)
            self._conn.execute("COMMIT")
        except Exception:
            with contextlib.suppress(Exception):
                self._conn.execute("ROLLBACK")
            raise
        return len(records)

    def store_act(self, act: ParsedAct) -> int:
        """Upsert the document row and replace its provisions atomically."""
        records = list(act.provisions)
        dupes = duplicate_refs(records)
        if dupes:
            raise ProvisionConflictError(act.id, dupes)

        self._conn.execute("BEGIN TRANSACTION")
        try:
            self._write_provisions(act.id, records)
            self.upsert_document(act)
            self._conn.execute("COMMIT")
        except Exception:
            with contextlib.suppress(Exception):
                self._conn.execute("ROLLBACK")
            raise
        logger.debug("Stored %s with %d provisions", act.id, len(records))
        return len(records)

    def set_status(self, document_id: str, status: str) -> None:
        """Mark a document, e.g. ``repealed``."""
        self._conn.execute(
            "UPDATE legal_documents SET status = ?, last_updated = ? WHERE id = ?",
            [status, _now(), document_id],
        )

    # ── Lookups ────────────────────────────────────────────────────────

    def _document_from_row(self, row: tuple[Any, ...] | None) -> DocumentRow | None:
        if row is None:
            return None
        return DocumentRow(**_to_dict(_DOCUMENT_COLS, row))

    def get_document(self, document_id: str) -> DocumentRow | None:
        row = self._conn.execute(
            f"SELECT {', '.join(_DOCUMENT_COLS)} FROM legal_documents WHERE id = ?",
            [document_id],
        ).fetchone()
        return self._document_from_row(row)

    def find_document_by_title(self, title: str, year: int | None) -> DocumentRow | None:
        """Case-insensitive containment match on ``%<title>%<year>%``.

        Titles stored without the year are also matched on title plus the
        year of ``issued_date``. The earliest id wins when several match.
        """
        select = f"SELECT {', '.join(_DOCUMENT_COLS)} FROM legal_documents"
        if year is None:
            row = self._conn.execute(
                f"{select} WHERE title ILIKE ? ORDER BY id LIMIT 1", [f"%{title}%"]
            ).fetchone()
            return self._document_from_row(row)

        row = self._conn.execute(
            f"""
            {select}
            WHERE title ILIKE ?
               OR (title ILIKE ? AND issued_date LIKE ?)
            ORDER BY id
            LIMIT 1
            """,
            [f"%{title}%{year}%", f"%{title}%", f"{year}-%"],
        ).fetchone()
        return self._document_from_row(row)

    def section_exists(self, document_id: str, section: str) -> bool:
        row = self._conn.execute(
            "SELECT 1 FROM legal_provisions WHERE document_id = ? AND section = ? LIMIT 1",
            [document_id, section],
        ).fetchone()
        return row is not None

    def get_provision(self, document_id: str, provision_ref: str) -> ProvisionRecord | None:
        row = self._conn.execute(
            f"""
            SELECT {', '.join(_PROVISION_COLS)} FROM legal_provisions
            WHERE document_id = ? AND provision_ref = ?
            """,
            [document_id, provision_ref],
        ).fetchone()
        if row is None:
            return None
        d = _to_dict(_PROVISION_COLS, row)
        return ProvisionRecord(
            provision_ref=d["provision_ref"],
            section=d["section"],
            heading=d["title"],
            content=d["content"],
        )

    def list_provisions(self, document_id: str) -> list[ProvisionRecord]:
        """All provisions of a document in document order."""
        rows = self._conn.execute(
            f"""
            SELECT {', '.join(_PROVISION_COLS)} FROM legal_provisions
            WHERE document_id = ?
            ORDER BY ordinal
            """,
            [document_id],
        ).fetchall()
        out: list[ProvisionRecord] = []
        for row in rows:
            d = _to_dict(_PROVISION_COLS, row)
            out.append(ProvisionRecord(
                provision_ref=d["provision_ref"],
                section=d["section"],
                heading=d["title"],
                content=d["content"],
            ))
        return out

    def document_ids(self, *, type: str | None = None) -> list[str]:
        """Stored document ids, optionally filtered by type, sorted."""
        if type is None:
            rows = self._conn.execute("SELECT id FROM legal_documents ORDER BY id").fetchall()
        else:
            rows = self._conn.execute(
                "SELECT id FROM legal_documents WHERE type = ? ORDER BY id", [type]
            ).fetchall()
        return [str(r[0]) for r in rows]

    def provision_count(self, document_id: str | None = None) -> int:
        if document_id is None:
            row = self._conn.execute("SELECT COUNT(*) FROM legal_provisions").fetchone()
        else:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM legal_provisions WHERE document_id = ?", [document_id]
            ).fetchone()
        return int(row[0]) if row else 0
