"""Check parsed citations against the provision store.

A citation that names a missing document or section is not an error: the
result carries ``document_exists``/``provision_exists`` flags and warnings.
Only calling without a store raises.
"""
from __future__ import annotations

import logging

from lawindex.citations import parse_citation
from lawindex.legal_types import (
    Citation,
    Err,
    Ok,
    ParsedCitation,
    ValidationResult,
)
from lawindex.provision_store import DocumentLookup, DocumentRow

logger = logging.getLogger(__name__)

REPEALED_STATUS = "repealed"


class StoreUnavailableError(RuntimeError):
    """Raised when validation is requested without a store connection."""


def statute_id_candidates(raw_id: str) -> list[str]:
    """Exact-lookup identifiers for a statute name, most specific first.

    "Data Protection Act 2018" -> lowercase, original, and the
    space/dash-swapped variants of both, without duplicates.
    """
    trimmed = raw_id.strip()
    if not trimmed:
        return []
    lowered = trimmed.lower()
    ordered = [
        lowered,
        trimmed,
        lowered.replace(" ", "-"),
        lowered.replace("-", " "),
        trimmed.replace(" ", "-"),
    ]
    seen: set[str] = set()
    out: list[str] = []
    for cand in ordered:
        if cand and cand not in seen:
            seen.add(cand)
            out.append(cand)
    return out


def resolve_document(store: DocumentLookup, citation: Citation) -> DocumentRow | None:
    """Exact identifier candidates first, then fuzzy title containment."""
    title = citation.title or ""
    name = f"{title} {citation.year}" if citation.year is not None else title
    for candidate in statute_id_candidates(name):
        row = store.get_document(candidate)
        if row is not None:
            return row
    if not title:
        return None
    return store.find_document_by_title(title, citation.year)


def validate_citation(
    store: DocumentLookup | None,
    citation: str | ParsedCitation,
) -> ValidationResult:
    """Validate a citation string or parse result against *store*.

    Raises:
        StoreUnavailableError: *store* is None.
    """
    if store is None:
        raise StoreUnavailableError("Citation validation requires a provision store")

    parsed = parse_citation(citation) if isinstance(citation, str) else citation

    match parsed:
        case Err(error=err):
            return ValidationResult(
                citation=parsed,
                document_exists=False,
                provision_exists=False,
                warnings=(err.reason,),
            )
        case Ok(value=cite):
            pass

    warnings: list[str] = []
    doc = resolve_document(store, cite)
    if doc is None:
        name = f"{cite.title or ''} {cite.year or ''}".strip()
        warnings.append(f'Document "{name}" not found in database')
        logger.debug("No document for citation %r", name)
        return ValidationResult(
            citation=parsed,
            document_exists=False,
            provision_exists=False,
            warnings=tuple(warnings),
        )

    if doc.status == REPEALED_STATUS:
        warnings.append("This statute has been repealed")

    provision_exists = False
    if cite.section:
        provision_exists = store.section_exists(doc.id, cite.section)
        if not provision_exists:
            warnings.append(f"Section {cite.section} not found in {doc.title}")

    return ValidationResult(
        citation=parsed,
        document_exists=True,
        provision_exists=provision_exists,
        document_title=doc.title,
        status=doc.status,
        warnings=tuple(warnings),
    )
