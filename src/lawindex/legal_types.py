"""Core types shared by the ingestion and citation layers.

Every layer in the pipeline shares these types. All dataclasses are frozen
and use slots=True.

Type hierarchy:
  Ok[T] / Err[E]     — Strict algebraic Result type
  DocumentStub       — Catalog entry discovered from a feed page
  FeedPage           — One parsed page of the entry-list feed
  ProvisionRecord    — One addressable unit of statutory text
  ReferenceConflict  — Duplicate provision reference found during a walk
  ParsedAct          — A statute with its provisions, ready for the store
  Citation           — Valid structured citation
  CitationParseError — Typed failure for citation parsing
  ParsedCitation     — Ok[Citation] | Err[CitationParseError]
  ValidationResult   — Citation checked against the provision store
  FtsQueryVariants   — Primary/fallback full-text search expressions
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

LEGISLATION_BASE_URL = "https://www.legislation.gov.uk"
DEFAULT_COLLECTION = "ukpga"

type CitationType = Literal["statute", "statutory_instrument", "unknown"]
type CitationFormat = Literal["full", "short", "pinpoint"]

CITATION_FORMATS: tuple[str, ...] = ("full", "short", "pinpoint")


# ---------------------------------------------------------------------------
# Result ADT: strict Ok/Err
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Success case of Result[T, E].

    Usage::

        match parse_citation(text):
            case Ok(value=c): print(c.section)
            case Err(error=e): print(e.reason)
    """
    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failure case of Result[T, E]. Preserves the typed failure reason."""
    error: E


type Result[T, E] = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Catalog types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DocumentStub:
    """A document discovered on a feed page (not yet fetched)."""
    collection: str     # "ukpga"
    year: int           # 2018
    number: int         # 12
    title: str          # "Data Protection Act 2018"
    url: str            # Canonical URL rebuilt from collection/year/number
    updated: str        # ISO timestamp as published by the feed ("" if absent)

    @property
    def key(self) -> tuple[int, int]:
        """Deduplication key: (year, number)."""
        return (self.year, self.number)

    @property
    def document_id(self) -> str:
        """Store identifier, e.g. ``ukpga-2018-12``."""
        return f"{self.collection}-{self.year}-{self.number}"


@dataclass(frozen=True, slots=True)
class FeedPage:
    """One page of the paginated entry-list feed."""
    entries: tuple[DocumentStub, ...]
    has_next_page: bool
    total_results: int | None = None


# ---------------------------------------------------------------------------
# Provision types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ProvisionRecord:
    """One addressable unit of legislative text.

    Invariant (enforced in __post_init__): ``content`` is never empty after
    trimming. Whitespace-only nodes are dropped by the walker before a record
    is ever built.
    """
    provision_ref: str      # "s3", "s3(1)"
    section: str            # "3", "3(1)"
    heading: str | None     # "Terms relating to the processing of personal data"
    content: str

    def __post_init__(self) -> None:
        if not self.content.strip():
            raise ValueError(
                f"ProvisionRecord {self.provision_ref!r} has empty content"
            )


@dataclass(frozen=True, slots=True)
class ReferenceConflict:
    """A provision reference produced twice within one document.

    The first record is kept; the second is reported here instead of
    overwriting it.
    """
    provision_ref: str
    kept_section: str
    dropped_section: str


@dataclass(frozen=True, slots=True)
class ParsedAct:
    """A statute and its provisions, in document order."""
    id: str                 # "ukpga-2018-12"
    title: str
    short_name: str         # "DPA 2018"
    issued_date: str        # "2018-05-23"
    url: str
    provisions: tuple[ProvisionRecord, ...]
    conflicts: tuple[ReferenceConflict, ...] = ()
    type: str = "statute"
    status: str = "in_force"


# ---------------------------------------------------------------------------
# Citation types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Citation:
    """A successfully parsed legal citation.

    Section, subsection and paragraph are strings: legal numbering carries
    letters and composite forms ("12A").
    """
    type: CitationType
    title: str | None = None
    year: int | None = None
    section: str | None = None
    subsection: str | None = None
    paragraph: str | None = None

    @property
    def pinpoint(self) -> str:
        """Section with optional ``(subsection)`` and ``(paragraph)`` suffixes."""
        ref = self.section or ""
        if self.subsection:
            ref += f"({self.subsection})"
        if self.paragraph:
            ref += f"({self.paragraph})"
        return ref


@dataclass(frozen=True, slots=True)
class CitationParseError:
    """Typed failure for citation parsing. The reason names the input."""
    reason: str
    raw: str


type ParsedCitation = Ok[Citation] | Err[CitationParseError]


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of checking a citation against the provision store.

    Never persisted; always computed against the current store state.
    """
    citation: ParsedCitation
    document_exists: bool
    provision_exists: bool
    document_title: str | None = None
    status: str | None = None
    warnings: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Search types
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FtsQueryVariants:
    """Strict primary expression plus an optional looser fallback."""
    primary: str
    fallback: str | None = None
