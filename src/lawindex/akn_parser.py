"""Akoma Ntoso parser: markup tree -> flat list of addressable provisions.

Parses legislation.gov.uk AKN XML into ProvisionRecords with:
- Inline markup flattening (see ``lawindex.markup_flatten``)
- An explicit per-kind node schema (MarkupNode) built from the XML tree
- A pure pre-order walk emitting one record per text-bearing section and
  one per non-empty subsection
- Stable provision references derived from ``eId`` attributes

2-phase approach:
    1. ``build_markup_tree`` converts the bs4 tree into MarkupNodes. Text
       for each section-like node is read once, in document order.
    2. ``walk_provisions`` descends the MarkupNode tree and returns records.
       Malformed nodes are skipped, never fatal.

Usage::

    act = parse_akn_document(xml, stub)
    for prov in act.provisions:
        print(prov.provision_ref, prov.content[:60])
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup
from bs4.element import NavigableString, PreformattedString, Tag

from lawindex.legal_types import (
    DocumentStub,
    ParsedAct,
    ProvisionRecord,
    ReferenceConflict,
)
from lawindex.markup_flatten import flatten_inline_elements

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Element kinds
# ---------------------------------------------------------------------------

# Pure containers: descended, never emit a record of their own.
CONTAINER_KINDS: frozenset[str] = frozenset({
    "body", "book", "part", "subpart", "chapter", "subchapter", "division",
})

# Section-like nodes emit a record for their own text.
# hcontainer is the generic container used for schedules.
SECTION_KINDS: frozenset[str] = frozenset({"section", "hcontainer"})

# Numbered sub-units that get their own record under a section.
SUBUNIT_KINDS: frozenset[str] = frozenset({"subsection"})

STRUCTURAL_KINDS: frozenset[str] = CONTAINER_KINDS | SECTION_KINDS

# Text-bearing children read in full (all nested text, reading order).
_FULL_TEXT_KINDS: frozenset[str] = frozenset({"content", "p", "block"})
# Text-bearing children read with the same own-text rules as a section.
_NESTED_TEXT_KINDS: frozenset[str] = frozenset({"intro", "wrapUp"})
# Numbered text children: "<num> <text>".
_NUMBERED_TEXT_KINDS: frozenset[str] = frozenset({"paragraph", "subparagraph"})

# Element boundaries that separate words when reading nested text.
_WORD_BREAK_KINDS: frozenset[str] = frozenset({
    "p", "block", "blockList", "item", "listIntroduction", "listWrapUp",
    "num", "heading", "content", "intro", "wrapUp", "paragraph",
    "subparagraph", "tblock", "table", "tr", "td", "th", "br",
})

_KIND_CODES: dict[str, str] = {
    "section": "s",
    "subsection": "ss",
    "hcontainer": "hc",
}

# eId "section-1" -> "s1"; "section-1-2" -> "s1(2)". The identifier wins over
# a disagreeing <num> label.
_SECTION_EID_RE = re.compile(r"(?<![A-Za-z])section-(\d+[A-Za-z]*)$")
_SUBSECTION_EID_RE = re.compile(r"(?<![A-Za-z])section-(\d+[A-Za-z]*)-(\d+[A-Za-z]*)$")

_LABEL_JUNK_RE = re.compile(r"[^\w]+")
_WS_RE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Node schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MarkupNode:
    """One structural node of the markup tree."""
    kind: str                           # "part" | "chapter" | "section" | "subsection" | "hcontainer" | ...
    eid: str                            # "section-3" ("" if absent)
    num: str | None                     # "3", "(1)"
    heading: str | None
    text: str                           # Own text, whitespace-collapsed ("" for containers)
    children: tuple[MarkupNode, ...] = ()   # Structural children and subsections, document order
    malformed_reason: str = ""          # "" if well-formed

    @property
    def subunits(self) -> tuple[MarkupNode, ...]:
        """Subsections among the children (sections only)."""
        return tuple(c for c in self.children if c.kind in SUBUNIT_KINDS)


@dataclass(frozen=True, slots=True)
class WalkResult:
    """Provisions emitted by a walk plus what was set aside."""
    provisions: tuple[ProvisionRecord, ...]
    conflicts: tuple[ReferenceConflict, ...] = ()
    skipped: tuple[str, ...] = ()       # Descriptions of malformed nodes


# ---------------------------------------------------------------------------
# bs4 helpers
# ---------------------------------------------------------------------------

def _local_name(tag: Tag) -> str:
    """Element name without namespace prefix."""
    return (tag.name or "").rsplit(":", 1)[-1]


def _is_text(node: object) -> bool:
    """Character data, excluding comments/processing instructions/doctypes."""
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def _child_tags(tag: Tag, *names: str) -> list[Tag]:
    """Direct element children, optionally filtered by local name."""
    wanted = set(names)
    return [
        child for child in tag.children
        if isinstance(child, Tag) and (not wanted or _local_name(child) in wanted)
    ]


def _find_descendant(tag: Tag | BeautifulSoup, name: str) -> Tag | None:
    """First descendant element with the given local name."""
    found = tag.find(lambda t: isinstance(t, Tag) and _local_name(t) == name)
    return found if isinstance(found, Tag) else None


def _normalize_ws(text: str) -> str:
    """Collapse whitespace runs to a single space and trim."""
    return _WS_RE.sub(" ", text).strip()


def _reading_text(tag: Tag) -> str:
    """All nested text in document order, with word breaks at block elements."""
    parts: list[str] = []
    for child in tag.children:
        if _is_text(child):
            parts.append(str(child))
        elif isinstance(child, Tag):
            inner = _reading_text(child)
            if _local_name(child) in _WORD_BREAK_KINDS:
                parts.append(f" {inner} ")
            else:
                parts.append(inner)
    return "".join(parts)


def _first_child_text(tag: Tag, name: str) -> str | None:
    """Normalized text of the first direct child named *name*, or None."""
    for child in _child_tags(tag, name):
        text = _normalize_ws(_reading_text(child))
        if text:
            return text
    return None


def _own_text(tag: Tag) -> str:
    """Text belonging to a node itself, excluding its numbered sub-units.

    Reads direct text plus ``content``/``p``/``block`` (all nested text),
    ``intro``/``wrapUp`` (recursively) and numbered ``paragraph`` children
    (prefixed with their ``num``). ``num``, ``heading`` and ``subsection``
    children are not part of the own text.
    """
    parts: list[str] = []
    for child in tag.children:
        if _is_text(child):
            parts.append(str(child))
            continue
        if not isinstance(child, Tag):
            continue
        name = _local_name(child)
        if name in _FULL_TEXT_KINDS:
            parts.append(_reading_text(child))
        elif name in _NESTED_TEXT_KINDS:
            parts.append(_own_text(child))
        elif name in _NUMBERED_TEXT_KINDS:
            body = _own_text(child)
            if body:
                label = _first_child_text(child, "num")
                parts.append(f"{label} {body}" if label else body)
    return _normalize_ws(" ".join(p for p in parts if p.strip()))


# ---------------------------------------------------------------------------
# Phase 1: bs4 tree -> MarkupNode tree
# ---------------------------------------------------------------------------

def _malformed_reason(tag: Tag, nums: list[str]) -> str:
    raw_eid = tag.get("eId")
    if isinstance(raw_eid, list) or (raw_eid is not None and _WS_RE.search(str(raw_eid).strip())):
        return f"invalid eId {raw_eid!r}"
    distinct = {n for n in nums if n}
    if len(distinct) > 1:
        return f"conflicting num labels {sorted(distinct)!r}"
    return ""


def build_markup_tree(tag: Tag) -> MarkupNode:
    """Convert an AKN element (typically ``body``) into a MarkupNode tree.

    Only structural kinds (plus subsections of a section) are kept as
    children, in document order; everything else is either
    read as text (section-like nodes) or ignored (containers).
    """
    kind = _local_name(tag)
    nums = [_normalize_ws(_reading_text(n)) for n in _child_tags(tag, "num")]
    reason = _malformed_reason(tag, nums)
    eid = "" if reason.startswith("invalid eId") else str(tag.get("eId") or "").strip()

    text = ""
    if kind in SECTION_KINDS or kind in SUBUNIT_KINDS:
        text = _own_text(tag)

    child_kinds = STRUCTURAL_KINDS | SUBUNIT_KINDS if kind == "section" else STRUCTURAL_KINDS
    children = tuple(
        build_markup_tree(child)
        for child in _child_tags(tag)
        if _local_name(child) in child_kinds and _local_name(child) != "body"
    )

    return MarkupNode(
        kind=kind,
        eid=eid,
        num=next((n for n in nums if n), None),
        heading=_first_child_text(tag, "heading"),
        text=text,
        children=children,
        malformed_reason=reason,
    )


# ---------------------------------------------------------------------------
# Provision references
# ---------------------------------------------------------------------------

def clean_label(num: str | None) -> str:
    """Strip punctuation and whitespace from a ``num`` label: "(1)" -> "1"."""
    if not num:
        return ""
    return _LABEL_JUNK_RE.sub("", num)


def build_provision_ref(
    eid: str,
    kind: str,
    num: str | None,
    *,
    parent_ref: str | None = None,
) -> str:
    """Derive a stable provision reference for a node.

    Preference order:
    1. ``section-<n>`` -> ``s<n>``; ``section-<n>-<m>`` -> ``s<n>(<m>)``.
    2. Any other non-empty ``eId``, verbatim.
    3. The cleaned ``num`` label: appended as ``(<n>)`` to the parent
       reference for sub-units, otherwise prefixed by the kind code.
    4. The lowercase kind name as a placeholder.
    """
    if eid:
        sub = _SUBSECTION_EID_RE.search(eid)
        if sub:
            return f"s{sub.group(1)}({sub.group(2)})"
        sec = _SECTION_EID_RE.search(eid)
        if sec:
            return f"s{sec.group(1)}"
        return eid

    cleaned = clean_label(num)
    if cleaned:
        if kind in SUBUNIT_KINDS and parent_ref:
            return f"{parent_ref}({cleaned})"
        return f"{_KIND_CODES.get(kind, kind.lower())}{cleaned}"

    return kind.lower()


def _eid_numbers(eid: str) -> tuple[str, str]:
    """(section number, sub number) encoded in an eId, "" where absent."""
    sub = _SUBSECTION_EID_RE.search(eid)
    if sub:
        return sub.group(1), sub.group(2)
    sec = _SECTION_EID_RE.search(eid)
    if sec:
        return sec.group(1), ""
    return "", ""


def _section_label(node: MarkupNode, ref: str) -> str:
    eid_section, eid_sub = _eid_numbers(node.eid)
    if eid_section and eid_sub:
        return f"{eid_section}({eid_sub})"
    return eid_section or clean_label(node.num) or ref


def _subunit_label(parent_label: str, sub: MarkupNode) -> str:
    _, eid_sub = _eid_numbers(sub.eid)
    sub_num = eid_sub or clean_label(sub.num)
    return f"{parent_label}({sub_num})" if sub_num else parent_label


# ---------------------------------------------------------------------------
# Phase 2: pure pre-order walk
# ---------------------------------------------------------------------------

def _describe(node: MarkupNode) -> str:
    ident = node.eid or node.num or "?"
    return f"{node.kind} {ident}: {node.malformed_reason}"


def _collect_subunit(
    section: MarkupNode,
    sub: MarkupNode,
    parent_ref: str,
    parent_label: str,
    records: list[ProvisionRecord],
    skipped: list[str],
) -> None:
    if sub.malformed_reason:
        skipped.append(_describe(sub))
    elif sub.text:
        records.append(ProvisionRecord(
            provision_ref=build_provision_ref(sub.eid, sub.kind, sub.num, parent_ref=parent_ref),
            section=_subunit_label(parent_label, sub),
            heading=section.heading,
            content=sub.text,
        ))
    for child in sub.children:
        _collect(child, records, skipped)


def _collect(node: MarkupNode, records: list[ProvisionRecord], skipped: list[str]) -> None:
    """Append records for *node* and everything under it, in source order."""
    ref = label = ""
    if node.kind in SECTION_KINDS:
        ref = build_provision_ref(node.eid, node.kind, node.num)
        label = _section_label(node, ref)
        if node.malformed_reason:
            skipped.append(_describe(node))
        elif node.text:
            records.append(ProvisionRecord(
                provision_ref=ref,
                section=label,
                heading=node.heading,
                content=node.text,
            ))
    for child in node.children:
        if child.kind in SUBUNIT_KINDS:
            _collect_subunit(node, child, ref, label, records, skipped)
        else:
            _collect(child, records, skipped)


def dedupe_references(
    records: list[ProvisionRecord],
) -> tuple[list[ProvisionRecord], list[ReferenceConflict]]:
    """Keep the first record per provision_ref; report later duplicates."""
    kept: list[ProvisionRecord] = []
    conflicts: list[ReferenceConflict] = []
    by_ref: dict[str, ProvisionRecord] = {}
    for rec in records:
        first = by_ref.get(rec.provision_ref)
        if first is None:
            by_ref[rec.provision_ref] = rec
            kept.append(rec)
        else:
            conflicts.append(ReferenceConflict(
                provision_ref=rec.provision_ref,
                kept_section=first.section,
                dropped_section=rec.section,
            ))
    return kept, conflicts


def walk_provisions(root: MarkupNode) -> WalkResult:
    """Emit provisions in document order (parent before its sub-units).

    Containers without section-like descendants emit nothing. Malformed
    nodes are skipped and logged; their siblings and children are still
    visited. Duplicate references are reported, never overwritten.
    """
    records: list[ProvisionRecord] = []
    skipped: list[str] = []
    _collect(root, records, skipped)
    kept, conflicts = dedupe_references(records)
    for note in skipped:
        logger.warning("Skipped malformed node %s", note)
    for conflict in conflicts:
        logger.warning(
            "Duplicate provision reference %s (kept section %s, dropped section %s)",
            conflict.provision_ref, conflict.kept_section, conflict.dropped_section,
        )
    return WalkResult(
        provisions=tuple(kept),
        conflicts=tuple(conflicts),
        skipped=tuple(skipped),
    )


# ---------------------------------------------------------------------------
# Document-level parsing
# ---------------------------------------------------------------------------

_SHORT_NAME_STOPWORDS = frozenset({"The", "And", "For", "Of", "In", "To", "With"})
_TRAILING_YEAR_RE = re.compile(r"\s+\d{4}$")


def build_short_name(title: str, year: int) -> str:
    """Abbreviate a title: "Data Protection Act 2018" -> "DPA 2018"."""
    bare = _TRAILING_YEAR_RE.sub("", title.replace("(", "").replace(")", "")).strip()
    words = bare.split()
    if len(words) <= 2:
        return f"{bare} {year}".strip()
    significant = [
        w for w in words
        if len(w) > 2 and w[0].isupper() and w not in _SHORT_NAME_STOPWORDS
    ]
    if len(significant) >= 2:
        initials = "".join(w[0] for w in significant[:4])
        return f"{initials} {year}"
    return f"{bare[:30].strip()} {year}"


def _frbr_work_attr(meta: Tag | None, element: str, attr: str) -> str:
    """Best-effort read of ``identification/FRBRWork/<element>@<attr>``."""
    if meta is None:
        return ""
    work = _find_descendant(meta, "FRBRWork")
    if work is None:
        return ""
    for child in _child_tags(work, element):
        value = child.get(attr)
        if isinstance(value, str) and value.strip():
            return _normalize_ws(value)
    return ""


def minimal_act(stub: DocumentStub) -> ParsedAct:
    """Placeholder act for a document with no parseable markup."""
    return ParsedAct(
        id=stub.document_id,
        title=stub.title,
        short_name="",
        issued_date=f"{stub.year}-01-01",
        url=stub.url,
        provisions=(),
    )


def parse_akn_document(xml: str, stub: DocumentStub) -> ParsedAct:
    """Parse an AKN document into a ParsedAct.

    Args:
        xml: Raw markup text (already fetched).
        stub: Catalog entry supplying id, fallback title and URL.

    Returns:
        ParsedAct whose provisions are in document order. A document with
        no ``body`` yields zero provisions.
    """
    soup = BeautifulSoup(flatten_inline_elements(xml).encode("utf-8"), "xml")
    act = _find_descendant(soup, "act")
    scope: Tag | BeautifulSoup = act if act is not None else soup
    meta = _find_descendant(scope, "meta")
    body = _find_descendant(scope, "body")

    title = _frbr_work_attr(meta, "FRBRalias", "value") or stub.title
    issued = _frbr_work_attr(meta, "FRBRdate", "date") or f"{stub.year}-01-01"

    if body is None:
        logger.info("No body element in %s; emitting no provisions", stub.document_id)
        result = WalkResult(provisions=())
    else:
        result = walk_provisions(build_markup_tree(body))

    logger.debug(
        "Parsed %d provisions from %s (%d conflicts, %d skipped)",
        len(result.provisions), stub.document_id,
        len(result.conflicts), len(result.skipped),
    )
    return ParsedAct(
        id=stub.document_id,
        title=title,
        short_name=build_short_name(title, stub.year),
        issued_date=issued,
        url=stub.url,
        provisions=result.provisions,
        conflicts=result.conflicts,
    )
