"""UK legislation citation parsing and formatting.

Two stages:
    1. An ordered table of (pattern, constructor) pairs recognises the
       citation forms and splits out the pinpoint token, title and year.
       First match wins.
    2. A Lark grammar decomposes the pinpoint token ("3(1)(a)") into
       section, subsection and paragraph. A token the grammar rejects is
       kept verbatim as the section.

Accepted forms::

    Section 3, Data Protection Act 2018
    s. 3(1)(a) Data Protection Act 2018
    s. 12A DPA 2018

Parsing never raises on bad input; it returns ``Err(CitationParseError)``.
"""
from __future__ import annotations

import importlib
import logging
import re
from collections.abc import Callable
from typing import Any

from lawindex.legal_types import (
    CITATION_FORMATS,
    Citation,
    CitationParseError,
    CitationType,
    Err,
    Ok,
    ParsedCitation,
)

logger = logging.getLogger(__name__)

# Dynamic Lark import for pyright compatibility
_lark_mod = importlib.import_module("lark")
_lark_exc = importlib.import_module("lark.exceptions")

_LarkClass: Any = _lark_mod.Lark
_TransformerBase: Any = _lark_mod.Transformer
_v_args_decorator: Any = _lark_mod.v_args
_UnexpectedInput: type[Exception] = _lark_exc.UnexpectedInput


# ---------------------------------------------------------------------------
# Stage 1: citation forms
# ---------------------------------------------------------------------------

# Pinpoint token as it appears in running text. Deliberately looser than
# the stage-2 grammar so that odd tokens are still captured verbatim.
_TOKEN = r"\d+[A-Za-z]*(?:\([0-9A-Za-z]+\))*"

_FULL_RE = re.compile(
    rf"^(?:Section|s\.?)\s+({_TOKEN})\s*,?\s+(.+?)\s+(\d{{4}})$",
    re.IGNORECASE,
)
_ABBREV_RE = re.compile(
    rf"^s\.?\s+({_TOKEN})\s+([A-Z][A-Z0-9&\s]*?)\s+(\d{{4}})$",
)

_INSTRUMENT_RE = re.compile(r"\b(?:Regulations|Order|Rules)\b")


def citation_type_for(title: str) -> CitationType:
    """Statutory instruments are named Regulations, Order or Rules."""
    return "statutory_instrument" if _INSTRUMENT_RE.search(title) else "statute"


def _build_citation(match: re.Match[str]) -> Citation:
    token, title, year = match.group(1), " ".join(match.group(2).split()), match.group(3)
    section, subsection, paragraph = parse_pinpoint(token)
    return Citation(
        type=citation_type_for(title),
        title=title,
        year=int(year),
        section=section,
        subsection=subsection,
        paragraph=paragraph,
    )


CITATION_PATTERNS: tuple[tuple[re.Pattern[str], Callable[[re.Match[str]], Citation]], ...] = (
    (_FULL_RE, _build_citation),
    (_ABBREV_RE, _build_citation),
)


# ---------------------------------------------------------------------------
# Stage 2: pinpoint grammar
# ---------------------------------------------------------------------------

PINPOINT_GRAMMAR = r"""
start: SECTION_NUM subsection? paragraph?

subsection: "(" SECTION_NUM ")"
paragraph: "(" PARA_LABEL ")"

SECTION_NUM: /\d+[A-Z]*/
PARA_LABEL: /[a-z]+/

%import common.WS
%ignore WS
"""

_pinpoint_parser: Any = None


def _get_pinpoint_parser() -> Any:
    """Return the singleton Lark parser, creating it on first call."""
    global _pinpoint_parser
    if _pinpoint_parser is None:
        try:
            _pinpoint_parser = _LarkClass(PINPOINT_GRAMMAR, parser="lalr")
        except Exception:
            _pinpoint_parser = _LarkClass(PINPOINT_GRAMMAR, parser="earley", ambiguity="resolve")
    return _pinpoint_parser


@_v_args_decorator(inline=True)
class PinpointTransformer(_TransformerBase):
    """Transform a pinpoint parse tree into (section, subsection, paragraph)."""

    def start(self, section: str, *parts: tuple[str, str]) -> tuple[str, str | None, str | None]:
        found = dict(parts)
        return section, found.get("subsection"), found.get("paragraph")

    def subsection(self, number: str) -> tuple[str, str]:
        return ("subsection", number)

    def paragraph(self, label: str) -> tuple[str, str]:
        return ("paragraph", label)

    def SECTION_NUM(self, token: Any) -> str:
        return str(token)

    def PARA_LABEL(self, token: Any) -> str:
        return str(token)


_pinpoint_transformer = PinpointTransformer()


def parse_pinpoint(token: str) -> tuple[str, str | None, str | None]:
    """Split a pinpoint token into (section, subsection, paragraph).

    "3(1)(a)" -> ("3", "1", "a"); "12A" -> ("12A", None, None). Tokens the
    grammar rejects ("3(1)(2)") come back whole as the section.
    """
    try:
        tree: Any = _get_pinpoint_parser().parse(token)
        result: Any = _pinpoint_transformer.transform(tree)
    except _UnexpectedInput:
        logger.debug("Pinpoint %r outside grammar; keeping verbatim", token)
        return token, None, None
    section, subsection, paragraph = result
    return section, subsection, paragraph


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_citation(text: str) -> ParsedCitation:
    """Parse a UK legislation citation.

    Args:
        text: Citation string, e.g. "Section 3(1)(a), Data Protection Act 2018".

    Returns:
        ``Ok(Citation)`` on success, ``Err(CitationParseError)`` naming the
        input when no citation form matches.
    """
    cleaned = text.strip()
    for pattern, construct in CITATION_PATTERNS:
        match = pattern.match(cleaned)
        if match:
            return Ok(construct(match))
    return Err(CitationParseError(
        reason=f'Could not parse UK citation: "{text}"',
        raw=text,
    ))


def format_citation(parsed: ParsedCitation, fmt: str = "full") -> str:
    """Render a parsed citation.

    Formats:
        full:     "Section 3(1)(a), Data Protection Act 2018"
        short:    "s. 3(1)(a) Data Protection Act 2018"
        pinpoint: "s. 3(1)(a)"

    Invalid citations and citations without a section render as "".

    Raises:
        ValueError: *fmt* is not a known format name.
    """
    if fmt not in CITATION_FORMATS:
        raise ValueError(f"Unknown citation format: {fmt!r} (expected one of {CITATION_FORMATS})")
    match parsed:
        case Ok(value=Citation() as citation) if citation.section:
            pass
        case _:
            return ""

    pinpoint = citation.pinpoint
    if fmt == "pinpoint":
        return f"s. {pinpoint}"
    title_year = f"{citation.title or ''} {citation.year or ''}".strip()
    if fmt == "short":
        return f"s. {pinpoint} {title_year}".strip()
    return f"Section {pinpoint}, {title_year}".strip()
