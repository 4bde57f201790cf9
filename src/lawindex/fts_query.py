"""Full-text search query normalization.

Turns free user text into SQLite FTS5 match expressions: a strict primary
(every token as a quoted prefix) and a looser OR fallback. Queries that
already use FTS syntax are passed through untouched.
"""
from __future__ import annotations

import re

from lawindex.legal_types import FtsQueryVariants

_EXPLICIT_SYNTAX_RE = re.compile(r'["“”]|\bAND\b|\bOR\b|\bNOT\b|\*$')
_NON_WORD_RE = re.compile(r"[^\w\s-]")


def has_explicit_syntax(query: str) -> bool:
    """True when *query* already contains quotes, boolean operators or a trailing ``*``."""
    return bool(_EXPLICIT_SYNTAX_RE.search(query.strip()))


def query_tokens(query: str) -> list[str]:
    """Whitespace tokens with punctuation other than ``-`` removed; empties dropped."""
    tokens = (_NON_WORD_RE.sub("", raw) for raw in query.split())
    return [tok for tok in tokens if tok]


def build_fts_query_variants(query: str) -> FtsQueryVariants:
    """Build primary and fallback FTS5 expressions for *query*.

    "data protection" -> primary ``"data"* "protection"*``,
    fallback ``data* OR protection*``.
    """
    trimmed = query.strip()
    if has_explicit_syntax(trimmed):
        return FtsQueryVariants(primary=trimmed)

    tokens = query_tokens(trimmed)
    if not tokens:
        return FtsQueryVariants(primary=trimmed)

    return FtsQueryVariants(
        primary=" ".join(f'"{tok}"*' for tok in tokens),
        fallback=" OR ".join(f"{tok}*" for tok in tokens),
    )
