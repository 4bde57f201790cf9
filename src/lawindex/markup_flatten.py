"""Flatten inline Akoma Ntoso markup into plain text before structural parsing.

legislation.gov.uk uses inline elements for amendments and cross-references::

    <p>Most processing is subject to the <ins ukl:ChangeId="c1">UK GDPR</ins>.</p>
    <p>Data protection <ref href="/eur/2016/679">GDPR</ref> applies.</p>

Structural parsing reads text per element kind, so an inline element left in
place would have its text detached from the sentence around it. The inline
elements are rewritten to their text content first:

- ``<ref>``           cross-reference links (paired: keep text)
- ``<ins>``           inserted text (paired: keep text)
- ``<del>``           deleted text (paired: keep text)
- ``<authorialNote>`` editorial notes (paired: keep text)
- ``<noteRef/>``      commentary note references (self-closing: removed)
- ``<marker/>``       legislative markers (self-closing: removed)
- ``<ref/>``          self-closing cross-references (removed)

This is a pure text rewrite. It never raises: markup that does not match
the patterns below is left as-is.
"""
from __future__ import annotations

import re

MAX_FLATTEN_PASSES = 32

_PAIRED_KINDS: tuple[str, ...] = ("ins", "del", "ref", "authorialNote")
_SELF_CLOSING_KINDS: tuple[str, ...] = ("noteRef", "marker", "ref")

# Self-closing: <noteRef ... />, <marker/>, <ref href="..."/>
_SELF_CLOSING_RE = re.compile(
    r"<(?:" + "|".join(_SELF_CLOSING_KINDS) + r")\b[^<>]*/>"
)

# Paired: <ins ...>text</ins>. The closing tag must name the same element
# (back-reference), and the opening tag must not be self-closing.
_PAIRED_RE = re.compile(
    r"<(" + "|".join(_PAIRED_KINDS) + r")\b(?:[^<>]*[^<>/])?>"
    r"((?:(?!<\1\b)[\s\S])*?)"
    r"</\1\s*>"
)

_ANY_INLINE_RE = re.compile(
    r"</?(?:" + "|".join(sorted({*_PAIRED_KINDS, *_SELF_CLOSING_KINDS})) + r")\b"
)


def _flatten_once(xml: str) -> str:
    """One rewrite pass: strip self-closing kinds, unwrap paired kinds."""
    text = _SELF_CLOSING_RE.sub("", xml)
    text = _PAIRED_RE.sub(r"\2", text)
    # Self-closing elements that were nested inside a just-unwrapped element
    return _SELF_CLOSING_RE.sub("", text)


def flatten_inline_elements(xml: str) -> str:
    """Rewrite inline amendment/cross-reference markup to plain text.

    Passes repeat until nothing changes, so nested inline elements of
    different kinds (``<ins><ref>x</ref></ins>``) are fully unwrapped and
    flattening already-flattened text is a no-op.

    Args:
        xml: Raw Akoma Ntoso markup.

    Returns:
        Markup with the inline kinds removed or replaced by their text.
        All other structure is untouched.
    """
    if not xml:
        return xml
    current = xml
    for _ in range(MAX_FLATTEN_PASSES):
        flattened = _flatten_once(current)
        if flattened == current:
            break
        current = flattened
    return current


def has_inline_markup(xml: str) -> bool:
    """True when any recognised inline element tag remains in *xml*."""
    return bool(_ANY_INLINE_RE.search(xml))
