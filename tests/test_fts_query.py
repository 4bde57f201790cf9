"""Tests for lawindex.fts_query — FTS5 query normalization."""
from __future__ import annotations

import pytest

from lawindex.fts_query import build_fts_query_variants, has_explicit_syntax, query_tokens


class TestBuildFtsQueryVariants:
    def test_plain_words(self) -> None:
        v = build_fts_query_variants("data protection")
        assert v.primary == '"data"* "protection"*'
        assert v.fallback == "data* OR protection*"

    def test_quoted_phrase_passthrough(self) -> None:
        v = build_fts_query_variants('"data protection"')
        assert v.primary == '"data protection"'
        assert v.fallback is None

    @pytest.mark.parametrize("query", [
        "data AND protection",
        "data OR privacy",
        "data NOT privacy",
        "protect*",
        "“data protection”",
    ])
    def test_explicit_syntax_passthrough(self, query: str) -> None:
        v = build_fts_query_variants(f"  {query}  ")
        assert v.primary == query
        assert v.fallback is None

    def test_punctuation_stripped(self) -> None:
        v = build_fts_query_variants("data-protection, (2018)!")
        assert v.primary == '"data-protection"* "2018"*'
        assert v.fallback == "data-protection* OR 2018*"

    def test_single_token(self) -> None:
        v = build_fts_query_variants("gdpr")
        assert v.primary == '"gdpr"*'
        assert v.fallback == "gdpr*"

    def test_only_punctuation(self) -> None:
        v = build_fts_query_variants("  ?!  ")
        assert v.primary == "?!"
        assert v.fallback is None

    def test_empty(self) -> None:
        v = build_fts_query_variants("")
        assert v.primary == ""
        assert v.fallback is None

    def test_lowercase_operators_are_words(self) -> None:
        v = build_fts_query_variants("law and order")
        assert v.fallback == "law* OR and* OR order*"


class TestHelpers:
    def test_has_explicit_syntax(self) -> None:
        assert has_explicit_syntax('"x"')
        assert not has_explicit_syntax("plain words")

    def test_query_tokens(self) -> None:
        assert query_tokens("a, b -- c") == ["a", "b", "--", "c"]
