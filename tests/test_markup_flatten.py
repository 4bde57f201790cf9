"""Tests for lawindex.markup_flatten — inline amendment/reference flattening."""
from __future__ import annotations

from lawindex.markup_flatten import flatten_inline_elements, has_inline_markup


class TestFlattenInlineElements:
    def test_paired_ref_replaced_by_text(self) -> None:
        xml = '<p>Data protection <ref href="/eur/2016/679">GDPR</ref> applies.</p>'
        assert flatten_inline_elements(xml) == "<p>Data protection GDPR applies.</p>"

    def test_ins_and_del_unwrapped(self) -> None:
        xml = '<p>subject to the <ins ukl:ChangeId="c1">UK GDPR</ins><del>old</del>.</p>'
        assert flatten_inline_elements(xml) == "<p>subject to the UK GDPRold.</p>"

    def test_authorial_note_unwrapped(self) -> None:
        xml = "<p>Text<authorialNote marker=\"1\"><p>Note</p></authorialNote></p>"
        assert flatten_inline_elements(xml) == "<p>Text<p>Note</p></p>"

    def test_self_closing_removed(self) -> None:
        xml = '<p>Words<noteRef href="#c1" class="commentary"/> more<marker name="x"/>.</p>'
        assert flatten_inline_elements(xml) == "<p>Words more.</p>"

    def test_self_closing_ref_removed(self) -> None:
        assert flatten_inline_elements('<p>a<ref href="/x"/>b</p>') == "<p>ab</p>"

    def test_nested_self_closing_inside_paired(self) -> None:
        xml = '<p>The <ins>amended<noteRef href="#n1"/> words</ins> apply.</p>'
        assert flatten_inline_elements(xml) == "<p>The amended words apply.</p>"

    def test_nested_paired_kinds(self) -> None:
        xml = '<p><ins><ref href="/a">section 3</ref></ins> applies</p>'
        assert flatten_inline_elements(xml) == "<p>section 3 applies</p>"

    def test_other_structure_untouched(self) -> None:
        xml = '<section eId="section-1"><num>1</num><content><p>Text</p></content></section>'
        assert flatten_inline_elements(xml) == xml

    def test_references_element_not_matched(self) -> None:
        # <references> shares a prefix with <ref> but is a different element
        xml = "<meta><references source=\"#x\"><TLCOrganization/></references></meta>"
        assert flatten_inline_elements(xml) == xml

    def test_unclosed_inline_left_as_is(self) -> None:
        xml = "<p>broken <ins>never closed</p>"
        assert flatten_inline_elements(xml) == xml

    def test_empty_input(self) -> None:
        assert flatten_inline_elements("") == ""

    def test_idempotent(self) -> None:
        xml = (
            '<p>The <ins><ref href="/a">UK GDPR</ref><noteRef href="#n"/></ins> '
            "and <del>the Directive</del>.</p>"
        )
        once = flatten_inline_elements(xml)
        assert flatten_inline_elements(once) == once
        assert not has_inline_markup(once)


class TestHasInlineMarkup:
    def test_detects_inline(self) -> None:
        assert has_inline_markup("<p><ins>x</ins></p>")
        assert has_inline_markup('<p><noteRef href="#a"/></p>')

    def test_plain_markup(self) -> None:
        assert not has_inline_markup("<p>plain</p>")
