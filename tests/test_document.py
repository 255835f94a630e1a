# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for ogimage.document: parse, tag lookup, rewrite, serialize."""

from __future__ import annotations

import lxml.html
import pytest

from ogimage.document import HtmlDocument, rewrite
from ogimage.errors import DocumentError


class TestParse:
    def test_empty_document_rejected(self):
        with pytest.raises(DocumentError):
            HtmlDocument.parse("")

    def test_whitespace_document_rejected(self):
        with pytest.raises(DocumentError):
            HtmlDocument.parse("   \n ")

    def test_fresh_document_is_clean(self, make_page):
        doc = HtmlDocument.parse(make_page("/_og?title=a"))
        assert doc.dirty is False

    def test_non_ascii_content_survives(self, make_page):
        doc = HtmlDocument.parse(make_page("/_og?title=안녕", body="<p>héllo — 世界</p>"))
        assert doc.og_image_tags()[0].content == "/_og?title=안녕"
        assert "héllo — 世界" in doc.serialize()


class TestOgImageTags:
    def test_finds_all_og_image_tags(self, make_page):
        doc = HtmlDocument.parse(make_page("/_og?title=a", "https://cdn.example/b.png"))
        assert [t.content for t in doc.og_image_tags()] == ["/_og?title=a", "https://cdn.example/b.png"]

    def test_ignores_other_meta(self, make_page):
        html = make_page(
            extra_head=(
                '<meta property="og:title" content="/_og?title=a">'
                '<meta name="og:image" content="/_og?title=b">'
                '<meta property="og:image:width" content="1200">'
            )
        )
        assert HtmlDocument.parse(html).og_image_tags() == []

    def test_missing_content_is_empty_string(self):
        doc = HtmlDocument.parse('<html><head><meta property="og:image"></head><body></body></html>')
        assert doc.og_image_tags()[0].content == ""

    def test_tags_in_body_found(self):
        doc = HtmlDocument.parse('<html><body><meta property="og:image" content="/_og?x=1"></body></html>')
        assert len(doc.og_image_tags()) == 1


class TestRewrite:
    def test_rewrite_sets_content_and_marks_dirty(self, make_page):
        doc = HtmlDocument.parse(make_page("/_og?title=a"))
        tag = doc.og_image_tags()[0]
        rewrite(tag, "https://site.example/_og/x.png")
        assert tag.content == "https://site.example/_og/x.png"
        assert doc.dirty is True

    def test_rewrite_preserves_other_attributes_and_nodes(self):
        html = (
            "<!DOCTYPE html>\n<html><head>"
            '<meta data-a="1" property="og:image" content="/_og?title=a" id="og">'
            '<meta property="og:title" content="Title">'
            "</head><body><!-- keep --><p class=\"x\">text</p></body></html>"
        )
        doc = HtmlDocument.parse(html)
        rewrite(doc.og_image_tags()[0], "https://site.example/_og/x.png")
        out = doc.serialize()

        reparsed = lxml.html.document_fromstring(out)
        meta = reparsed.xpath('//meta[@property="og:image"]')[0]
        assert list(meta.attrib.items()) == [
            ("data-a", "1"),
            ("property", "og:image"),
            ("content", "https://site.example/_og/x.png"),
            ("id", "og"),
        ]
        assert reparsed.xpath('//meta[@property="og:title"]/@content') == ["Title"]
        assert "<!-- keep -->" in out
        assert '<p class="x">text</p>' in out

    def test_serialize_keeps_doctype(self, make_page):
        doc = HtmlDocument.parse(make_page("/_og?title=a"))
        assert doc.serialize().lower().startswith("<!doctype html>")

    def test_serialized_query_ampersand_round_trips(self, make_page):
        doc = HtmlDocument.parse(make_page("/_og?title=a&amp;b=c"))
        assert doc.og_image_tags()[0].content == "/_og?title=a&b=c"
        again = HtmlDocument.parse(doc.serialize())
        assert again.og_image_tags()[0].content == "/_og?title=a&b=c"

    def test_serialize_is_stable(self, make_page):
        doc = HtmlDocument.parse(make_page("https://cdn.example/a.png"))
        once = doc.serialize()
        assert HtmlDocument.parse(once).serialize() == once
