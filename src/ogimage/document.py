# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Mutable HTML document model and og:image tag rewriter.

One HtmlDocument per asset, owned by the unit processing that asset, so no
locking is needed. Only ``<meta property="og:image">`` content is ever
mutated; everything else round-trips through lxml (modulo lxml's own
serialization normalization).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import lxml.html
from lxml import etree

from .errors import DocumentError

logger = logging.getLogger(__name__)

OG_IMAGE_PROPERTY = "og:image"
_OG_IMAGE_XPATH = etree.XPath('//meta[@property="og:image"]')


@dataclass(eq=False, slots=True)
class OgMetaTag:
    """A located ``<meta property="og:image">`` element of one document."""

    element: lxml.html.HtmlElement
    document: HtmlDocument

    @property
    def content(self) -> str:
        return self.element.get("content") or ""

    @property
    def line(self) -> int | None:
        return self.element.sourceline


class HtmlDocument:
    """Parsed HTML asset with a dirty flag."""

    __slots__ = ("_root", "path", "dirty")

    def __init__(self, root: lxml.html.HtmlElement, path: Path | None = None) -> None:
        self._root = root
        self.path = path
        self.dirty = False

    @classmethod
    def parse(cls, text: str, path: Path | None = None) -> HtmlDocument:
        """Parse *text*; raises DocumentError on empty or unparseable input."""
        if not text or not text.strip():
            raise DocumentError(f"Empty HTML document: {path or '<string>'}")
        try:
            parser = lxml.html.HTMLParser(recover=True, encoding="utf-8")
            root = lxml.html.document_fromstring(text.encode("utf-8"), parser=parser)
        except (etree.LxmlError, ValueError) as e:
            raise DocumentError(f"lxml parsing failed for {path or '<string>'}: {e}") from e
        return cls(root, path)

    @property
    def root(self) -> lxml.html.HtmlElement:
        return self._root

    def og_image_tags(self) -> list[OgMetaTag]:
        return [OgMetaTag(element=el, document=self) for el in _OG_IMAGE_XPATH(self._root)]

    def mark_dirty(self) -> None:
        self.dirty = True

    def serialize(self) -> str:
        """Serialize the whole tree, doctype included."""
        try:
            return etree.tostring(self._root.getroottree(), encoding="unicode", method="html")
        except (etree.LxmlError, ValueError) as e:
            raise DocumentError(f"Serialization failed for {self.path or '<string>'}: {e}") from e


def rewrite(tag: OgMetaTag, url: str) -> None:
    """Point *tag* at *url* and mark its document dirty.

    Only the ``content`` attribute changes; attribute order and every other
    node are left as parsed.
    """
    tag.element.set("content", url)
    tag.document.mark_dirty()
    logger.debug("Rewrote og:image on line %s to %s", tag.line, url)
