# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""ogimage: materialize dynamic Open Graph images after a static site build.

Pages reference ``<meta property="og:image" content="/_og?title=...">``.
After the build, every such reference is rendered once into a
content-addressed PNG under ``<build>/_og/`` and the tag is rewritten to the
absolute URL of that file:
- irrelevant references are left untouched
- ``/_og/<name>`` references are normalized against the site base
- ``/_og?...`` requests are rendered, named, written and rewritten
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from urllib.parse import parse_qsl, urlsplit

__all__ = ["ImageRequest", "MaterializedImage", "PNG_EXTENSION", "FILENAME_PARAM"]

PNG_EXTENSION = ".png"
FILENAME_PARAM = "filename"


@dataclass(frozen=True, slots=True)
class ImageRequest:
    """A dynamic ``/_og`` request parsed from a meta tag."""

    url: str  # fully resolved absolute URL, original query string intact
    query: tuple[tuple[str, str], ...]  # ordered, duplicates preserved
    filename: str | None = None  # naming override, None when absent or empty

    @classmethod
    def from_url(cls, url: str) -> ImageRequest:
        query = tuple(parse_qsl(urlsplit(url).query, keep_blank_values=True))
        filename = next((value for key, value in query if key == FILENAME_PARAM), None)
        return cls(url=url, query=query, filename=filename or None)

    @property
    def query_string(self) -> str:
        return urlsplit(self.url).query

    def params(self) -> dict[str, str]:
        """First value per key, in order of appearance."""
        result: dict[str, str] = {}
        for key, value in self.query:
            result.setdefault(key, value)
        return result


@dataclass(frozen=True, slots=True)
class MaterializedImage:
    """Rendered PNG persisted under the output directory."""

    name: str  # "<hash>.png" or "<custom>.png"
    path: Path
    url: str  # "<site-base>/_og/<name>"
    data: bytes

    def __repr__(self) -> str:
        return f"MaterializedImage(name={self.name!r}, path={str(self.path)!r}, url={self.url!r}, size={len(self.data)})"
