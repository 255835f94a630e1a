# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

from __future__ import annotations

try:
    import ogimage  # noqa: F401
except ImportError:
    raise ImportError("ogimage is not installed. Run: pip install -e '.[dev]'") from None

from urllib.parse import parse_qsl, urlsplit

import pytest

from ogimage.config import OgImageConfig, RenderOptions

SITE = "https://site.example"


class FakeRenderer:
    """Deterministic renderer: bytes depend only on the ``title`` parameter.

    Requests without a title report "no image". A ``fail`` parameter makes
    the render raise.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, RenderOptions]] = []

    async def render(self, request, options):
        self.calls.append((request.url, options))
        params = dict(parse_qsl(urlsplit(request.url).query, keep_blank_values=True))
        if "fail" in params:
            raise RuntimeError("renderer exploded")
        title = params.get("title")
        if not title:
            return None
        return b"\x89PNG\r\n\x1a\n" + title.encode("utf-8")


def page(*contents: str, extra_head: str = "", body: str = "<p>Hello</p>") -> str:
    """Build an HTML page with one og:image meta tag per *contents* value."""
    metas = "".join(f'<meta property="og:image" content="{c}">' for c in contents)
    return (
        "<!DOCTYPE html>\n"
        f'<html lang="en"><head><meta charset="utf-8"><title>T</title>{metas}{extra_head}</head>'
        f"<body>{body}</body></html>"
    )


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def config() -> OgImageConfig:
    return OgImageConfig(site=SITE)


@pytest.fixture
def build_dir(tmp_path):
    d = tmp_path / "dist"
    d.mkdir()
    return d


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "OGIMAGE_SITE",
        "OGIMAGE_BACKGROUND",
        "OGIMAGE_WIDTH",
        "OGIMAGE_HEIGHT",
        "OGIMAGE_SCALE",
        "OGIMAGE_MAX_CONCURRENCY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_page():
    return page


@pytest.fixture
def write_page(build_dir):
    """Write an HTML page under the build dir and return its path."""

    def _write(relpath: str, html: str):
        path = build_dir / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        return path

    return _write
