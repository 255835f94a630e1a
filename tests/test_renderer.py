# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for ogimage.renderer: adapters and outcome normalization."""

from __future__ import annotations

import threading

import pytest

from ogimage import ImageRequest
from ogimage.config import RenderOptions
from ogimage.errors import RenderError
from ogimage.renderer import CallableRenderer, Renderer, as_renderer, render_png

URL = "https://site.example/_og?title=Hi"
REQUEST = ImageRequest.from_url(URL)
OPTIONS = RenderOptions()


class TestAsRenderer:
    def test_renderer_passed_through(self, renderer):
        assert as_renderer(renderer) is renderer
        assert isinstance(renderer, Renderer)

    def test_callable_wrapped(self):
        wrapped = as_renderer(lambda url, options: b"x")
        assert isinstance(wrapped, CallableRenderer)

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            as_renderer(42)

    @pytest.mark.asyncio
    async def test_sync_callable_runs_off_loop(self):
        seen = {}

        def fn(url, options):
            seen["thread"] = threading.current_thread()
            seen["args"] = (url, options)
            return b"png"

        result = await as_renderer(fn).render(REQUEST, OPTIONS)
        assert result == b"png"
        assert seen["args"] == (URL, OPTIONS)
        assert seen["thread"] is not threading.main_thread()

    @pytest.mark.asyncio
    async def test_async_callable(self):
        async def fn(url, options):
            return url.encode()

        assert await as_renderer(fn).render(REQUEST, OPTIONS) == URL.encode()


class TestRenderPng:
    @pytest.mark.asyncio
    async def test_bytes_returned(self):
        assert await render_png(as_renderer(lambda u, o: b"png"), REQUEST, OPTIONS) == b"png"

    @pytest.mark.asyncio
    async def test_bytearray_normalized(self):
        result = await render_png(as_renderer(lambda u, o: bytearray(b"png")), REQUEST, OPTIONS)
        assert result == b"png"
        assert type(result) is bytes

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, b"", "not bytes", 0])
    async def test_no_image_outcomes(self, value):
        assert await render_png(as_renderer(lambda u, o: value), REQUEST, OPTIONS) is None

    @pytest.mark.asyncio
    async def test_hard_failure_wrapped(self):
        def boom(url, options):
            raise ValueError("bad font")

        with pytest.raises(RenderError, match="bad font") as exc_info:
            await render_png(as_renderer(boom), REQUEST, OPTIONS)
        assert exc_info.value.url == URL
        assert isinstance(exc_info.value.__cause__, ValueError)
