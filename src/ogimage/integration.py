# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Host build-system entry points.

Two triggers share the classify/materialize logic:

- build completion: ``build_done(assets, build_dir)`` rewrites every emitted
  HTML asset and writes images under ``<build_dir>/_og/``
- dev-time route: ``render_request(url)`` renders one ``/_og?...`` request
  on demand and returns the PNG without touching the filesystem

Usage::

    integration = OgImageIntegration(load_config(site="https://site.example"), my_renderer)
    report = await integration.build_dir_done("dist")
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable, Mapping

from .classifier import DynamicRequest, classify
from .config import OgImageConfig, load_config
from .pipeline import BuildReport, transform_assets
from .renderer import Renderer, RenderFunc, as_renderer, render_png
from .scanner import collect_build_assets, flatten_assets, html_assets

logger = logging.getLogger(__name__)

AssetList = Mapping[str, Iterable[str | os.PathLike[str]]] | Iterable[str | os.PathLike[str]]


class OgImageIntegration:
    """Binds one configuration and renderer to the host's lifecycle hooks."""

    name = "og-image"

    def __init__(self, config: OgImageConfig | None = None, renderer: Renderer | RenderFunc | None = None) -> None:
        if renderer is None:
            raise TypeError("OgImageIntegration requires a renderer")
        self.config = config or load_config()
        self.renderer = as_renderer(renderer)

    @property
    def route_pattern(self) -> str:
        """Path of the dynamic endpoint served in dev."""
        return self.config.route_path

    async def build_done(self, assets: AssetList, build_dir: str | os.PathLike[str]) -> BuildReport:
        """Build-completion hook: *assets* is a flat list or a route -> files map."""
        paths = flatten_assets(assets)
        logger.info(
            "Scanning %d HTML document(s) of %d build asset(s) for og:image references",
            len(html_assets(paths)),
            len(paths),
        )
        return await transform_assets(paths, build_dir, self.config, self.renderer)

    async def build_dir_done(self, build_dir: str | os.PathLike[str]) -> BuildReport:
        """Build-completion hook for hosts that only report the output directory."""
        paths = await asyncio.to_thread(collect_build_assets, build_dir)
        return await self.build_done(paths, build_dir)

    def run_build(self, build_dir: str | os.PathLike[str]) -> BuildReport:
        """Synchronous wrapper around build_dir_done for non-async hosts."""
        return asyncio.run(self.build_dir_done(build_dir))

    async def render_request(self, url: str) -> bytes | None:
        """Dev-time route: render one request URL on demand.

        Returns PNG bytes for a dynamic ``/_og?...`` request, None for
        anything else or when the renderer reports no image. Renderer
        failures propagate as RenderError so the route can answer 500.
        """
        classification = classify(url, self.config.site_base, route=self.config.route_path)
        if not isinstance(classification, DynamicRequest):
            return None
        return await render_png(self.renderer, classification.request, self.config.options)
