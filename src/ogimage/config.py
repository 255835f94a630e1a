# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Integration configuration: site base, render options, output layout.

Values come from keyword arguments first, then ``OGIMAGE_*`` environment
variables, then the defaults below.
"""

from __future__ import annotations

import os
from contextlib import suppress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit

from .errors import ConfigError

# Fallback base for relative og:image content and for canonical output URLs
# when no site is configured (the host dev server's default origin).
DEFAULT_SITE = "http://localhost:4321"

DEFAULT_OG_DIR = "_og"
DEFAULT_MAX_CONCURRENCY = 16


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Integration-wide options forwarded verbatim to the renderer."""

    background: str = "#ffffff"
    width: int = 1200
    height: int = 630
    scale: float = 1.0
    fonts: tuple[Any, ...] = ()  # opaque font descriptors, owned by the renderer

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.scale <= 0:
            raise ConfigError(f"Device scale factor must be positive, got {self.scale}")


@dataclass(frozen=True, slots=True)
class OgImageConfig:
    """Top-level settings for one integration instance."""

    site: str | None = None
    options: RenderOptions = field(default_factory=RenderOptions)
    og_dir_name: str = DEFAULT_OG_DIR
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    def __post_init__(self) -> None:
        if self.max_concurrency <= 0:
            raise ConfigError(f"max_concurrency must be positive, got {self.max_concurrency}")
        if not self.og_dir_name or "/" in self.og_dir_name or self.og_dir_name in (".", ".."):
            raise ConfigError(f"Invalid output directory name: {self.og_dir_name!r}")
        site = (self.site or "").strip()
        if site:
            try:
                parts = urlsplit(site)
            except ValueError as e:
                raise ConfigError(f"Invalid site URL {site!r}: {e}") from e
            if not parts.scheme or not parts.netloc:
                raise ConfigError(f"Site must be an absolute URL with scheme and host, got {site!r}")

    @property
    def site_base(self) -> str:
        """Configured site (or DEFAULT_SITE) without trailing slash."""
        site = (self.site or "").strip() or DEFAULT_SITE
        return site.rstrip("/")

    @property
    def route_path(self) -> str:
        return f"/{self.og_dir_name}"

    def output_dir(self, build_dir: str | os.PathLike[str]) -> Path:
        return Path(build_dir) / self.og_dir_name


def _env(name: str) -> str:
    return os.environ.get(name, "").strip()


def load_config(**overrides: Any) -> OgImageConfig:
    """Build an OgImageConfig from ``OGIMAGE_*`` env vars plus explicit overrides.

    Recognized variables: OGIMAGE_SITE, OGIMAGE_BACKGROUND, OGIMAGE_WIDTH,
    OGIMAGE_HEIGHT, OGIMAGE_SCALE, OGIMAGE_MAX_CONCURRENCY. Malformed numbers
    are ignored. Keyword overrides use the RenderOptions / OgImageConfig field
    names (``site``, ``background``, ``width``, ``fonts``, ...).
    """
    render_kwargs: dict[str, Any] = {}
    config_kwargs: dict[str, Any] = {}

    env_site = _env("OGIMAGE_SITE")
    if env_site:
        config_kwargs["site"] = env_site

    env_background = _env("OGIMAGE_BACKGROUND")
    if env_background:
        render_kwargs["background"] = env_background

    env_width = _env("OGIMAGE_WIDTH")
    if env_width:
        with suppress(ValueError):
            render_kwargs["width"] = int(env_width)

    env_height = _env("OGIMAGE_HEIGHT")
    if env_height:
        with suppress(ValueError):
            render_kwargs["height"] = int(env_height)

    env_scale = _env("OGIMAGE_SCALE")
    if env_scale:
        with suppress(ValueError):
            render_kwargs["scale"] = float(env_scale)

    env_concurrency = _env("OGIMAGE_MAX_CONCURRENCY")
    if env_concurrency:
        with suppress(ValueError):
            config_kwargs["max_concurrency"] = int(env_concurrency)

    for key, value in overrides.items():
        if key in RenderOptions.__dataclass_fields__:
            render_kwargs[key] = tuple(value) if key == "fonts" else value
        elif key in OgImageConfig.__dataclass_fields__ and key != "options":
            config_kwargs[key] = value
        else:
            raise ConfigError(f"Unknown configuration key: {key}")

    return OgImageConfig(options=RenderOptions(**render_kwargs), **config_kwargs)
