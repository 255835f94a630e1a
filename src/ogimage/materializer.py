# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Render a dynamic request and persist it under the output directory.

Naming (in order):
1. ``filename`` query parameter, ``.png`` appended unless already present.
   Not unique: concurrent requests sharing a custom name race and the last
   write wins.
2. base64url(sha256(png)) + ``.png``. Identical renders collapse to one file
   no matter how many pages or concurrent calls produce them, so overwriting
   an existing file is always safe.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import os
from pathlib import Path

from . import PNG_EXTENSION, ImageRequest, MaterializedImage
from .classifier import materialized_url
from .config import OgImageConfig
from .errors import ImageWriteError, MaterializeError
from .renderer import Renderer, render_png

logger = logging.getLogger(__name__)


def content_hash(data: bytes) -> str:
    """URL-safe base64 SHA-256 digest without padding."""
    digest = hashlib.sha256(data).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _check_custom_name(name: str) -> None:
    if any(ch in name for ch in ("/", "\\", "\x00")) or name in (".", ".."):
        raise MaterializeError(f"Invalid custom filename: {name!r}")


def image_name(data: bytes, filename: str | None = None) -> str:
    """Derive the output filename for rendered *data*."""
    if filename:
        _check_custom_name(filename)
        return filename if filename.endswith(PNG_EXTENSION) else f"{filename}{PNG_EXTENSION}"
    return f"{content_hash(data)}{PNG_EXTENSION}"


class OutputDirectory:
    """Shared ``_og/`` directory, created lazily on first write.

    ``ensure()`` is an idempotent "create if absent" and may be called any
    number of times from concurrent workers.
    """

    __slots__ = ("_path", "_ready")

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)
        self._ready = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def exists(self) -> bool:
        return self._ready or self._path.is_dir()

    def ensure(self) -> Path:
        if not self._ready:
            self._path.mkdir(parents=True, exist_ok=True)
            self._ready = True
        return self._path

    def __repr__(self) -> str:
        return f"OutputDirectory({str(self._path)!r})"


def _write_image(output_dir: OutputDirectory, name: str, data: bytes) -> Path:
    target = output_dir.ensure() / name
    target.write_bytes(data)
    return target


class Materializer:
    """Turns DynamicRequests into files under the output directory."""

    def __init__(self, config: OgImageConfig, renderer: Renderer, output_dir: OutputDirectory) -> None:
        self._config = config
        self._renderer = renderer
        self._output_dir = output_dir
        self.written_names: set[str] = set()

    @property
    def output_dir(self) -> OutputDirectory:
        return self._output_dir

    async def render(self, request: ImageRequest) -> bytes | None:
        """Render without persisting."""
        return await render_png(self._renderer, request, self._config.options)

    async def materialize(self, request: ImageRequest) -> MaterializedImage | None:
        """Render *request* and write the PNG. None means "no image".

        Raises:
            RenderError: renderer hard failure.
            MaterializeError: invalid custom filename.
            ImageWriteError: filesystem failure writing the PNG.
        """
        data = await self.render(request)
        if data is None:
            logger.debug("No image for %s", request.url)
            return None

        name = image_name(data, request.filename)
        try:
            path = await asyncio.to_thread(_write_image, self._output_dir, name, data)
        except OSError as e:
            raise ImageWriteError(f"Failed to write {self._output_dir.path / name}: {e}") from e

        self.written_names.add(name)
        url = materialized_url(self._config.site_base, name, route=self._config.route_path)
        logger.debug("Materialized %s -> %s (%d bytes)", request.url, url, len(data))
        return MaterializedImage(name=name, path=path, url=url, data=data)
