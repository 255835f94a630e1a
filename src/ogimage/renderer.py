# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Renderer boundary.

The pixel engine is an external collaborator. It receives the full request
(``/_og`` URL plus every query parameter, untouched) together with the
integration-wide RenderOptions, and returns PNG bytes or ``None`` for
"no image" (e.g. the request lacks required content).

Blocking renderers are run with ``asyncio.to_thread`` so one slow render
never stalls the other assets.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from . import ImageRequest
from .config import RenderOptions
from .errors import RenderError

logger = logging.getLogger(__name__)

RenderResult = bytes | None
RenderFunc = Callable[[str, RenderOptions], "bytes | None | Awaitable[bytes | None]"]


@runtime_checkable
class Renderer(Protocol):
    async def render(self, request: ImageRequest, options: RenderOptions) -> RenderResult: ...


class CallableRenderer:
    """Adapt a ``fn(url, options)`` callable (sync or async) to Renderer."""

    __slots__ = ("_fn",)

    def __init__(self, fn: RenderFunc) -> None:
        self._fn = fn

    async def render(self, request: ImageRequest, options: RenderOptions) -> RenderResult:
        if inspect.iscoroutinefunction(self._fn):
            result = await self._fn(request.url, options)
        else:
            result = await asyncio.to_thread(self._fn, request.url, options)
            if inspect.isawaitable(result):
                result = await result
        return result

    def __repr__(self) -> str:
        return f"CallableRenderer({getattr(self._fn, '__qualname__', self._fn)!r})"


def as_renderer(renderer: Renderer | RenderFunc) -> Renderer:
    """Return *renderer* unchanged if it already has ``render``, else wrap it."""
    if isinstance(renderer, Renderer):
        return renderer
    if callable(renderer):
        return CallableRenderer(renderer)
    raise TypeError(f"Expected a Renderer or callable, got {type(renderer).__name__}")


async def render_png(renderer: Renderer, request: ImageRequest, options: RenderOptions) -> bytes | None:
    """Invoke the renderer and normalize its outcome.

    Returns PNG bytes, or None for "no image". Empty or non-bytes output is
    treated as "no image".

    Raises:
        RenderError: the renderer raised.
    """
    try:
        result = await renderer.render(request, options)
    except Exception as e:
        raise RenderError(f"Renderer failed for {request.url}: {e}", url=request.url) from e

    if result is None:
        return None
    if isinstance(result, bytearray | memoryview):
        result = bytes(result)
    if not isinstance(result, bytes):
        logger.debug("Renderer returned %s for %s, treating as no image", type(result).__name__, request.url)
        return None
    if not result:
        logger.debug("Renderer returned empty output for %s", request.url)
        return None
    return result
