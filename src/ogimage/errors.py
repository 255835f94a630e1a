# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""ogimage exception hierarchy.

All ogimage-specific errors inherit from OgImageError. The pipeline catches
them at the smallest affected unit (tag, else file), so none of them abort a
build; they exist so callers and logs can tell the failure kinds apart.
"""

from __future__ import annotations


class OgImageError(Exception):
    """Base exception for all ogimage errors."""


class ConfigError(OgImageError):
    """Invalid integration configuration."""


class ClassificationError(OgImageError):
    """Meta tag content could not be resolved as an absolute or relative URL."""

    def __init__(self, message: str, *, content: str = "") -> None:
        super().__init__(message)
        self.content = content


class RenderError(OgImageError):
    """The renderer failed hard (as opposed to reporting "no image")."""

    def __init__(self, message: str, *, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class MaterializeError(OgImageError):
    """A rendered image could not be named or persisted."""


class DocumentError(OgImageError):
    """An HTML asset could not be parsed or serialized."""


class ImageWriteError(MaterializeError):
    """Filesystem failure while writing a rendered image (file-scoped)."""
