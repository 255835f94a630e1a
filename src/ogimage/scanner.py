# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Build asset discovery and HTML filtering."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

HTML_SUFFIXES = frozenset({".html", ".htm"})

BuildAsset = Path


def is_html_asset(path: str | os.PathLike[str]) -> bool:
    return Path(path).suffix in HTML_SUFFIXES


def html_assets(paths: Iterable[str | os.PathLike[str]]) -> list[BuildAsset]:
    """HTML documents among *paths*, in order, without duplicates."""
    seen: set[Path] = set()
    result: list[BuildAsset] = []
    for p in paths:
        path = Path(p)
        if path in seen or not is_html_asset(path):
            continue
        seen.add(path)
        result.append(path)
    return result


def flatten_assets(assets: Mapping[str, Iterable[str | os.PathLike[str]]] | Iterable[str | os.PathLike[str]]) -> list[BuildAsset]:
    """Flatten a route -> files mapping (or pass a flat iterable through)."""
    if isinstance(assets, Mapping):
        return [Path(f) for files in assets.values() for f in files]
    return [Path(f) for f in assets]


def _walk(build_dir: Path) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(build_dir):
        dirnames.sort()
        for name in sorted(filenames):
            yield Path(dirpath) / name


def collect_build_assets(build_dir: str | os.PathLike[str]) -> list[BuildAsset]:
    """Every file emitted under *build_dir*, in a stable order."""
    root = Path(build_dir)
    if not root.is_dir():
        raise NotADirectoryError(f"Build directory not found: {root}")
    return list(_walk(root))
