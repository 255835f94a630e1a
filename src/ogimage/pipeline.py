# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Post-build orchestrator: scan -> parse -> classify -> materialize/rewrite -> serialize.

Per asset::

    Scanned -> Parsed -> TagsLocated -> (per tag: Classified -> Materialized |
    PassThrough | Skipped -> Rewritten?) -> Serialized (if dirty)

Terminal outcomes are WRITTEN_BACK, UNCHANGED and FAILED (with the stage).
Assets run concurrently, bounded by ``config.max_concurrency``. Failures are
contained at the smallest unit (tag, else file) and logged; nothing raised
here aborts the build, and ``transform_assets`` returns only after every
asset has settled.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import tempfile
import time
from collections.abc import Iterable
from contextlib import suppress
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import structlog

from .classifier import AlreadyMaterialized, DynamicRequest, Irrelevant, classify, materialized_url
from .config import OgImageConfig
from .document import HtmlDocument, OgMetaTag, rewrite
from .errors import DocumentError, ImageWriteError, OgImageError
from .materializer import Materializer, OutputDirectory
from .renderer import Renderer, RenderFunc, as_renderer
from .scanner import is_html_asset

logger = logging.getLogger(__name__)


class AssetOutcome(StrEnum):
    WRITTEN_BACK = "written_back"
    UNCHANGED = "unchanged"
    FAILED = "failed"


class Stage(StrEnum):
    """Last stage an asset reached (the failing stage for FAILED)."""

    SCANNED = "scanned"
    READ = "read"
    PARSE = "parse"
    TAGS_LOCATED = "tags_located"
    MATERIALIZE = "materialize"
    SERIALIZED = "serialized"
    WRITE = "write"


@dataclass(frozen=True, slots=True)
class AssetResult:
    """Terminal state of one asset."""

    path: Path
    outcome: AssetOutcome
    stage: Stage
    tags_found: int = 0
    tags_rewritten: int = 0
    tag_errors: int = 0
    error: str = ""


@dataclass
class BuildReport:
    """Aggregate of one build-completion run."""

    results: list[AssetResult] = field(default_factory=list)
    images: frozenset[str] = frozenset()
    elapsed_ms: float = 0.0

    def _count(self, outcome: AssetOutcome) -> int:
        return sum(1 for r in self.results if r.outcome == outcome)

    @property
    def written_back(self) -> int:
        return self._count(AssetOutcome.WRITTEN_BACK)

    @property
    def unchanged(self) -> int:
        return self._count(AssetOutcome.UNCHANGED)

    @property
    def failed(self) -> int:
        return self._count(AssetOutcome.FAILED)

    @property
    def tag_errors(self) -> int:
        return sum(r.tag_errors for r in self.results)

    def result_for(self, path: str | os.PathLike[str]) -> AssetResult | None:
        target = Path(path)
        return next((r for r in self.results if r.path == target), None)


@dataclass(slots=True)
class TransformContext:
    """Shared, read-mostly state for all units of one run."""

    config: OgImageConfig
    materializer: Materializer


def _tag_label(tag: OgMetaTag) -> str:
    return f"line {tag.line}" if tag.line is not None else "unknown line"


async def resolve_tag_url(content: str, ctx: TransformContext) -> str | None:
    """Final URL for one og:image *content*, or None to leave it untouched.

    For dynamic requests the image is rendered and written before the URL
    is returned.
    """
    config = ctx.config
    classification = classify(content, config.site_base, route=config.route_path)

    if isinstance(classification, Irrelevant):
        return None
    if isinstance(classification, AlreadyMaterialized):
        return materialized_url(config.site_base, classification.name, route=config.route_path, encoded=True)
    if isinstance(classification, DynamicRequest):
        image = await ctx.materializer.materialize(classification.request)
        return image.url if image is not None else None
    raise TypeError(f"Unhandled classification: {classification!r}")


async def process_tag(tag: OgMetaTag, ctx: TransformContext) -> bool:
    """Classify, materialize and rewrite one tag. Returns True if rewritten."""
    content = tag.content
    url = await resolve_tag_url(content, ctx)
    if url is None or url == content:
        return False
    rewrite(tag, url)
    return True


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _write(path: Path, text: str) -> None:
    """Replace *path* atomically; on failure the original file is untouched."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        with suppress(OSError):
            shutil.copymode(path, tmp)
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)


async def transform_file(path: str | os.PathLike[str], ctx: TransformContext) -> AssetResult:
    """Run one asset through the pipeline. Never raises for asset-level failures."""
    path = Path(path)
    if not is_html_asset(path):
        return AssetResult(path=path, outcome=AssetOutcome.UNCHANGED, stage=Stage.SCANNED)

    with structlog.contextvars.bound_contextvars(asset=str(path)):
        try:
            text = await asyncio.to_thread(_read, path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Error reading %s: %s", path, e)
            return AssetResult(path=path, outcome=AssetOutcome.FAILED, stage=Stage.READ, error=str(e))

        try:
            document = HtmlDocument.parse(text, path)
        except DocumentError as e:
            logger.error("Error parsing %s: %s", path, e)
            return AssetResult(path=path, outcome=AssetOutcome.FAILED, stage=Stage.PARSE, error=str(e))

        tags = document.og_image_tags()
        rewritten = 0
        tag_errors = 0
        for tag in tags:
            try:
                if await process_tag(tag, ctx):
                    rewritten += 1
            except ImageWriteError as e:
                logger.error("Error writing og:image for %s, leaving file unmodified: %s", path, e)
                return AssetResult(
                    path=path,
                    outcome=AssetOutcome.FAILED,
                    stage=Stage.MATERIALIZE,
                    tags_found=len(tags),
                    tag_errors=tag_errors + 1,
                    error=str(e),
                )
            except OgImageError as e:
                tag_errors += 1
                logger.warning("Error processing og:image at %s in %s: %s", _tag_label(tag), path, e)
            except Exception:
                tag_errors += 1
                logger.exception("Unexpected error processing og:image at %s in %s", _tag_label(tag), path)

        if not document.dirty:
            return AssetResult(
                path=path,
                outcome=AssetOutcome.UNCHANGED,
                stage=Stage.TAGS_LOCATED,
                tags_found=len(tags),
                tag_errors=tag_errors,
            )

        try:
            output = document.serialize()
            await asyncio.to_thread(_write, path, output)
        except (DocumentError, OSError) as e:
            logger.error("Error writing %s: %s", path, e)
            return AssetResult(
                path=path,
                outcome=AssetOutcome.FAILED,
                stage=Stage.WRITE,
                tags_found=len(tags),
                tags_rewritten=rewritten,
                tag_errors=tag_errors,
                error=str(e),
            )

        logger.debug("Rewrote %d og:image tag(s) in %s", rewritten, path)
        return AssetResult(
            path=path,
            outcome=AssetOutcome.WRITTEN_BACK,
            stage=Stage.SERIALIZED,
            tags_found=len(tags),
            tags_rewritten=rewritten,
            tag_errors=tag_errors,
        )


async def transform_assets(
    paths: Iterable[str | os.PathLike[str]],
    build_dir: str | os.PathLike[str],
    config: OgImageConfig,
    renderer: Renderer | RenderFunc,
) -> BuildReport:
    """Materialize og:image references across every asset of one build."""
    start = time.monotonic()
    assets = list(dict.fromkeys(Path(p) for p in paths))
    materializer = Materializer(config, as_renderer(renderer), OutputDirectory(config.output_dir(build_dir)))
    ctx = TransformContext(config=config, materializer=materializer)
    semaphore = asyncio.Semaphore(config.max_concurrency)

    async def _process_one(path: Path) -> AssetResult:
        async with semaphore:
            return await transform_file(path, ctx)

    raw_results = await asyncio.gather(*(_process_one(p) for p in assets), return_exceptions=True)

    results: list[AssetResult] = []
    for path, r in zip(assets, raw_results, strict=True):
        if isinstance(r, BaseException):
            if not isinstance(r, Exception):
                raise r
            logger.error("Error processing file %s: %s", path, r)
            results.append(AssetResult(path=path, outcome=AssetOutcome.FAILED, stage=Stage.SCANNED, error=str(r)))
        else:
            results.append(r)

    report = BuildReport(
        results=results,
        images=frozenset(materializer.written_names),
        elapsed_ms=round((time.monotonic() - start) * 1000, 1),
    )
    logger.info(
        "og:image materialization finished in %.0fms: %d rewritten, %d unchanged, %d failed, %d image(s)",
        report.elapsed_ms,
        report.written_back,
        report.unchanged,
        report.failed,
        len(report.images),
    )
    return report
