# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""og:image content classification.

Every meta tag's ``content`` resolves to exactly one of:

- ``Irrelevant``         : pathname outside ``/_og`` and ``/_og/*``
- ``AlreadyMaterialized``: ``/_og/<name>``, a previously written file
- ``DynamicRequest``     : exactly ``/_og``, query string = render request

Resolution: absolute URLs are taken as-is, anything else is resolved
against the site base. Content that fails both raises ClassificationError.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, urljoin, urlsplit

from . import ImageRequest
from .config import DEFAULT_OG_DIR, DEFAULT_SITE
from .errors import ClassificationError

DEFAULT_ROUTE = f"/{DEFAULT_OG_DIR}"

# Characters that may appear in a URL path segment without escaping.
_PATH_SAFE = ":@!$&'()*+,;=~"


@dataclass(frozen=True, slots=True)
class Irrelevant:
    """Not an og-image route reference; leave the tag alone."""

    url: str


@dataclass(frozen=True, slots=True)
class AlreadyMaterialized:
    """Points at an existing ``/_og/<name>`` file; normalize, never render."""

    name: str


@dataclass(frozen=True, slots=True)
class DynamicRequest:
    """Exactly ``/_og`` with query parameters; must be rendered."""

    url: str

    @property
    def request(self) -> ImageRequest:
        return ImageRequest.from_url(self.url)


Classification = Irrelevant | AlreadyMaterialized | DynamicRequest


def _checked(url: str) -> str:
    """Force lazy urlsplit validation (IPv6 brackets, port range)."""
    parts = urlsplit(url)
    _ = parts.port
    return url


def resolve(content: str, site: str | None = None) -> str:
    """Resolve tag content to an absolute URL.

    Raises:
        ClassificationError: content is neither a valid absolute URL nor
            resolvable relative to the site base.
    """
    content = content.strip()
    base = (site or DEFAULT_SITE).rstrip("/") + "/"
    try:
        if urlsplit(content).scheme:
            return _checked(content)
    except ValueError:
        pass
    try:
        return _checked(urljoin(base, content))
    except ValueError as e:
        raise ClassificationError(f"Cannot resolve og:image content {content!r}: {e}", content=content) from e


def classify(content: str, site: str | None = None, *, route: str = DEFAULT_ROUTE) -> Classification:
    """Classify one og:image ``content`` value against the site base."""
    if not content or not content.strip():
        return Irrelevant(url="")

    url = resolve(content, site)
    path = urlsplit(url).path

    if path == route:
        return DynamicRequest(url=url)
    prefix = route + "/"
    if path.startswith(prefix) and len(path) > len(prefix):
        return AlreadyMaterialized(name=path[len(prefix) :])
    return Irrelevant(url=url)


def materialized_url(site: str | None, name: str, *, route: str = DEFAULT_ROUTE, encoded: bool = False) -> str:
    """Canonical absolute URL ``<site-base>/_og/<name>``.

    *name* is a filename on disk unless *encoded* is set, in which case it was
    taken from a URL path and its ``/`` and ``%`` escapes are kept as-is.
    """
    base = (site or DEFAULT_SITE).rstrip("/")
    safe = _PATH_SAFE + "/%" if encoded else _PATH_SAFE
    return f"{base}{route}/{quote(name, safe=safe)}"
