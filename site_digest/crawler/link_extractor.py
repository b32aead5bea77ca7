# site_digest/crawler/link_extractor.py
"""
Link filtering for SiteDigest discovery: raw candidates in, canonical
same-domain page URLs out.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from site_digest.logger import logger
from site_digest.utils import (
    is_asset,
    is_blog,
    is_excluded,
    is_same_domain,
    normalize_url,
    resolve_url,
)


def classify_link(href: str, base_url: str, domain: str, ignore_blog: bool) -> Optional[str]:
    """
    Run one candidate through the filter chain and return its canonical URL.

    Order: resolve, same domain, not an asset, not a blog path (if enabled),
    not an excluded path, normalize. ``None`` means the link is dropped.
    """
    absolute = resolve_url(href, base_url)
    if absolute is None:
        return None
    if not is_same_domain(absolute, domain):
        return None
    if is_asset(absolute):
        return None
    if is_blog(absolute, ignore_blog):
        return None
    if is_excluded(absolute):
        return None
    return normalize_url(absolute)


def filter_links(hrefs: Iterable[str], base_url: str, domain: str, ignore_blog: bool) -> List[str]:
    """Classify every candidate; returns unique canonical URLs in first-seen order."""
    kept: dict[str, None] = {}
    dropped = total = 0
    for href in hrefs:
        total += 1
        canonical = classify_link(href, base_url, domain, ignore_blog)
        if canonical is None:
            dropped += 1
            continue
        kept.setdefault(canonical, None)
    if dropped:
        logger.debug("Dropped %d of %d links on %s", dropped, total, base_url)
    return list(kept)
