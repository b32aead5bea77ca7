# === FILE: site_digest/parser/html_parser.py ===
"""HTML parsing utilities for SiteDigest.

Provides the pieces of page understanding shared by discovery and extraction:

* :func:`parse_html`: markup to :class:`~bs4.BeautifulSoup`.
* :func:`resolve_title`: walks a configurable rule table (heading, Open Graph,
  Twitter card, meta title, CMS title classes, ``<title>``) and returns the
  first non-empty value, falling back to ``"Untitled Page"``.
* :func:`harvest_links`: raw link candidates from ``<a href>``, inline
  ``onclick`` navigation and ``data-href`` hints.
* :func:`parse_page`: all of the above bundled into :class:`ParsedPage`.

Nothing here resolves or filters URLs; see :mod:`site_digest.crawler.link_extractor`.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterable, List

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_digest.config import TitleRule

__all__: Sequence[str] = ("ParsedPage", "parse_html", "parse_page", "resolve_title", "harvest_links")

UNTITLED = "Untitled Page"

_ONCLICK_RE = re.compile(r"""location(?:\.href)?\s*=\s*(['"])(?P<href>[^'"]+)\1""")


@dataclass(slots=True)
class ParsedPage:
    """Lightweight representation of an HTML page."""

    url: str
    title: str
    links: list[str]


def parse_html(markup: str) -> BeautifulSoup:
    return BeautifulSoup(markup, "html.parser")


def _rule_value(soup: BeautifulSoup, rule: TitleRule) -> str:
    tag = soup.select_one(rule.selector)
    if not isinstance(tag, Tag):
        return ""
    if rule.attribute:
        value = tag.get(rule.attribute)
        if isinstance(value, list):
            value = " ".join(value)
        raw = value or ""
    else:
        raw = tag.get_text()
    return " ".join(raw.split())


def resolve_title(soup: BeautifulSoup, rules: Iterable[TitleRule]) -> str:
    """Return the first non-empty title produced by *rules*."""
    for rule in rules:
        title = _rule_value(soup, rule)
        if title:
            return title
    return UNTITLED


def harvest_links(soup: BeautifulSoup) -> List[str]:
    """Collect raw hrefs from anchors, onclick handlers and data-href attributes.

    Duplicates collapse; first-seen order is kept so crawling stays deterministic.
    """
    found: dict[str, None] = {}

    for tag in soup.find_all("a", href=True):
        href = tag.get("href")
        if isinstance(href, str) and href.strip():
            found.setdefault(href.strip(), None)

    for tag in soup.find_all(attrs={"onclick": True}):
        onclick = tag.get("onclick")
        if not isinstance(onclick, str):
            continue
        match = _ONCLICK_RE.search(onclick)
        if match:
            found.setdefault(match.group("href").strip(), None)

    for tag in soup.find_all(attrs={"data-href": True}):
        href = tag.get("data-href")
        if isinstance(href, str) and href.strip():
            found.setdefault(href.strip(), None)

    return list(found)


def parse_page(url: str, markup: str, rules: Iterable[TitleRule]) -> ParsedPage:
    soup = parse_html(markup)
    return ParsedPage(url=url, title=resolve_title(soup, rules), links=harvest_links(soup))
