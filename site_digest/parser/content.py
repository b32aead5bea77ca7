# site_digest/parser/content.py
"""
Readable-text extraction: strips boilerplate and keeps the main content container.
"""
from __future__ import annotations

import copy
from typing import Iterable

from bs4 import BeautifulSoup
from bs4.element import Tag


def strip_boilerplate(root: Tag, selectors: Iterable[str]) -> None:
    """Remove every element matching one of *selectors* from *root* in place."""
    for selector in selectors:
        for element in root.select(selector):
            if not element.decomposed:
                element.decompose()


def to_paragraphs(text: str) -> str:
    """One paragraph per non-empty line, separated by a blank line."""
    lines = (line.strip() for line in text.splitlines())
    return "\n\n".join(line for line in lines if line)


def extract_text(soup: BeautifulSoup, boilerplate: Iterable[str], container_selector: str) -> str:
    """Return the readable text of the page held by *soup*.

    The soup itself is left untouched; work happens on a copy of ``<body>``.
    """
    body = soup.body if soup.body is not None else soup
    root = copy.copy(body)
    strip_boilerplate(root, boilerplate)
    main = root.select_one(container_selector) if container_selector else None
    target = main if isinstance(main, Tag) else root
    return to_paragraphs(target.get_text())
