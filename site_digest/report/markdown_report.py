# File: site_digest/report/markdown_report.py
"""site_digest.report.markdown_report: Сборка итогового Markdown-документа через Jinja2."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timezone
from pathlib import Path
from typing import Iterable, List, Union

from jinja2 import Environment, PackageLoader, StrictUndefined

from site_digest.crawler.models import ContentRecord

MAX_HEADING_LEVEL = 6
DEFAULT_TITLE = "Website Content"

_BRACKETS_RE = re.compile(r"[\[\]]")
_ANCHOR_RE = re.compile(r"[^a-zA-Z0-9]")

_env = Environment(
    loader=PackageLoader("site_digest", "templates"),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


@dataclass(frozen=True, slots=True)
class _Entry:
    url: str
    title: str
    anchor: str
    indent: str
    heading: str
    crawled: str
    content: str


def order_records(records: Iterable[ContentRecord]) -> List[ContentRecord]:
    """Единый порядок для оглавления и тела: (глубина, URL)."""
    return sorted(records, key=lambda r: (r.depth, r.url))


def make_anchor(url: str) -> str:
    return _ANCHOR_RE.sub("-", url)


def _entry(record: ContentRecord) -> _Entry:
    level = max(record.depth, 1)
    crawled = record.timestamp
    if crawled.tzinfo is not None:
        crawled = crawled.astimezone(timezone.utc)
    return _Entry(
        url=record.url,
        title=_BRACKETS_RE.sub("", record.title),
        anchor=make_anchor(record.url),
        indent="  " * (level - 1),
        heading="#" * min(level + 1, MAX_HEADING_LEVEL),
        crawled=crawled.strftime("%Y-%m-%d %H:%M:%S UTC"),
        content=record.content,
    )


def assemble(records: Iterable[ContentRecord], title: str = DEFAULT_TITLE) -> str:
    """Собирает документ: заголовок, оглавление, затем содержимое страниц.

    Чистая функция: одинаковый вход всегда даёт одинаковый текст.
    """
    entries = [_entry(r) for r in order_records(records)]
    return _env.get_template("document.md.j2").render(title=title, entries=entries)


def render_markdown(
    records: Iterable[ContentRecord],
    output_path: Union[Path, str],
    title: str = DEFAULT_TITLE,
) -> Path:
    """Сохраняет документ в UTF-8 по указанному пути и возвращает Path.

    Пример:
    ```python
    from site_digest.report.markdown_report import render_markdown
    path = render_markdown(records, 'reports/website-content.md')
    ```
    """
    return save_markdown(assemble(records, title), output_path)


def save_markdown(text: str, output_path: Union[Path, str]) -> Path:
    """Записывает готовый Markdown в UTF-8, создавая недостающие каталоги."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    return output


__all__ = ["assemble", "render_markdown", "save_markdown", "order_records", "make_anchor"]
