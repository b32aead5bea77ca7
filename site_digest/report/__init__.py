# File: site_digest/report/__init__.py
"""site_digest.report: Сохранение результатов (JSON-список страниц и Markdown-документ) для CLI и тестов."""

from site_digest.report.json_report import load_selection, render_json
from site_digest.report.markdown_report import assemble, render_markdown, save_markdown

__all__ = ["assemble", "render_markdown", "save_markdown", "render_json", "load_selection"]
