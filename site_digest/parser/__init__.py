# File: site_digest/parser/__init__.py
"""site_digest.parser: Разбор HTML: заголовки, ссылки, читаемый текст."""
