# File: site_digest/errors.py
"""site_digest.errors: Иерархия исключений сканера и сборщика документа."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "DigestError",
    "InvalidUrlError",
    "FetchExhaustedError",
    "BlockedError",
    "NoPagesFoundError",
    "ExtractionEmptyError",
    "SelectionEmptyError",
]


class DigestError(Exception):
    """Базовая ошибка SiteDigest; текст сообщения предназначен для оператора."""


class InvalidUrlError(DigestError, ValueError):
    """URL не удаётся разобрать как абсолютный http(s)-адрес."""

    def __init__(self, url: str) -> None:
        super().__init__(
            f"Invalid URL format: {url!r}. Please enter a valid URL including http:// or https://"
        )
        self.url = url


class FetchExhaustedError(DigestError):
    """Все каналы и все попытки загрузки одного URL завершились неудачей."""

    def __init__(self, url: str, attempts: int, last_error: Optional[BaseException] = None) -> None:
        reason = f": {last_error}" if last_error else ""
        super().__init__(f"Failed to fetch {url} after {attempts} attempts{reason}")
        self.url = url
        self.attempts = attempts
        self.last_error = last_error


class BlockedError(DigestError):
    """Слишком много ошибок загрузки подряд во время обхода."""

    def __init__(self, failures: int) -> None:
        super().__init__(
            f"Too many consecutive errors occurred ({failures}). The website might be:\n"
            "- Blocking automated access\n"
            "- Rate limiting requests\n"
            "- Having technical issues\n\n"
            "Try again later or check if the website is accessible."
        )
        self.failures = failures


class NoPagesFoundError(DigestError):
    """Обход завершился без единой HTML-страницы."""

    def __init__(self) -> None:
        super().__init__(
            "Unable to scan the website. This could be due to:\n"
            "- The website blocking automated access\n"
            "- Invalid URL or website structure\n"
            "- Technical issues with the website\n\n"
            "Please verify the URL and try again."
        )


class ExtractionEmptyError(DigestError):
    def __init__(self) -> None:
        super().__init__("Failed to extract content from any of the selected pages.")


class SelectionEmptyError(DigestError):
    def __init__(self) -> None:
        super().__init__("No pages selected. Select at least one page to extract.")
