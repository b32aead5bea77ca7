# === FILE: site_digest/config.py ===
"""
Модуль для загрузки и валидации конфигурации SiteDigest.
Используется Pydantic для описания схемы и проверки данных.

Эвристики (цепочка поиска заголовка, селекторы «мусорных» блоков) вынесены
в конфиг, чтобы их можно было подстроить под конкретный сайт без правки кода.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

DIRECT_CHANNEL = "direct"

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class TitleRule(BaseModel):
    """Одно правило поиска заголовка: CSS-селектор и (опционально) атрибут."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    selector: str = Field(..., min_length=1)
    attribute: Optional[str] = Field(None, description="None → текст элемента.")


DEFAULT_TITLE_RULES: List[TitleRule] = [
    TitleRule(selector="h1"),
    TitleRule(selector='meta[property="og:title"]', attribute="content"),
    TitleRule(selector='meta[name="twitter:title"]', attribute="content"),
    TitleRule(selector='meta[name="title"]', attribute="content"),
    TitleRule(selector=".post-title"),
    TitleRule(selector=".article-title"),
    TitleRule(selector="#title"),
    TitleRule(selector="title"),
]

DEFAULT_BOILERPLATE_SELECTORS: List[str] = [
    "script", "style", "iframe", "noscript", "embed", "object",
    "header", "footer", "nav",
    '[role="navigation"]',
    '[role="banner"]',
    '[role="complementary"]',
    '[aria-hidden="true"]',
    ".cookie-banner",
    "#cookie-notice",
    ".advertisement",
    ".popup",
    ".modal",
    ".social-share",
    ".newsletter-signup",
]


class DigestConfig(BaseModel):
    """Конфигурация одного запуска обхода и извлечения."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(100, ge=1, description="Жесткий лимит по числу страниц.")
    max_consecutive_errors: int = Field(5, ge=1, description="Порог ошибок подряд.")
    request_delay: float = Field(1.0, ge=0, description="Пауза между запросами (секунд).")
    retry_times: int = Field(3, ge=1, description="Число попыток на один URL.")
    backoff_base: float = Field(1.0, ge=0, description="Множитель паузы 2**attempt (секунд).")
    timeout: float = Field(15.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field(DEFAULT_USER_AGENT, min_length=1, description="Заголовок User-Agent.")
    accept: str = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"
    accept_language: str = "en-US,en;q=0.5"
    channels: List[str] = Field(
        default_factory=lambda: [DIRECT_CHANNEL],
        min_length=1,
        description="Каналы загрузки: 'direct' или префикс прокси.",
    )
    ignore_blog: bool = Field(True, description="Пропускать пути /blog/.")

    title_rules: List[TitleRule] = Field(default_factory=lambda: list(DEFAULT_TITLE_RULES))
    boilerplate_selectors: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BOILERPLATE_SELECTORS)
    )
    content_selector: str = 'main, [role="main"], article'

    document_title: str = "Website Content"
    output_name: str = "website-content.md"

    @field_validator("channels", mode="before")
    def _strip_channels(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [c.strip() if isinstance(c, str) else c for c in v]
        return v

    @field_validator("channels")
    def _check_channels(cls, v: List[str]) -> List[str]:
        for channel in v:
            if channel != DIRECT_CHANNEL and not channel.startswith(("http://", "https://")):
                raise ValueError(f"канал должен быть '{DIRECT_CHANNEL}' или http(s)-префиксом: {channel!r}")
        return v


_DEFAULT_CFG = Path("configs/default.yaml")

_PARSERS = {
    ".yaml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".yml": ("YAML", yaml.safe_load, yaml.YAMLError),
    ".json": ("JSON", json.loads, json.JSONDecodeError),
}


def _read_mapping(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    if suffix not in _PARSERS:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")
    label, parse, parse_error = _PARSERS[suffix]
    try:
        data = parse(path.read_text(encoding="utf-8")) or {}
    except parse_error as exc:
        raise ValueError(f"Неправильный {label} в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"{label}: ожидался mapping настроек, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> DigestConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект DigestConfig.
    Без явного пути берёт configs/default.yaml, а если его нет, значения по умолчанию.
    Явно указанный, но отсутствующий файл даёт FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.is_file():
            return DigestConfig()
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    return DigestConfig(**_read_mapping(path_obj))


__all__ = ["DigestConfig", "TitleRule", "DIRECT_CHANNEL", "load_config"]
