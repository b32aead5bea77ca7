# File: site_digest/utils.py
"""site_digest.utils: Нормализация и классификация URL для обхода одного домена.

Все функции чистые, без побочных эффектов. Каноническая форма URL
(см. :func:`normalize_url`) служит ключом дедупликации в пределах одного обхода.
"""

from __future__ import annotations

import re
from typing import FrozenSet, Optional, Sequence, Tuple
from urllib.parse import urljoin, urlsplit

from site_digest.errors import InvalidUrlError
from site_digest.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "resolve_url",
    "prepare_root_url",
    "extract_domain",
    "is_same_domain",
    "is_asset",
    "is_excluded",
    "is_blog",
)

_HTTP_SCHEMES: FrozenSet[str] = frozenset({"http", "https"})
_DEFAULT_PORTS = {"http": 80, "https": 443}
_UNFOLLOWABLE_PREFIXES: Tuple[str, ...] = ("mailto:", "javascript:", "tel:", "data:")

_INDEX_DOCUMENT_RE = re.compile(r"/index\.(?:html?|php|asp|aspx|jsp)$")

ASSET_EXTENSIONS: Tuple[str, ...] = (
    # images
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".bmp", ".ico", ".avif", ".tif", ".tiff",
    # video / audio
    ".mp4", ".avi", ".mov", ".webm", ".mkv", ".mp3", ".wav", ".ogg", ".flac", ".m4a",
    # documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".csv",
    # archives
    ".zip", ".rar", ".tar", ".gz", ".tgz", ".7z",
    # fonts
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    # code / data
    ".css", ".js", ".mjs", ".map", ".json", ".xml", ".rss",
)
ASSET_DIRECTORIES: FrozenSet[str] = frozenset(
    {"assets", "static", "media", "download", "fonts", "images"}
)

EXCLUDED_PATH_PATTERNS: Tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"/(?:tag|category|author|page)/\d+",
        r"/#",
        r"/feed/?$",
        r"/amp/?$",
        r"/print/?$",
        r"/share/?$",
        r"/cdn-cgi/",
        r"/wp-",
    )
)
# Проверяются на "?<query>"
EXCLUDED_QUERY_PATTERNS: Tuple[re.Pattern[str], ...] = tuple(
    re.compile(p) for p in (r"[?&]share=", r"[?&]print=")
)


def _split(url: str):
    try:
        parsed = urlsplit(url)
        # .port validates the port component and raises ValueError when broken
        parsed.port
    except ValueError as exc:
        raise InvalidUrlError(url) from exc
    if parsed.scheme.lower() not in _HTTP_SCHEMES or not parsed.hostname:
        raise InvalidUrlError(url)
    return parsed


def _strip_path(path: str) -> str:
    while True:
        stripped = _INDEX_DOCUMENT_RE.sub("", path.rstrip("/"))
        if stripped == path:
            return path
        path = stripped


def normalize_url(url: str) -> str:
    """Приводит URL к канонической форме.

    Схема и хост в нижнем регистре, порт по умолчанию и фрагмент отбрасываются,
    query сохраняется. Завершающие слэши и сегмент ``index.(html|htm|php|asp|aspx|jsp)``
    срезаются до стабильного результата, поэтому функция идемпотентна.
    """
    parsed = _split(url)
    scheme = parsed.scheme.lower()
    host = parsed.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = parsed.port
    netloc = host if port is None or port == _DEFAULT_PORTS[scheme] else f"{host}:{port}"
    path = _strip_path(parsed.path)
    query = f"?{parsed.query}" if parsed.query else ""
    return f"{scheme}://{netloc}{path}{query}"


def resolve_url(href: str, base_url: str) -> Optional[str]:
    """Разрешает ссылку относительно base_url.

    Возвращает None для пустых, фрагментных, не-http(s) и битых ссылок:
    для обхода это шум, а не ошибка.
    """
    raw = (href or "").strip()
    if not raw or raw.startswith("#") or raw.lower().startswith(_UNFOLLOWABLE_PREFIXES):
        return None
    try:
        absolute = urljoin(base_url, raw)
        _split(absolute)
    except (InvalidUrlError, ValueError):
        logger.debug("Unresolvable link %r on %s", href, base_url)
        return None
    return absolute


def prepare_root_url(raw: str) -> str:
    """Готовит корневой URL: добавляет https:// при отсутствии схемы и нормализует."""
    candidate = (raw or "").strip()
    if not candidate:
        raise InvalidUrlError(raw)
    if "://" not in candidate:
        candidate = "https://" + candidate.lstrip("/")
    return normalize_url(candidate)


def extract_domain(url: str) -> str:
    """Возвращает имя хоста URL в нижнем регистре."""
    return _split(url).hostname or ""


def is_same_domain(url: str, domain: str) -> bool:
    """Точное совпадение хоста, без склейки поддоменов."""
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return False
    return host is not None and host == domain.lower()


def is_asset(url: str) -> bool:
    """Проверяет, ведёт ли URL на статический (не HTML) ресурс."""
    path = urlsplit(url).path.lower()
    if path.endswith(ASSET_EXTENSIONS):
        return True
    directories = path.split("/")[:-1]
    return any(segment in ASSET_DIRECTORIES for segment in directories)


def is_excluded(url: str) -> bool:
    """Пагинация таксономий, фиды, AMP/print/share, служебные пути CMS.

    Шаблоны путей применяются только к пути (с фрагментом, если он есть),
    share/print-параметры только к query; хост в проверке не участвует.
    """
    parsed = urlsplit(url)
    path = f"{parsed.path}#{parsed.fragment}" if "#" in url else parsed.path
    if any(pattern.search(path) for pattern in EXCLUDED_PATH_PATTERNS):
        return True
    query = f"?{parsed.query}"
    return any(pattern.search(query) for pattern in EXCLUDED_QUERY_PATTERNS)


def is_blog(url: str, enabled: bool) -> bool:
    """При включённой опции отсекает пути, содержащие сегмент /blog/."""
    if not enabled:
        return False
    return "/blog/" in urlsplit(url).path.lower()
