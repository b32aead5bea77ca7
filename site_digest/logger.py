# === FILE: site_digest/logger.py ===
"""Logging setup for **SiteDigest**.

All modules log through the ``SiteDigest`` logger or one of its children
(``SiteDigest.crawler``, ``SiteDigest.fetcher`` ...)::

    from site_digest.logger import get_logger
    log = get_logger("crawler")
    log.info("Обход начат")

Console records go to *stderr*, stdout carries only command results
(JSON page lists, Markdown). An optional log file is rotated at 5 MiB.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "SiteDigest"

# Сторонние логгеры, которые на DEBUG засоряют вывод обхода
_NOISY_LOGGERS: Final[tuple] = ("aiohttp.access", "aiohttp.client", "asyncio")

_LevelT = Union[int, str]


class _CurrentStderrHandler(logging.StreamHandler):
    """Пишет в тот ``sys.stderr``, который актуален в момент записи.

    Нужен, когда поток подменяется (click ``CliRunner``, перенаправления),
    и обычный ``StreamHandler`` остался бы с закрытым потоком.
    """

    def __init__(self) -> None:
        super().__init__(sys.stderr)

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def _formatted(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``SiteDigest`` logger tree.

    Parameters
    ----------
    level
        Numeric or textual level; ``DEBUG`` also shows dropped links and
        per-channel fetch failures.
    log_file
        Optional path; records are appended with rotation (3 backups).
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        Drop handlers installed by an earlier call.
    """
    root = logging.getLogger(_LOGGER_NAME)
    root.setLevel(level)
    root.propagate = False

    if replace_handlers:
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    root.addHandler(_formatted(_CurrentStderrHandler(), log_format))
    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        root.addHandler(
            _formatted(
                RotatingFileHandler(str(log_file), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"),
                log_format,
            )
        )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return root


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Entry used by the CLI group callback."""
    return configure(level=level, log_file=log_file, log_format=log_format)


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """``SiteDigest`` or its child ``SiteDigest.<component>``."""
    if not component:
        return logging.getLogger(_LOGGER_NAME)
    return logging.getLogger(f"{_LOGGER_NAME}.{component}")


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "get_logger"]
