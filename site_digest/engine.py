# File: site_digest/engine.py
"""site_digest.engine: Оркестрация фаз: обход, извлечение и сборка документа."""

from __future__ import annotations

import asyncio
from typing import List, Optional, Sequence, Union

from site_digest.config import DigestConfig
from site_digest.crawler.crawler import ProgressCallback, SiteDiscoverer
from site_digest.crawler.extractor import ContentExtractor
from site_digest.crawler.fetcher import RequestPacer, ResilientFetcher
from site_digest.crawler.models import ContentRecord, PageRef
from site_digest.errors import SelectionEmptyError
from site_digest.logger import logger
from site_digest.report.markdown_report import assemble

__all__ = ["start_discovery", "start_extraction", "build_document"]


async def start_discovery(
    cfg: DigestConfig,
    root_url: str,
    *,
    ignore_blog: Optional[bool] = None,
    on_progress: Optional[ProgressCallback] = None,
    stop: Optional[asyncio.Event] = None,
    pacer: Optional[RequestPacer] = None,
) -> List[PageRef]:
    """Запускает обход сайта в собственной HTTP-сессии и возвращает список PageRef."""
    async with ResilientFetcher(cfg) as fetcher:
        discoverer = SiteDiscoverer(fetcher, cfg, pacer)
        return await discoverer.discover(
            root_url, ignore_blog=ignore_blog, on_progress=on_progress, stop=stop
        )


async def start_extraction(
    cfg: DigestConfig,
    pages: Sequence[Union[PageRef, str]],
    *,
    on_progress: Optional[ProgressCallback] = None,
    pacer: Optional[RequestPacer] = None,
) -> List[ContentRecord]:
    """Извлекает содержимое выбранных страниц; пустой выбор отклоняется до сети."""
    extractor_input = list(pages)
    if not extractor_input:
        raise SelectionEmptyError()
    async with ResilientFetcher(cfg) as fetcher:
        return await ContentExtractor(fetcher, cfg, pacer).extract(extractor_input, on_progress)


async def build_document(
    cfg: DigestConfig,
    root_url: str,
    *,
    ignore_blog: Optional[bool] = None,
    on_discovery: Optional[ProgressCallback] = None,
    on_extraction: Optional[ProgressCallback] = None,
) -> str:
    """Полный неинтерактивный прогон: все найденные страницы попадают в документ.

    Обе фазы делят один RequestPacer, так что задержка соблюдается и на стыке фаз.
    """
    pacer = RequestPacer(cfg.request_delay)
    pages = await start_discovery(
        cfg, root_url, ignore_blog=ignore_blog, on_progress=on_discovery, pacer=pacer
    )
    logger.info("Найдено %d страниц, извлекаем содержимое…", len(pages))
    records = await start_extraction(cfg, pages, on_progress=on_extraction, pacer=pacer)
    return assemble(records, cfg.document_title)
