# === FILE: site_digest/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from typing import Callable, List, Optional, Protocol

from site_digest.config import DigestConfig
from site_digest.crawler.fetcher import RequestPacer
from site_digest.crawler.link_extractor import filter_links
from site_digest.crawler.models import CrawlSession, CrawlState, FetchResponse, PageRef
from site_digest.errors import BlockedError, FetchExhaustedError, NoPagesFoundError
from site_digest.logger import get_logger
from site_digest.parser.html_parser import parse_page
from site_digest.utils import extract_domain, prepare_root_url

__all__ = ("ProgressCallback", "SiteDiscoverer")

ProgressCallback = Callable[[int, int], None]


class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchResponse: ...


class SiteDiscoverer:
    """Последовательный BFS-обход одного домена с лимитом страниц и порогом ошибок."""

    def __init__(self, fetcher: Fetcher, config: DigestConfig, pacer: Optional[RequestPacer] = None) -> None:
        self.fetcher = fetcher
        self.config = config
        self.pacer = pacer or RequestPacer(config.request_delay)
        self.logger = get_logger("crawler")
        self.session: Optional[CrawlSession] = None

    @property
    def state(self) -> CrawlState:
        return self.session.state if self.session else CrawlState.IDLE

    async def discover(
        self,
        root_url: str,
        *,
        ignore_blog: Optional[bool] = None,
        on_progress: Optional[ProgressCallback] = None,
        stop: Optional[asyncio.Event] = None,
    ) -> List[PageRef]:
        """Обходит сайт от root_url и возвращает страницы в порядке обнаружения.

        Raises InvalidUrlError (root), BlockedError, NoPagesFoundError.
        """
        root = prepare_root_url(root_url)
        skip_blog = self.config.ignore_blog if ignore_blog is None else ignore_blog
        session = CrawlSession(domain=extract_domain(root))
        self.session = session
        session.enqueue(root, 1)
        session.state = CrawlState.RUNNING

        self.logger.info("Старт обхода: %s (лимит %d страниц)", root, self.config.max_pages)
        start = time.monotonic()

        while session.queue and len(session.pages) < self.config.max_pages:
            if stop is not None and stop.is_set():
                self.logger.info("Обход остановлен по запросу на %d страницах", len(session.pages))
                break
            url, depth = session.next()  # type: ignore[misc]
            if not session.mark_visited(url):
                continue
            await self._process(session, url, depth, skip_blog)
            if on_progress is not None:
                on_progress(*session.progress)

        if not session.pages:
            session.state = CrawlState.FAILED
            raise NoPagesFoundError()

        session.state = CrawlState.COMPLETED
        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d страниц за %.2f с, в очереди осталось %d",
            len(session.pages), duration, len(session.queue),
        )
        return list(session.pages)

    async def _process(self, session: CrawlSession, url: str, depth: int, skip_blog: bool) -> None:
        try:
            async with self.pacer:
                response = await self.fetcher.fetch(url)
        except FetchExhaustedError as exc:
            session.consecutive_failures += 1
            self.logger.warning("Failed to scan %s: %s", url, exc)
            if session.consecutive_failures >= self.config.max_consecutive_errors:
                session.state = CrawlState.FAILED
                raise BlockedError(session.consecutive_failures) from exc
            return

        if not response.is_html:
            self.logger.debug("Skipping non-HTML %s (%s)", url, response.content_type or "no content type")
            return

        page = parse_page(url, response.body, self.config.title_rules)
        session.consecutive_failures = 0
        session.pages.append(PageRef(url=url, title=page.title, depth=depth))

        added = 0
        for link in filter_links(page.links, url, session.domain, skip_blog):
            if session.enqueue(link, depth + 1):
                added += 1
        self.logger.debug("%s: depth %d, %d new links", url, depth, added)
