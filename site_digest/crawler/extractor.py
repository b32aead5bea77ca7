# site_digest/crawler/extractor.py
"""
Batch content extraction for the pages an operator selected.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence, Union

from site_digest.config import DigestConfig
from site_digest.crawler.crawler import Fetcher, ProgressCallback
from site_digest.crawler.fetcher import RequestPacer
from site_digest.crawler.models import ContentRecord, PageRef
from site_digest.errors import ExtractionEmptyError, FetchExhaustedError, SelectionEmptyError
from site_digest.logger import get_logger
from site_digest.parser.content import extract_text
from site_digest.parser.html_parser import parse_html, resolve_title

__all__ = ("ContentExtractor",)

Selection = Sequence[Union[PageRef, str]]


class ContentExtractor:
    """Fetches each selected page in turn and turns it into a :class:`ContentRecord`.

    A page that cannot be fetched is logged and skipped; the batch only fails
    when nothing at all could be extracted.
    """

    def __init__(self, fetcher: Fetcher, config: DigestConfig, pacer: Optional[RequestPacer] = None) -> None:
        self.fetcher = fetcher
        self.config = config
        self.pacer = pacer or RequestPacer(config.request_delay)
        self.logger = get_logger("extractor")

    async def extract(
        self,
        pages: Selection,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[ContentRecord]:
        if not pages:
            raise SelectionEmptyError()

        total = len(pages)
        records: List[ContentRecord] = []
        for index, item in enumerate(pages, start=1):
            ref = item if isinstance(item, PageRef) else None
            url = ref.url if ref else str(item)
            record = await self._extract_one(url, ref)
            if record is not None:
                records.append(record)
            if on_progress is not None:
                on_progress(index, total)

        if not records:
            raise ExtractionEmptyError()
        self.logger.info("Извлечено %d из %d страниц", len(records), total)
        return records

    async def _extract_one(self, url: str, ref: Optional[PageRef]) -> Optional[ContentRecord]:
        try:
            async with self.pacer:
                response = await self.fetcher.fetch(url)
        except FetchExhaustedError as exc:
            self.logger.warning("Failed to extract content from %s: %s", url, exc)
            return None

        soup = parse_html(response.body)
        content = extract_text(soup, self.config.boilerplate_selectors, self.config.content_selector)
        title = ref.title if ref else resolve_title(soup, self.config.title_rules)
        return ContentRecord(
            url=url,
            title=title,
            content=content,
            depth=ref.depth if ref else 1,
            timestamp=datetime.now(timezone.utc),
        )
