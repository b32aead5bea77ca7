# File: site_digest/crawler/__init__.py
"""site_digest.crawler: Обход сайта, устойчивая загрузка и извлечение содержимого."""

from .crawler import SiteDiscoverer
from .extractor import ContentExtractor
from .fetcher import RequestPacer, ResilientFetcher
from .models import ContentRecord, CrawlSession, CrawlState, FetchResponse, PageRef

__all__ = [
    "SiteDiscoverer",
    "ContentExtractor",
    "ResilientFetcher",
    "RequestPacer",
    "PageRef",
    "ContentRecord",
    "CrawlSession",
    "CrawlState",
    "FetchResponse",
]
