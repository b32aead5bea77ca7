# site_digest/crawler/models.py
"""
Data models for the SiteDigest crawler and extractor.
"""
from __future__ import annotations

import enum
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Deque, List, Mapping, Optional, Set, Tuple

_HTML_TYPES = ("text/html", "application/xhtml+xml")


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """Successful response: requested URL, status, headers and decoded body."""

    url: str
    status: int
    headers: Mapping[str, str]
    body: str
    channel: str = "direct"

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value.lower()
        return ""

    @property
    def is_html(self) -> bool:
        return any(t in self.content_type for t in _HTML_TYPES)


@dataclass(frozen=True, slots=True)
class PageRef:
    """Discovered page. Identity is the canonical URL."""

    url: str
    title: str = field(compare=False)
    depth: int = field(compare=False)


@dataclass(frozen=True, slots=True)
class ContentRecord:
    """Extracted page body ready for document assembly."""

    url: str
    title: str
    content: str
    depth: int
    timestamp: datetime


class CrawlState(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class CrawlSession:
    """Mutable state of one discovery run.

    ``queued`` mirrors the URLs currently in ``queue`` so that membership
    checks stay O(1); a URL is never both visited and pending.
    """

    domain: str
    visited: Set[str] = field(default_factory=set)
    queue: Deque[Tuple[str, int]] = field(default_factory=deque)
    queued: Set[str] = field(default_factory=set)
    pages: List[PageRef] = field(default_factory=list)
    consecutive_failures: int = 0
    state: CrawlState = CrawlState.IDLE

    def enqueue(self, url: str, depth: int) -> bool:
        if url in self.visited or url in self.queued:
            return False
        self.queue.append((url, depth))
        self.queued.add(url)
        return True

    def next(self) -> Optional[Tuple[str, int]]:
        if not self.queue:
            return None
        url, depth = self.queue.popleft()
        self.queued.discard(url)
        return url, depth

    def mark_visited(self, url: str) -> bool:
        """Return False when *url* was already visited."""
        if url in self.visited:
            return False
        self.visited.add(url)
        return True

    @property
    def progress(self) -> Tuple[int, int]:
        return len(self.visited), len(self.visited) + len(self.queue)
