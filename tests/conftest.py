# File: tests/conftest.py
from __future__ import annotations

from typing import Callable, Dict, List, Union

import pytest

from site_digest.config import DigestConfig
from site_digest.crawler.models import FetchResponse
from site_digest.errors import FetchExhaustedError

HTML = {"Content-Type": "text/html; charset=utf-8"}


def html_page(body: str, title: str = "") -> str:
    head = f"<title>{title}</title>" if title else ""
    return f"<html><head>{head}</head><body>{body}</body></html>"


class FakeFetcher:
    """
    In-memory stand-in for ResilientFetcher.

    ``routes`` maps URL → HTML string, FetchResponse, or an exception instance.
    Unknown URLs fail like an exhausted fetch.
    """

    def __init__(self, routes: Dict[str, Union[str, FetchResponse, Exception]]) -> None:
        self.routes = routes
        self.calls: List[str] = []

    async def fetch(self, url: str) -> FetchResponse:
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            raise FetchExhaustedError(url, 3, ConnectionError("no route"))
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FetchResponse):
            return route
        return FetchResponse(url=url, status=200, headers=HTML, body=route)


@pytest.fixture()
def fast_config() -> DigestConfig:
    """
    Return a DigestConfig with all waits disabled.
    """
    return DigestConfig(request_delay=0, backoff_base=0, timeout=2.0, retry_times=2)


@pytest.fixture()
def fake_fetcher_factory() -> Callable[[dict], FakeFetcher]:
    return FakeFetcher
