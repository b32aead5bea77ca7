# File: tests/test_crawler.py
# Discovery state machine: BFS order, filtering, dedup, budget and failure streaks
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from typing import List, Tuple

import pytest
from aiohttp import web

from site_digest.config import DigestConfig
from site_digest.crawler.crawler import SiteDiscoverer
from site_digest.crawler.extractor import ContentExtractor
from site_digest.crawler.fetcher import RequestPacer
from site_digest.crawler.models import CrawlState, FetchResponse
from site_digest.engine import start_discovery
from site_digest.errors import BlockedError, InvalidUrlError, NoPagesFoundError
from site_digest.utils import extract_domain

from conftest import FakeFetcher, html_page

ROOT = "https://example.com"


def links(*hrefs: str) -> str:
    return "".join(f'<a href="{h}">{h}</a>' for h in hrefs)


# --------------------------------------------------------------------------- #
#                              Filtering & depth                              #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_root_filters_links_and_assigns_depth(fast_config: DigestConfig):
    fetcher = FakeFetcher(
        {
            ROOT: html_page(
                links("/about", "/blog/post-1", "/assets/logo.png", "/page/2", "https://other.com/x"),
                title="Home",
            ),
        }
    )
    discoverer = SiteDiscoverer(fetcher, fast_config)
    pages = await discoverer.discover("example.com", ignore_blog=True)

    # /about was the only link left in the queue, and it fails in the fake
    assert fetcher.calls == [ROOT, f"{ROOT}/about"]
    assert [(p.url, p.depth) for p in pages] == [(ROOT, 1)]
    assert discoverer.session is not None
    assert discoverer.session.visited == {ROOT, f"{ROOT}/about"}


@pytest.mark.asyncio()
async def test_bfs_order_and_depths(fast_config: DigestConfig):
    fetcher = FakeFetcher(
        {
            ROOT: html_page(links("/a", "/b"), title="Root"),
            f"{ROOT}/a": html_page(links("/a/deep", "/b"), title="A"),
            f"{ROOT}/b": html_page(links("/"), title="B"),
            f"{ROOT}/a/deep": html_page("<h1>Deep</h1>"),
        }
    )
    pages = await SiteDiscoverer(fetcher, fast_config).discover(ROOT)

    assert [(p.url, p.title, p.depth) for p in pages] == [
        (ROOT, "Root", 1),
        (f"{ROOT}/a", "A", 2),
        (f"{ROOT}/b", "B", 2),
        (f"{ROOT}/a/deep", "Deep", 3),
    ]
    # every URL fetched exactly once
    assert sorted(fetcher.calls) == sorted(set(fetcher.calls))


@pytest.mark.asyncio()
async def test_never_leaves_root_host(fast_config: DigestConfig):
    fetcher = FakeFetcher(
        {
            ROOT: html_page(links("https://sub.example.com/x", "//other.com/y", "/ok")),
            f"{ROOT}/ok": html_page("<h1>OK</h1>"),
        }
    )
    await SiteDiscoverer(fetcher, fast_config).discover(ROOT)

    domain = extract_domain(ROOT)
    assert all(extract_domain(u) == domain for u in fetcher.calls)


@pytest.mark.asyncio()
async def test_host_resembling_cms_path_is_crawled(fast_config: DigestConfig):
    root = "https://wp-rocket.me"
    fetcher = FakeFetcher(
        {
            root: html_page(links("/about", "/wp-admin/")),
            f"{root}/about": html_page("<h1>About</h1>"),
        }
    )

    pages = await SiteDiscoverer(fetcher, fast_config).discover(root)

    assert [p.url for p in pages] == [root, f"{root}/about"]
    assert fetcher.calls == [root, f"{root}/about"]


@pytest.mark.asyncio()
async def test_onclick_and_data_href_links_are_followed(fast_config: DigestConfig):
    body = (
        "<button onclick=\"window.location.href='/from-onclick'\">go</button>"
        "<div onclick=\"location='/from-location'\">go</div>"
        '<span data-href="/from-data">go</span>'
    )
    fetcher = FakeFetcher(
        {
            ROOT: html_page(body),
            f"{ROOT}/from-onclick": html_page("<h1>1</h1>"),
            f"{ROOT}/from-location": html_page("<h1>2</h1>"),
            f"{ROOT}/from-data": html_page("<h1>3</h1>"),
        }
    )
    pages = await SiteDiscoverer(fetcher, fast_config).discover(ROOT)

    assert {p.url for p in pages} == {
        ROOT,
        f"{ROOT}/from-onclick",
        f"{ROOT}/from-location",
        f"{ROOT}/from-data",
    }


# --------------------------------------------------------------------------- #
#                                 Dedup & budget                              #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_queue_never_holds_duplicates(fast_config: DigestConfig):
    fetcher = FakeFetcher(
        {
            ROOT: html_page(links("/x", "/x/", "/x/index.html", "/y")),
            f"{ROOT}/x": html_page(links("/y", "/", "/x")),
            f"{ROOT}/y": html_page(links("/x", "/y")),
        }
    )
    discoverer = SiteDiscoverer(fetcher, fast_config)
    await discoverer.discover(ROOT)

    assert fetcher.calls == [ROOT, f"{ROOT}/x", f"{ROOT}/y"]


@pytest.mark.asyncio()
async def test_page_budget_is_exact():
    cfg = DigestConfig(request_delay=0, max_pages=100)
    routes = {ROOT: html_page(links(*(f"/p{i}" for i in range(150))))}
    routes.update({f"{ROOT}/p{i}": html_page(f"<h1>P{i}</h1>") for i in range(150)})
    discoverer = SiteDiscoverer(FakeFetcher(routes), cfg)

    pages = await discoverer.discover(ROOT)

    assert len(pages) == 100
    assert discoverer.session is not None
    assert len(discoverer.session.queue) == 51
    assert discoverer.state is CrawlState.COMPLETED


# --------------------------------------------------------------------------- #
#                           Content type & failures                           #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_non_html_contributes_nothing(fast_config: DigestConfig):
    json_resp = FetchResponse(
        url=f"{ROOT}/api",
        status=200,
        headers={"content-type": "application/json"},
        body='{"href": "/hidden"}',
    )
    fetcher = FakeFetcher({ROOT: html_page(links("/api")), f"{ROOT}/api": json_resp})
    discoverer = SiteDiscoverer(fetcher, fast_config)

    pages = await discoverer.discover(ROOT)

    assert [p.url for p in pages] == [ROOT]
    assert discoverer.session is not None
    assert discoverer.session.consecutive_failures == 0
    assert f"{ROOT}/hidden" not in fetcher.calls


@pytest.mark.asyncio()
async def test_five_failures_in_a_row_block(fast_config: DigestConfig):
    fetcher = FakeFetcher({ROOT: html_page(links(*(f"/dead{i}" for i in range(6))))})
    discoverer = SiteDiscoverer(fetcher, fast_config)

    with pytest.raises(BlockedError) as info:
        await discoverer.discover(ROOT)

    assert "Blocking automated access" in str(info.value)
    assert discoverer.state is CrawlState.FAILED
    # root + exactly five failing pages
    assert len(fetcher.calls) == 6


@pytest.mark.asyncio()
async def test_success_resets_failure_streak(fast_config: DigestConfig):
    hrefs = [f"/f{i}" for i in range(4)] + ["/ok"] + [f"/g{i}" for i in range(4)]
    fetcher = FakeFetcher({ROOT: html_page(links(*hrefs)), f"{ROOT}/ok": html_page("<h1>OK</h1>")})
    discoverer = SiteDiscoverer(fetcher, fast_config)

    pages = await discoverer.discover(ROOT)

    assert [p.url for p in pages] == [ROOT, f"{ROOT}/ok"]
    assert discoverer.state is CrawlState.COMPLETED
    assert discoverer.session is not None
    assert discoverer.session.consecutive_failures == 4


@pytest.mark.asyncio()
async def test_non_html_does_not_reset_streak(fast_config: DigestConfig):
    pdf_like = FetchResponse(url=f"{ROOT}/doc", status=200, headers={"Content-Type": "text/plain"}, body="x")
    hrefs = [f"/f{i}" for i in range(4)] + ["/doc", "/f4"]
    fetcher = FakeFetcher({ROOT: html_page(links(*hrefs)), f"{ROOT}/doc": pdf_like})

    with pytest.raises(BlockedError):
        await SiteDiscoverer(fetcher, fast_config).discover(ROOT)


@pytest.mark.asyncio()
async def test_no_pages_found(fast_config: DigestConfig):
    only_json = FetchResponse(url=ROOT, status=200, headers={"Content-Type": "application/json"}, body="{}")
    discoverer = SiteDiscoverer(FakeFetcher({ROOT: only_json}), fast_config)

    with pytest.raises(NoPagesFoundError):
        await discoverer.discover(ROOT)
    assert discoverer.state is CrawlState.FAILED


@pytest.mark.asyncio()
async def test_single_root_failure_is_not_blocking(fast_config: DigestConfig):
    with pytest.raises(NoPagesFoundError):
        await SiteDiscoverer(FakeFetcher({}), fast_config).discover(ROOT)


@pytest.mark.asyncio()
async def test_invalid_root_is_fatal(fast_config: DigestConfig):
    fetcher = FakeFetcher({})
    with pytest.raises(InvalidUrlError):
        await SiteDiscoverer(fetcher, fast_config).discover("https://")
    assert fetcher.calls == []


# --------------------------------------------------------------------------- #
#                             Progress & stopping                             #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_progress_is_monotonic(fast_config: DigestConfig):
    fetcher = FakeFetcher(
        {
            ROOT: html_page(links("/a", "/b", "/missing")),
            f"{ROOT}/a": html_page(links("/c")),
            f"{ROOT}/b": html_page(""),
            f"{ROOT}/c": html_page(""),
        }
    )
    seen: List[Tuple[int, int]] = []
    await SiteDiscoverer(fetcher, fast_config).discover(ROOT, on_progress=lambda c, t: seen.append((c, t)))

    assert seen[0] == (1, 4)
    assert seen[-1] == (5, 5)
    currents = [c for c, _ in seen]
    totals = [t for _, t in seen]
    assert currents == sorted(currents)
    assert totals == sorted(totals)


@pytest.mark.asyncio()
async def test_stop_event_ends_run_at_page_boundary(fast_config: DigestConfig):
    fetcher = FakeFetcher(
        {
            ROOT: html_page(links("/a", "/b")),
            f"{ROOT}/a": html_page(""),
            f"{ROOT}/b": html_page(""),
        }
    )
    stop = asyncio.Event()

    def on_progress(current: int, _total: int) -> None:
        if current == 2:
            stop.set()

    pages = await SiteDiscoverer(fetcher, fast_config).discover(ROOT, on_progress=on_progress, stop=stop)

    assert [p.url for p in pages] == [ROOT, f"{ROOT}/a"]


# --------------------------------------------------------------------------- #
#                         End-to-end over real HTTP                           #
# --------------------------------------------------------------------------- #


async def _serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest.mark.asyncio()
async def test_discovery_over_http(unused_tcp_port: int):
    app = web.Application()

    async def root(_):
        return web.Response(
            text='<title>Root</title><a href="/page1">P1</a><a href="/data.json">D</a>',
            content_type="text/html",
        )

    async def page1(_):
        return web.Response(text='<h1>Page One</h1><a href="/page2/">P2</a>', content_type="text/html")

    async def page2(_):
        return web.Response(text="<h1>Page Two</h1>", content_type="text/html")

    app.router.add_get("/", root)
    app.router.add_get("/page1", page1)
    app.router.add_get("/page2/", page2)
    app.router.add_get("/page2", page2)

    async for base in _serve_app(app, unused_tcp_port):
        cfg = DigestConfig(request_delay=0, backoff_base=0, retry_times=1, timeout=2.0)
        pages = await start_discovery(cfg, base)

    assert [(p.url, p.title, p.depth) for p in pages] == [
        (base, "Root", 1),
        (f"{base}/page1", "Page One", 2),
        (f"{base}/page2", "Page Two", 3),
    ]


# --------------------------------------------------------------------------- #
#                                 Politeness                                  #
# --------------------------------------------------------------------------- #


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _SlowFetcher(FakeFetcher):
    """Every fetch takes longer than the politeness delay."""

    def __init__(self, routes, clock: _Clock, duration: float) -> None:
        super().__init__(routes)
        self.clock = clock
        self.duration = duration

    async def fetch(self, url: str) -> FetchResponse:
        self.clock.now += self.duration
        return await super().fetch(url)


@pytest.mark.asyncio()
async def test_full_delay_between_slow_fetches_across_phases():
    cfg = DigestConfig(request_delay=1.0, backoff_base=0, retry_times=1)
    clock = _Clock()
    sleeps: List[float] = []

    async def record(seconds: float) -> None:
        sleeps.append(seconds)

    pacer = RequestPacer(cfg.request_delay, sleep=record, clock=clock)
    fetcher = _SlowFetcher(
        {
            ROOT: html_page(links("/a", "/missing")),
            f"{ROOT}/a": html_page("<p>A</p>"),
        },
        clock,
        duration=3.0,
    )

    pages = await SiteDiscoverer(fetcher, cfg, pacer).discover(ROOT)
    await ContentExtractor(fetcher, cfg, pacer).extract(pages)

    # 3 discovery fetches (one failing) + 2 extraction fetches
    assert len(fetcher.calls) == 5
    assert sleeps == [1.0] * 4
