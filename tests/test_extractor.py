# File: tests/test_extractor.py
from __future__ import annotations

from typing import List, Tuple

import pytest

from site_digest.config import DigestConfig
from site_digest.crawler.extractor import ContentExtractor
from site_digest.crawler.models import PageRef
from site_digest.engine import start_extraction
from site_digest.errors import ExtractionEmptyError, SelectionEmptyError

from conftest import FakeFetcher, html_page

ROOT = "https://example.com"


@pytest.mark.asyncio()
async def test_partial_failure_keeps_other_records(fast_config: DigestConfig):
    fetcher = FakeFetcher(
        {
            ROOT: html_page("<main><p>Welcome</p></main>", title="Home"),
            f"{ROOT}/docs/guide": html_page("<article>Guide body</article>"),
        }
    )
    selection = [
        PageRef(url=ROOT, title="Home page", depth=1),
        PageRef(url=f"{ROOT}/gone", title="Gone", depth=2),
        PageRef(url=f"{ROOT}/docs/guide", title="Guide", depth=3),
    ]

    records = await ContentExtractor(fetcher, fast_config).extract(selection)

    assert [(r.url, r.title, r.depth, r.content) for r in records] == [
        (ROOT, "Home page", 1, "Welcome"),
        (f"{ROOT}/docs/guide", "Guide", 3, "Guide body"),
    ]
    assert all(r.timestamp.tzinfo is not None for r in records)


@pytest.mark.asyncio()
async def test_plain_urls_resolve_title_and_default_depth(fast_config: DigestConfig):
    fetcher = FakeFetcher({f"{ROOT}/about": html_page("<h1>About us</h1>\n<p>Text</p>")})

    [record] = await ContentExtractor(fetcher, fast_config).extract([f"{ROOT}/about"])

    assert record.title == "About us"
    assert record.depth == 1
    assert record.content == "About us\n\nText"


@pytest.mark.asyncio()
async def test_progress_reports_every_attempt(fast_config: DigestConfig):
    fetcher = FakeFetcher({ROOT: html_page("<p>x</p>")})
    seen: List[Tuple[int, int]] = []

    await ContentExtractor(fetcher, fast_config).extract(
        [f"{ROOT}/missing", ROOT], on_progress=lambda c, t: seen.append((c, t))
    )

    assert seen == [(1, 2), (2, 2)]


@pytest.mark.asyncio()
async def test_empty_selection_rejected_before_fetching(fast_config: DigestConfig):
    fetcher = FakeFetcher({ROOT: html_page("<p>x</p>")})
    with pytest.raises(SelectionEmptyError):
        await ContentExtractor(fetcher, fast_config).extract([])
    assert fetcher.calls == []


@pytest.mark.asyncio()
async def test_engine_rejects_empty_selection(fast_config: DigestConfig):
    with pytest.raises(SelectionEmptyError):
        await start_extraction(fast_config, [])


@pytest.mark.asyncio()
async def test_all_failures_raise_extraction_empty(fast_config: DigestConfig):
    with pytest.raises(ExtractionEmptyError):
        await ContentExtractor(FakeFetcher({}), fast_config).extract([ROOT, f"{ROOT}/x"])
