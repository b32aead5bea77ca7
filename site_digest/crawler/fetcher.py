# site_digest/crawler/fetcher.py
"""
Fetcher module: HTTP retrieval over an ordered list of channels (direct or
proxied) with exponential backoff between attempts, plus request pacing.
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional
from urllib.parse import quote

from aiohttp import ClientError, ClientResponseError, ClientSession, ClientTimeout

from site_digest.config import DIRECT_CHANNEL, DigestConfig
from site_digest.crawler.models import FetchResponse
from site_digest.errors import FetchExhaustedError
from site_digest.logger import logger

SleepFunc = Callable[[float], Awaitable[None]]

__all__ = ("FetchChannel", "ResilientFetcher", "RequestPacer")


@dataclass(frozen=True, slots=True)
class FetchChannel:
    """One transport path: direct request or a proxy prefix."""

    prefix: str = DIRECT_CHANNEL

    @property
    def name(self) -> str:
        return self.prefix

    def target(self, url: str) -> str:
        if self.prefix == DIRECT_CHANNEL:
            return url
        return f"{self.prefix}{quote(url, safe='')}"


class ResilientFetcher:
    """Fetches a URL trying every channel per attempt, backing off between attempts.

    A non-2xx status or a connection-level error moves on to the next channel;
    only when all attempts over all channels fail is
    :class:`~site_digest.errors.FetchExhaustedError` raised.

    Use as an async context manager, or pass an existing ``ClientSession``.
    """

    def __init__(self, config: DigestConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None
        self.channels: List[FetchChannel] = [FetchChannel(c) for c in config.channels]
        self._sleep: SleepFunc = asyncio.sleep

    async def __aenter__(self) -> ResilientFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.timeout),
                headers={
                    "User-Agent": self.config.user_agent,
                    "Accept": self.config.accept,
                    "Accept-Language": self.config.accept_language,
                },
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> FetchResponse:
        if not self.session:
            raise RuntimeError("Session not initialized")

        attempts = self.config.retry_times
        last_error: Optional[BaseException] = None
        for attempt in range(attempts):
            for channel in self.channels:
                try:
                    async with self.session.get(channel.target(url)) as resp:
                        if 200 <= resp.status < 300:
                            body = await resp.text(errors="replace")
                            return FetchResponse(
                                url=url,
                                status=resp.status,
                                headers=resp.headers.copy(),
                                body=body,
                                channel=channel.name,
                            )
                        last_error = ClientResponseError(
                            resp.request_info,
                            resp.history,
                            status=resp.status,
                            message=resp.reason or "",
                            headers=resp.headers,
                        )
                        logger.debug("Channel %s returned HTTP %s for %s", channel.name, resp.status, url)
                except (ClientError, asyncio.TimeoutError) as exc:
                    last_error = exc
                    logger.warning("Channel %s failed for %s: %s", channel.name, url, exc or type(exc).__name__)

            if attempt + 1 < attempts:
                backoff = self.config.backoff_base * 2**attempt
                logger.debug("Retry %d/%d for %s after %.2f s", attempt + 1, attempts - 1, url, backoff)
                await self._sleep(backoff)

        raise FetchExhaustedError(url, attempts, last_error)


class RequestPacer:
    """Keeps at least ``delay`` seconds between the end of one request and the start of the next.

    Wrap every fetch in ``async with pacer:``; the gap is measured from the
    moment the previous fetch finished, retries and backoff included::

        async with pacer:
            response = await fetcher.fetch(url)
    """

    def __init__(
        self,
        delay: float,
        sleep: Optional[SleepFunc] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.delay = delay
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._clock = clock
        self._last_done_ts: Optional[float] = None

    async def wait(self) -> None:
        if self._last_done_ts is None or self.delay <= 0:
            return
        remaining = self.delay - (self._clock() - self._last_done_ts)
        if remaining > 0:
            await self._sleep(remaining)

    def done(self) -> None:
        self._last_done_ts = self._clock()

    async def __aenter__(self) -> RequestPacer:
        await self.wait()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.done()
