# seo_scout/crawler/fetcher.py
"""
Fetcher module: handles HTTP requests with timing, retry/backoff and timeout.

The crawler only depends on the :class:`Fetcher` protocol; :class:`PageFetcher`
is the aiohttp implementation used by default.
"""
from __future__ import annotations

import asyncio
import time
from typing import Optional, Protocol, Sequence

from aiohttp import ClientError, ClientSession, ClientTimeout

from seo_scout.config import CrawlerConfig
from seo_scout.crawler.models import FetchResult
from seo_scout.logger import logger

RETRY_STATUS: Sequence[int] = tuple(range(500, 600)) + (429,)

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class Fetcher(Protocol):
    """Anything able to GET a URL without raising."""

    async def fetch(self, url: str) -> FetchResult: ...


def _elapsed_ms(start: float) -> int:
    return int(round((time.monotonic() - start) * 1000))


def _decode(body: bytes, charset: Optional[str]) -> str:
    try:
        return body.decode(charset or "utf-8", errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


class PageFetcher:
    """Handles HTTP fetching with retries/backoff and timeout.

    Transport failures never escape: they come back as ``status=0`` with an
    error message.
    """

    def __init__(
        self,
        session: ClientSession,
        config: CrawlerConfig,
        retry_status: Sequence[int] = RETRY_STATUS,
    ) -> None:
        self.session = session
        self.config = config
        self._retry_status = retry_status
        self._proxy = str(config.proxy) if config.proxy else None

    @classmethod
    def create_session(cls, config: CrawlerConfig) -> ClientSession:
        """Builds a session with the configured timeout and headers."""
        return ClientSession(
            timeout=ClientTimeout(total=config.timeout),
            headers={"User-Agent": config.user_agent, "Accept": _ACCEPT},
            raise_for_status=False,
        )

    async def fetch(self, url: str) -> FetchResult:
        start = time.monotonic()
        attempts = 0
        while True:
            try:
                result = await self._get(url, start)
            except asyncio.TimeoutError:
                # no retry on timeout
                logger.debug("Timeout fetching %s", url)
                return FetchResult(
                    url=url, status=0, response_time_ms=_elapsed_ms(start),
                    error=f"Timeout after {self.config.timeout}s",
                )
            except (ClientError, ValueError) as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    logger.debug("Failed %s: %s", url, exc)
                    return FetchResult(
                        url=url, status=0, response_time_ms=_elapsed_ms(start),
                        error=str(exc) or type(exc).__name__,
                    )
                await self._backoff(url, attempts)
                continue

            if result.status in self._retry_status and attempts < self.config.retry_times:
                attempts += 1
                await self._backoff(url, attempts)
                continue
            return result

    async def _get(self, url: str, start: float) -> FetchResult:
        async with self.session.get(
            url,
            allow_redirects=self.config.follow_redirects,
            proxy=self._proxy,
        ) as resp:
            body = await resp.read()
            elapsed = _elapsed_ms(start)
            ctype = resp.headers.get("Content-Type", "").lower()
            html: Optional[str] = None
            if "html" in ctype or (not ctype and body.lstrip()[:1] == b"<"):
                html = _decode(body, resp.charset)
            redirect = None
            if 300 <= resp.status < 400:
                redirect = resp.headers.get("Location")
            return FetchResult(
                url=url,
                status=resp.status,
                html=html,
                response_time_ms=elapsed,
                size_bytes=len(body),
                content_type=ctype.split(";", 1)[0].strip(),
                redirect_location=redirect,
                # set only when a redirect chain was followed
                final_url=str(resp.url) if resp.history else None,
                redirect_status=resp.history[0].status if resp.history else 0,
            )

    async def _backoff(self, url: str, attempt: int) -> None:
        # exponential backoff, cap at 60s
        delay = min(2 ** (attempt - 1) * 0.5, 60)
        logger.debug("Retry %d/%d for %s after %.2f s", attempt, self.config.retry_times, url, delay)
        await asyncio.sleep(delay)


__all__ = ["Fetcher", "PageFetcher", "RETRY_STATUS"]
