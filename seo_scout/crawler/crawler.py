# === FILE: seo_scout/crawler/crawler.py ===
"""
Breadth-first SEO crawler (crawl frontier + orchestrator).

One logical worker processes one URL end to end (fetch → extract → classify
→ enqueue children) before taking the next. The only suspension points are
the fetch, the inter-request delay and a paused state; pause and stop requests
are observed at the top of each iteration.
"""
from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import replace
from pathlib import PurePosixPath
from typing import Deque, Dict, Iterable, List, Optional, Set
from urllib.parse import urljoin, urlsplit

from aiohttp import ClientSession

from seo_scout.config import CrawlerConfig
from seo_scout.crawler.fetcher import Fetcher, PageFetcher
from seo_scout.crawler.models import (
    BrokenLinkEntry,
    CrawlResultSet,
    CrawlState,
    CrawlStats,
    DiscoveredResource,
    ExtractionRecord,
    FetchResult,
    LinkRecord,
    LinkType,
    PageRecord,
    utc_timestamp,
)
from seo_scout.errors import CrawlerStateError, InvalidSeedUrl
from seo_scout.events import EventEmitter, LogLevel, Observer, ProgressSnapshot
from seo_scout.logger import logger
from seo_scout.parser.html_parser import PageExtractor
from seo_scout.utils import is_http_url, is_same_domain, normalize_url

__all__ = ("SeoCrawler", "UNKNOWN_SOURCE")

#: Source reported for a broken URL no crawled page links to (e.g. the seed).
UNKNOWN_SOURCE = "unknown"

LIMIT_REACHED = "limit reached"
QUEUE_DRAINED = "queue drained"
STOPPED_BY_USER = "stopped"


class SeoCrawler:
    """Crawl frontier with dedup, domain scoping, rate limiting and ETA tracking."""

    def __init__(
        self,
        config: Optional[CrawlerConfig] = None,
        *,
        fetcher: Optional[Fetcher] = None,
        extractor: Optional[PageExtractor] = None,
        observer: Optional[Observer] = None,
    ) -> None:
        self.config = config or CrawlerConfig()
        self.fetcher = fetcher
        self.extractor = extractor or PageExtractor(self.config)
        self.events = EventEmitter(observer)
        self.session: Optional[ClientSession] = None

        self.state = CrawlState.IDLE
        self.stop_reason = ""
        self.base_url = ""

        self.visited: Dict[str, PageRecord] = {}
        self.external: Dict[str, DiscoveredResource] = {}
        self.broken: Dict[str, BrokenLinkEntry] = {}
        self.files: Dict[str, DiscoveredResource] = {}
        self.stats = CrawlStats()
        self._queue: Deque[str] = deque()
        self._queued: Set[str] = set()

        self._stop_requested = False
        self._resume = asyncio.Event()
        self._resume.set()
        self._start_time: Optional[float] = None
        self._page_times: List[float] = []
        self._started_at = ""
        self._finished_at = ""

    # ------------------------------------------------------------------ #
    # Context management (owns the aiohttp session of the default fetcher)
    # ------------------------------------------------------------------ #
    async def __aenter__(self) -> SeoCrawler:
        if self.fetcher is None:
            self.session = PageFetcher.create_session(self.config)
            self.fetcher = PageFetcher(self.session, self.config)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()

    # ------------------------------------------------------------------ #
    # Frontier views
    # ------------------------------------------------------------------ #
    @property
    def queued(self) -> List[str]:
        """URLs waiting to be fetched, in dequeue order."""
        return list(self._queue)

    def is_queued(self, url: str) -> bool:
        return url in self._queued

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def start(self, seed_url: str) -> str:
        """Validates the seed, resets every set/counter and enters ``running``.

        Returns the normalized seed. Raises :class:`InvalidSeedUrl` before any
        state is touched.
        """
        if self.state in (CrawlState.RUNNING, CrawlState.PAUSED):
            raise CrawlerStateError(f"Crawler is already {self.state.value}")
        normalized = normalize_url(seed_url) if isinstance(seed_url, str) else ""
        if not normalized or not is_http_url(normalized):
            raise InvalidSeedUrl(seed_url)

        self._reset()
        self.base_url = normalized
        self._enqueue(normalized)
        self.state = CrawlState.RUNNING
        self._start_time = time.monotonic()
        self._started_at = utc_timestamp()

        self.events.log("🚀 Starting SEO crawl", LogLevel.INFO)
        self.events.log(f"🎯 Seed: {normalized}", LogLevel.INFO)
        if self.config.no_limit:
            self.events.log("📊 Limit: none", LogLevel.INFO)
        else:
            self.events.log(f"📊 Limit: {self.config.max_pages} pages", LogLevel.INFO)
        return normalized

    async def crawl(self, seed_url: str) -> CrawlResultSet:
        """``start`` + ``run``."""
        self.start(seed_url)
        return await self.run()

    async def run(self) -> CrawlResultSet:
        """Main loop. Never raises for per-page problems; returns the result set."""
        if self.state not in (CrawlState.RUNNING, CrawlState.PAUSED):
            raise CrawlerStateError("start() must be called before run()")
        if self.fetcher is None:
            raise CrawlerStateError("No fetcher: use 'async with SeoCrawler(...)' or pass fetcher=")

        try:
            await self._loop()
        except Exception as exc:
            logger.exception("Crawl aborted")
            self.events.log(f"❌ Error: {exc}", LogLevel.ERROR)
            self.stop_reason = f"error: {exc}"
            self._stop_requested = True

        self.calculate_internal_links()
        self._finished_at = utc_timestamp()
        if self._stop_requested:
            self.state = CrawlState.STOPPED
            if not self.stop_reason:
                self.stop_reason = STOPPED_BY_USER
            self.events.log("⏹️ Crawl stopped", LogLevel.WARNING)
            return self.get_results()

        self.state = CrawlState.COMPLETED
        if not self.stop_reason:
            self.stop_reason = QUEUE_DRAINED
        self.events.log(
            f"✅ Crawl complete: {len(self.visited)} pages, {len(self.broken)} broken, "
            f"{len(self.external)} external, {len(self.files)} files",
            LogLevel.SUCCESS,
        )
        result = self.get_results()
        self.events.complete(result)
        return result

    def pause(self) -> None:
        if self.state is CrawlState.RUNNING:
            self.state = CrawlState.PAUSED
            self._resume.clear()
            self.events.log("⏸️ Crawl paused", LogLevel.WARNING)

    def resume(self) -> None:
        if self.state is CrawlState.PAUSED:
            self.state = CrawlState.RUNNING
            self._resume.set()
            self.events.log("▶️ Crawl resumed", LogLevel.INFO)

    def stop(self) -> None:
        """Requests cancellation; observed at the top of the next iteration."""
        if self.state in (CrawlState.RUNNING, CrawlState.PAUSED):
            self._stop_requested = True
            self._resume.set()

    # ------------------------------------------------------------------ #
    # Main loop
    # ------------------------------------------------------------------ #
    async def _loop(self) -> None:
        while self._queue:
            if self._stop_requested:
                return
            if self.state is CrawlState.PAUSED:
                await self._resume.wait()
                continue
            if not self.config.no_limit and len(self.visited) >= self.config.max_pages:
                self.stop_reason = LIMIT_REACHED
                self.events.log(
                    f"🛑 Page limit reached ({self.config.max_pages}), {len(self._queue)} URLs left in queue",
                    LogLevel.WARNING,
                )
                return

            url = self._queue.popleft()
            self._queued.discard(url)
            if url in self.visited:
                continue

            page_start = time.monotonic()
            await self._crawl_single_page(url)

            # delay also applies after the final page
            if self.config.delay:
                await asyncio.sleep(self.config.delay / 1000)

            self._page_times.append(time.monotonic() - page_start)
            self.events.progress(self.progress())

    async def _crawl_single_page(self, url: str) -> None:
        self.events.log(f"🕷️ Crawling: {url}", LogLevel.CRAWL)
        fetch = await self.fetcher.fetch(url)  # type: ignore[union-attr]

        if fetch.is_failure:
            self.broken[url] = BrokenLinkEntry(
                url=url,
                status=fetch.status,
                source=self.find_source_url(url),
                error=fetch.error or f"HTTP {fetch.status}",
            )
            self.stats.failed += 1
            self.events.log(f"❌ Broken: {url} ({fetch.error or fetch.status})", LogLevel.ERROR)
            return

        extraction: Optional[ExtractionRecord] = None
        if fetch.is_success and fetch.html is not None:
            extraction = self._extract(fetch)
        page = PageRecord.from_fetch(fetch, extraction)
        page.url = url

        self.visited[url] = page
        self.stats.successfully_crawled += 1
        self.events.log(
            f"✅ {url} [{fetch.status}] {fetch.response_time_ms}ms",
            LogLevel.SUCCESS,
        )

        links: List[LinkRecord] = list(extraction.links) if extraction else []
        if fetch.redirect_location:
            target = urljoin(url, fetch.redirect_location)
            links.append(LinkRecord(url=target, anchor_text="redirect", source_url=url))
        elif page.final_url:
            links.append(LinkRecord(url=page.final_url, anchor_text="redirect", source_url=url))
        if links:
            self.process_links(links, url)

    def _extract(self, fetch: FetchResult) -> Optional[ExtractionRecord]:
        try:
            # relative hrefs resolve against the URL that served the body
            return self.extractor.extract(fetch.html or "", fetch.page_url, self.base_url)
        except Exception as exc:
            logger.warning("Extraction failed for %s: %s", fetch.page_url, exc)
            return None

    # ------------------------------------------------------------------ #
    # Link processing
    # ------------------------------------------------------------------ #
    def process_links(self, links: Iterable[LinkRecord], source_url: str) -> None:
        """Classifies every link as external, file, duplicate, new page or skipped."""
        for link in links:
            self.stats.total_discovered += 1
            normalized = normalize_url(link.url)
            if not is_http_url(normalized):
                self.stats.skipped += 1
                continue

            if not is_same_domain(normalized, self.base_url):
                self.external[normalized] = DiscoveredResource(
                    url=normalized,
                    type=link.type,
                    source=source_url,
                    anchor_text=link.anchor_text,
                )
                self.stats.external += 1
                continue

            if link.type is not LinkType.LINK:
                if self._already_seen(normalized) and normalized not in self.files:
                    self.stats.duplicates += 1
                    continue
                self.files[normalized] = DiscoveredResource(
                    url=normalized,
                    type=link.type,
                    source=source_url,
                    anchor_text=link.anchor_text,
                )
                self.stats.files += 1
                continue

            if self._already_seen(normalized) or normalized in self.files:
                self.stats.duplicates += 1
                continue

            if self.should_crawl_url(normalized):
                self._enqueue(normalized)
                self.stats.enqueued += 1
                self.events.log(f"🔍 Discovered: {normalized}", LogLevel.DISCOVER)
            else:
                self.stats.skipped += 1

    def should_crawl_url(self, url: str) -> bool:
        """Crawl policy: http(s), no excluded path prefix, no excluded file extension."""
        if not is_http_url(url):
            return False
        try:
            path = urlsplit(url).path.lower() or "/"
        except ValueError:
            return False
        for excluded in self.config.excluded_paths:
            prefix = excluded.lower().rstrip("/")
            if prefix and (path == prefix or path.startswith(prefix + "/")):
                return False
        suffix = PurePosixPath(path).suffix
        return not (suffix and suffix in self.config.excluded_extensions)

    def find_source_url(self, url: str) -> str:
        """First visited page linking to *url*; linear scan, broken links only."""
        for page_url, page in self.visited.items():
            for link in page.content.internal_links:
                if normalize_url(link.url) == url:
                    return page_url
        return UNKNOWN_SOURCE

    def calculate_internal_links(self) -> None:
        """Inbound link count of every visited page, restricted to visited pages."""
        for page in self.visited.values():
            page.technical.internal_link_count = 0
        for page in self.visited.values():
            for link in page.content.internal_links:
                target = self.visited.get(normalize_url(link.url))
                if target is not None:
                    target.technical.internal_link_count += 1

    # ------------------------------------------------------------------ #
    # Progress
    # ------------------------------------------------------------------ #
    def elapsed_ms(self) -> int:
        if self._start_time is None:
            return 0
        return int((time.monotonic() - self._start_time) * 1000)

    def eta_ms(self) -> Optional[int]:
        if not self._page_times:
            return None
        remaining = len(self._queue)
        if not self.config.no_limit:
            remaining = min(remaining, max(0, self.config.max_pages - len(self.visited)))
        average = sum(self._page_times) / len(self._page_times)
        return int(average * remaining * 1000)

    def progress(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            visited_count=len(self.visited),
            queued_count=len(self._queue),
            failed_count=len(self.broken),
            elapsed_ms=self.elapsed_ms(),
            eta_ms=self.eta_ms(),
        )

    # ------------------------------------------------------------------ #
    # Results
    # ------------------------------------------------------------------ #
    def get_results(self) -> CrawlResultSet:
        return CrawlResultSet(
            base_url=self.base_url,
            state=self.state,
            stop_reason=self.stop_reason,
            pages=list(self.visited.values()),
            external_links=list(self.external.values()),
            broken_links=list(self.broken.values()),
            files=list(self.files.values()),
            pending=self.queued,
            stats=replace(self.stats),
            started_at=self._started_at,
            finished_at=self._finished_at,
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _already_seen(self, url: str) -> bool:
        return url in self.visited or url in self._queued or url in self.broken

    def _enqueue(self, url: str) -> None:
        self._queue.append(url)
        self._queued.add(url)

    def _reset(self) -> None:
        self.visited.clear()
        self.external.clear()
        self.broken.clear()
        self.files.clear()
        self._queue.clear()
        self._queued.clear()
        self.stats = CrawlStats()
        self.stop_reason = ""
        self._stop_requested = False
        self._resume.set()
        self._page_times = []
        self._finished_at = ""

