# File: tests/conftest.py
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from seo_scout.config import CrawlerConfig
from seo_scout.crawler.models import CrawlResultSet, FetchResult, PageRecord

PageEntry = Union[str, Tuple[int, Optional[str]]]


class FakeFetcher:
    """In-memory fetcher: url -> html (status 200) or (status, html)."""

    def __init__(self, pages: Dict[str, PageEntry], response_time_ms: int = 50) -> None:
        self.pages = pages
        self.response_time_ms = response_time_ms
        self.calls: List[str] = []

    async def fetch(self, url: str) -> FetchResult:
        self.calls.append(url)
        entry = self.pages.get(url)
        if entry is None:
            return FetchResult(url=url, status=404, html="<h1>Not found</h1>", response_time_ms=5, size_bytes=18)
        status, html = (200, entry) if isinstance(entry, str) else entry
        if status == 0:
            return FetchResult(url=url, status=0, response_time_ms=5, error="Connection refused")
        return FetchResult(
            url=url,
            status=status,
            html=html,
            response_time_ms=self.response_time_ms,
            size_bytes=len((html or "").encode("utf-8")),
            content_type="text/html",
        )


def html_page(title: str, *links: str, extra: str = "") -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><head><title>{title}</title>{extra}</head><body><h1>{title}</h1>{anchors}</body></html>"


@pytest.fixture()
def crawler_config() -> CrawlerConfig:
    """Crawler config without delay and with a generous page limit."""
    return CrawlerConfig(delay=0, max_pages=100, timeout=2.0)


@pytest.fixture()
def make_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture()
def page_html() -> Callable[..., str]:
    return html_page


def make_page(url: str, **fields) -> PageRecord:
    defaults = dict(status=200, response_time_ms=120, size_bytes=20000, title="", description="", h1="")
    defaults.update(fields)
    return PageRecord(url=url, **defaults)


@pytest.fixture()
def page_factory() -> Callable[..., PageRecord]:
    return make_page


@pytest.fixture()
def scenario_sites() -> Tuple[CrawlResultSet, CrawlResultSet]:
    """Old site {/, /about, /contact, /services}; new site adds /blog, breaks /contact, renames /services."""
    old_base, new_base = "https://old.example.com", "https://new.example.com"

    def site(base: str, new: bool) -> CrawlResultSet:
        pages = [
            make_page(f"{base}/", title="Home", description="Welcome", h1="Welcome"),
            make_page(f"{base}/about", title="About us", description="Who we are", h1="About"),
            make_page(f"{base}/contact", status=404 if new else 200, title="Contact", h1="Contact"),
            make_page(f"{base}/services", title="Company services" if new else "Our services", h1="Services"),
        ]
        if new:
            pages.append(make_page(f"{base}/blog", title="Blog", h1="Blog"))
        return CrawlResultSet(base_url=f"{base}/", pages=pages)

    return site(old_base, False), site(new_base, True)
