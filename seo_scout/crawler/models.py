# seo_scout/crawler/models.py
"""
Data models for the SeoScout crawler.

Everything here is a plain dataclass so a finished crawl can be dumped with
:func:`dataclasses.asdict` and loaded back with :data:`CRAWL_RESULT_ADAPTER`.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter

HEADING_LEVELS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. ``2024-01-01T10:00:00.000Z``."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _empty_headings() -> Dict[str, List[str]]:
    return {level: [] for level in HEADING_LEVELS}


class LinkType(str, Enum):
    LINK = "link"
    IMAGE = "image"
    DOCUMENT = "document"
    MEDIA = "media"
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    IFRAME = "iframe"


class CrawlState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass
class LinkRecord:
    """A hyperlink or resource reference found on a page."""

    url: str
    anchor_text: str = ""
    type: LinkType = LinkType.LINK
    nofollow: bool = False
    source_url: str = ""
    title: str = ""


@dataclass
class ImageRecord:
    url: str
    alt: str = ""
    title: str = ""
    width: str = ""
    height: str = ""


@dataclass
class MicrodataItem:
    """One ``itemtype`` element with its ``itemprop`` values by name."""

    type: str
    properties: Dict[str, List[str]] = field(default_factory=dict)


@dataclass
class StructuredData:
    """schema.org markers found on a page."""

    schema_types: List[str] = field(default_factory=list)
    json_ld_count: int = 0
    microdata_count: int = 0
    microdata_items: List[MicrodataItem] = field(default_factory=list)

    @property
    def has_json_ld(self) -> bool:
        return self.json_ld_count > 0

    @property
    def has_microdata(self) -> bool:
        return self.microdata_count > 0


@dataclass
class PageContent:
    text_length: int = 0
    images: List[ImageRecord] = field(default_factory=list)
    internal_links: List[LinkRecord] = field(default_factory=list)
    external_links: List[LinkRecord] = field(default_factory=list)


@dataclass
class TechnicalData:
    internal_link_count: int = 0


@dataclass
class ExtractionRecord:
    """Structured view of one HTML document, produced by the page extractor."""

    title: str = ""
    description: str = ""
    h1: str = ""
    canonical: str = ""
    robots: str = ""
    viewport: str = ""
    charset: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    og_type: str = ""
    twitter_title: str = ""
    twitter_description: str = ""
    twitter_image: str = ""
    twitter_card: str = ""
    headings: Dict[str, List[str]] = field(default_factory=_empty_headings)
    structured_data: StructuredData = field(default_factory=StructuredData)
    content: PageContent = field(default_factory=PageContent)
    links: List[LinkRecord] = field(default_factory=list)


@dataclass
class PageRecord:
    """Everything known about one crawled URL."""

    url: str
    status: int = 0
    response_time_ms: int = 0
    size_bytes: int = 0
    timestamp: str = field(default_factory=utc_timestamp)
    error: Optional[str] = None
    redirect_location: Optional[str] = None
    final_url: Optional[str] = None
    redirect_status: int = 0

    title: str = ""
    description: str = ""
    h1: str = ""
    canonical: str = ""
    robots: str = ""
    viewport: str = ""
    charset: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    og_type: str = ""
    twitter_title: str = ""
    twitter_description: str = ""
    twitter_image: str = ""
    twitter_card: str = ""

    headings: Dict[str, List[str]] = field(default_factory=_empty_headings)
    structured_data: StructuredData = field(default_factory=StructuredData)
    content: PageContent = field(default_factory=PageContent)
    technical: TechnicalData = field(default_factory=TechnicalData)

    @classmethod
    def from_fetch(cls, fetch: "FetchResult", extraction: Optional[ExtractionRecord] = None) -> PageRecord:
        """Builds a record from a fetch outcome and an optional extraction."""
        page = cls(
            url=fetch.url,
            status=fetch.status,
            response_time_ms=fetch.response_time_ms,
            size_bytes=fetch.size_bytes,
            error=fetch.error,
            redirect_location=fetch.redirect_location,
            redirect_status=fetch.redirect_status,
        )
        if fetch.final_url and fetch.final_url != fetch.url:
            page.final_url = fetch.final_url
        if extraction is not None:
            for name in (
                "title", "description", "h1", "canonical", "robots", "viewport", "charset",
                "og_title", "og_description", "og_image", "og_type",
                "twitter_title", "twitter_description", "twitter_image", "twitter_card",
            ):
                setattr(page, name, getattr(extraction, name))
            page.headings = extraction.headings
            page.structured_data = extraction.structured_data
            page.content = extraction.content
        return page

    @property
    def ok(self) -> bool:
        return 0 < self.status < 400


@dataclass
class FetchResult:
    """Outcome of a single HTTP GET; never an exception."""

    url: str
    status: int
    html: Optional[str] = None
    response_time_ms: int = 0
    size_bytes: int = 0
    content_type: str = ""
    redirect_location: Optional[str] = None
    final_url: Optional[str] = None
    redirect_status: int = 0
    error: Optional[str] = None

    @property
    def page_url(self) -> str:
        """URL the body was served from (after followed redirects)."""
        return self.final_url or self.url

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300

    @property
    def is_failure(self) -> bool:
        return self.status == 0 or self.status >= 400


@dataclass
class DiscoveredResource:
    """External link or same-host file reference."""

    url: str
    type: LinkType
    source: str
    anchor_text: str = ""
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class BrokenLinkEntry:
    url: str
    status: int
    source: str
    error: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class CrawlStats:
    """Monotonic counters; reset only when a crawl starts."""

    total_discovered: int = 0
    successfully_crawled: int = 0
    failed: int = 0
    duplicates: int = 0
    external: int = 0
    files: int = 0
    enqueued: int = 0
    skipped: int = 0


@dataclass
class CrawlResultSet:
    """Finished (or stopped) crawl, handed read-only to comparator and exporters."""

    base_url: str
    state: CrawlState = CrawlState.COMPLETED
    stop_reason: str = ""
    pages: List[PageRecord] = field(default_factory=list)
    external_links: List[DiscoveredResource] = field(default_factory=list)
    broken_links: List[BrokenLinkEntry] = field(default_factory=list)
    files: List[DiscoveredResource] = field(default_factory=list)
    pending: List[str] = field(default_factory=list)
    stats: CrawlStats = field(default_factory=CrawlStats)
    started_at: str = ""
    finished_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CrawlResultSet:
        return CRAWL_RESULT_ADAPTER.validate_python(data)

    def page(self, url: str) -> Optional[PageRecord]:
        return next((p for p in self.pages if p.url == url), None)


CRAWL_RESULT_ADAPTER: TypeAdapter[CrawlResultSet] = TypeAdapter(CrawlResultSet)

__all__ = [
    "BrokenLinkEntry",
    "CRAWL_RESULT_ADAPTER",
    "CrawlResultSet",
    "CrawlState",
    "CrawlStats",
    "DiscoveredResource",
    "ExtractionRecord",
    "FetchResult",
    "HEADING_LEVELS",
    "ImageRecord",
    "LinkRecord",
    "LinkType",
    "MicrodataItem",
    "PageContent",
    "PageRecord",
    "StructuredData",
    "TechnicalData",
    "utc_timestamp",
]
