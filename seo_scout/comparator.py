# File: seo_scout/comparator.py
"""seo_scout.comparator: сравнение двух обходов сайта (например, staging и production).

The comparator maps old URLs to new ones, diffs every matched pair on a fixed
attribute set and classifies SEO-critical regressions. It never mutates its
inputs and produces the same :class:`ComparisonResult` for the same inputs.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlsplit

from seo_scout.config import ComparisonConfig
from seo_scout.crawler.models import CrawlResultSet, PageRecord
from seo_scout.events import EventEmitter, LogLevel, Observer
from seo_scout.utils import normalize_url

__all__: Sequence[str] = (
    "BrokenPageEntry",
    "ComparisonResult",
    "ComparisonSummary",
    "ComparisonWarning",
    "MissingPage",
    "PageComparison",
    "RedirectEntry",
    "Severity",
    "SiteComparator",
    "WarningType",
)

#: Attributes compared by exact equality, in report order.
COMPARED_ATTRIBUTES: tuple[str, ...] = ("title", "description", "h1", "canonical", "status")
#: Response-time difference (ms) above which pages count as different.
RESPONSE_TIME_THRESHOLD_MS = 100
#: Page-size difference (bytes) above which pages count as different.
SIZE_THRESHOLD_BYTES = 5000
#: New response time above ``factor × old`` raises a performance warning.
PERFORMANCE_DEGRADATION_FACTOR = 2


class PageStatus(str, Enum):
    IDENTICAL = "identical"
    DIFFERENCES = "differences"


class WarningType(str, Enum):
    NOINDEX = "noindex"
    CANONICAL_CHANGED = "canonical_changed"
    PERFORMANCE_DEGRADATION = "performance_degradation"
    PAGE_NOT_FOUND = "page_not_found"


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"


@dataclass
class PageComparison:
    old_url: str
    new_url: str
    status: PageStatus = PageStatus.IDENTICAL
    differences: List[str] = field(default_factory=list)
    old_data: Dict[str, Any] = field(default_factory=dict)
    new_data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ComparisonWarning:
    type: WarningType
    severity: Severity
    message: str
    page: str


@dataclass
class RedirectEntry:
    from_url: str
    to_url: str
    status: int
    old_title: str = ""


@dataclass
class BrokenPageEntry:
    url: str
    status: int
    title: str = ""
    old_url: str = ""


@dataclass
class MissingPage:
    url: str
    title: str = ""
    status: int = 0
    description: str = ""

    @classmethod
    def of(cls, page: PageRecord) -> MissingPage:
        return cls(url=page.url, title=page.title, status=page.status, description=page.description)


@dataclass
class ComparisonSummary:
    """Counters derived from the lists of a :class:`ComparisonResult`."""

    total_compared: int = 0
    identical: int = 0
    with_differences: int = 0
    missing_on_new: int = 0
    missing_on_old: int = 0
    redirects_found: int = 0
    broken_links_found: int = 0
    total_warnings: int = 0
    critical_warnings: int = 0

    @classmethod
    def derive(cls, result: ComparisonResult) -> ComparisonSummary:
        identical = sum(1 for c in result.compared_pages if c.status is PageStatus.IDENTICAL)
        return cls(
            total_compared=len(result.compared_pages) + len(result.missing_on_new),
            identical=identical,
            with_differences=len(result.compared_pages) - identical,
            missing_on_new=len(result.missing_on_new),
            missing_on_old=len(result.missing_on_old),
            redirects_found=len(result.redirects),
            broken_links_found=len(result.broken_links),
            total_warnings=len(result.warnings),
            critical_warnings=sum(1 for w in result.warnings if w.severity is Severity.CRITICAL),
        )


@dataclass
class ComparisonResult:
    compared_pages: List[PageComparison] = field(default_factory=list)
    redirects: List[RedirectEntry] = field(default_factory=list)
    broken_links: List[BrokenPageEntry] = field(default_factory=list)
    missing_on_new: List[MissingPage] = field(default_factory=list)
    missing_on_old: List[MissingPage] = field(default_factory=list)
    warnings: List[ComparisonWarning] = field(default_factory=list)
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _path(url: str) -> str:
    try:
        return urlsplit(url).path or "/"
    except ValueError:
        return ""


def _last_segment(path: str) -> str:
    segments = [s for s in path.split("/") if s]
    return segments[-1] if segments else ""


def paths_similar(path1: str, path2: str) -> bool:
    """Weak heuristic: both paths end with the same non-empty segment."""
    last1, last2 = _last_segment(path1), _last_segment(path2)
    return bool(last1) and last1 == last2


class _PageIndex:
    """URL → page lookup tolerant to non-normalized input URLs."""

    def __init__(self, pages: Sequence[PageRecord]) -> None:
        self._exact: Dict[str, PageRecord] = {}
        self._normalized: Dict[str, PageRecord] = {}
        for page in pages:
            self._exact.setdefault(page.url, page)
            self._normalized.setdefault(normalize_url(page.url), page)

    def get(self, url: Optional[str]) -> Optional[PageRecord]:
        if not url:
            return None
        return self._exact.get(url) or self._normalized.get(normalize_url(url))


class SiteComparator:
    """Сравнивает два завершённых обхода и строит отчёт о регрессиях."""

    def __init__(
        self,
        config: Optional[ComparisonConfig] = None,
        observer: Optional[Observer] = None,
    ) -> None:
        self.config = config or ComparisonConfig()
        self.events = EventEmitter(observer)

    # URL mapping -----------------------------------------------------------
    def map_urls(
        self,
        old_site: CrawlResultSet,
        new_site: CrawlResultSet,
        config: Optional[ComparisonConfig] = None,
    ) -> Dict[str, Optional[str]]:
        """Maps every old URL to a new URL or ``None`` (insertion ordered)."""
        cfg = config or self.config
        mapping: Dict[str, Optional[str]] = {}

        if cfg.custom_url_mapping:
            for pair in cfg.custom_url_mapping:
                mapping[pair.old_url] = pair.new_url
                self.events.log(f"🔗 Mapped (manual): {pair.old_url} → {pair.new_url}", LogLevel.SUCCESS)
            return mapping

        if not cfg.auto_map_urls:
            self.events.log("⚠️ No URL mapping method selected", LogLevel.WARNING)
            return mapping

        for old_page in old_site.pages:
            new_url = self.find_corresponding_url(_path(old_page.url), new_site)
            mapping[old_page.url] = new_url
            if new_url is not None:
                self.events.log(f"🔗 Mapped: {old_page.url} → {new_url}", LogLevel.SUCCESS)
            else:
                self.events.log(f"❌ No counterpart for: {old_page.url}", LogLevel.WARNING)
        return mapping

    @staticmethod
    def find_corresponding_url(old_path: str, new_site: CrawlResultSet) -> Optional[str]:
        """Exact path match first, then the first page with the same last segment."""
        for page in new_site.pages:
            if _path(page.url) == old_path:
                return page.url
        # first match wins on ambiguous leaf segments
        for page in new_site.pages:
            if paths_similar(old_path, _path(page.url)):
                return page.url
        return None

    # Diff ------------------------------------------------------------------
    @staticmethod
    def compare_pages(old_page: PageRecord, new_page: PageRecord) -> PageComparison:
        comparison = PageComparison(old_url=old_page.url, new_url=new_page.url)

        for attr in COMPARED_ATTRIBUTES:
            old_value, new_value = getattr(old_page, attr), getattr(new_page, attr)
            comparison.old_data[attr] = old_value
            comparison.new_data[attr] = new_value
            if old_value != new_value:
                comparison.differences.append(attr)

        comparison.old_data["response_time"] = old_page.response_time_ms
        comparison.new_data["response_time"] = new_page.response_time_ms
        comparison.old_data["size"] = old_page.size_bytes
        comparison.new_data["size"] = new_page.size_bytes

        if abs(old_page.response_time_ms - new_page.response_time_ms) > RESPONSE_TIME_THRESHOLD_MS:
            comparison.differences.append("response_time")
        if abs(old_page.size_bytes - new_page.size_bytes) > SIZE_THRESHOLD_BYTES:
            comparison.differences.append("size")

        if comparison.differences:
            comparison.status = PageStatus.DIFFERENCES
        return comparison

    @staticmethod
    def check_critical_warnings(old_page: PageRecord, new_page: PageRecord) -> List[ComparisonWarning]:
        warnings: List[ComparisonWarning] = []

        if new_page.robots and "noindex" in new_page.robots.lower():
            warnings.append(ComparisonWarning(
                type=WarningType.NOINDEX,
                severity=Severity.CRITICAL,
                message=f"Page {new_page.url} has noindex",
                page=new_page.url,
            ))

        if old_page.canonical and new_page.canonical and old_page.canonical != new_page.canonical:
            warnings.append(ComparisonWarning(
                type=WarningType.CANONICAL_CHANGED,
                severity=Severity.WARNING,
                message=f"Canonical changed: {old_page.canonical} → {new_page.canonical}",
                page=new_page.url,
            ))

        if new_page.response_time_ms > old_page.response_time_ms * PERFORMANCE_DEGRADATION_FACTOR:
            warnings.append(ComparisonWarning(
                type=WarningType.PERFORMANCE_DEGRADATION,
                severity=Severity.WARNING,
                message=(
                    f"Response time degraded: {old_page.response_time_ms}ms → "
                    f"{new_page.response_time_ms}ms"
                ),
                page=new_page.url,
            ))

        if new_page.status == 404:
            warnings.append(ComparisonWarning(
                type=WarningType.PAGE_NOT_FOUND,
                severity=Severity.CRITICAL,
                message=f"Page returns 404: {new_page.url}",
                page=new_page.url,
            ))
        return warnings

    # Aggregation -----------------------------------------------------------
    def compare(
        self,
        old_site: CrawlResultSet,
        new_site: CrawlResultSet,
        config: Optional[ComparisonConfig] = None,
    ) -> ComparisonResult:
        cfg = config or self.config
        self.events.log("🚀 Comparing sites", LogLevel.INFO)
        self.events.log(f"📊 Old site: {old_site.base_url} ({len(old_site.pages)} pages)", LogLevel.INFO)
        self.events.log(f"🎯 New site: {new_site.base_url} ({len(new_site.pages)} pages)", LogLevel.INFO)

        mapping = self.map_urls(old_site, new_site, cfg)
        result = ComparisonResult()
        if not mapping:
            result.summary = ComparisonSummary.derive(result)
            self._log_summary(result.summary)
            self.events.complete(result)
            return result

        old_index = _PageIndex(old_site.pages)
        new_index = _PageIndex(new_site.pages)
        targeted: set[str] = set()

        for old_url, new_url in mapping.items():
            old_page = old_index.get(old_url)
            new_page = new_index.get(new_url)
            if new_page is not None:
                targeted.add(new_page.url)

            if new_page is None:
                if old_page is None:
                    self.events.log(f"⚠️ Unknown pages in mapping: {old_url} → {new_url}", LogLevel.WARNING)
                    continue
                result.missing_on_new.append(MissingPage.of(old_page))
                continue
            if old_page is None:
                result.missing_on_old.append(MissingPage.of(new_page))
                continue

            comparison = self.compare_pages(old_page, new_page)
            result.compared_pages.append(comparison)

            old_redirect = old_page.redirect_status or old_page.status
            if cfg.check_redirects and 300 <= old_redirect < 400:
                result.redirects.append(RedirectEntry(
                    from_url=old_page.url, to_url=new_page.url,
                    status=old_redirect, old_title=old_page.title,
                ))
            if cfg.check_broken_links and new_page.status >= 400:
                result.broken_links.append(BrokenPageEntry(
                    url=new_page.url, status=new_page.status,
                    title=new_page.title, old_url=old_page.url,
                ))
            result.warnings.extend(self.check_critical_warnings(old_page, new_page))

        reported = {m.url for m in result.missing_on_old}
        for page in new_site.pages:
            if page.url not in targeted and page.url not in reported:
                result.missing_on_old.append(MissingPage.of(page))
                reported.add(page.url)

        result.summary = ComparisonSummary.derive(result)
        self._log_summary(result.summary)
        self.events.complete(result)
        return result

    def _log_summary(self, summary: ComparisonSummary) -> None:
        self.events.log(f"📊 Compared: {summary.total_compared} pages", LogLevel.INFO)
        self.events.log(
            f"✅ Identical: {summary.identical}",
            LogLevel.SUCCESS if summary.identical else LogLevel.WARNING,
        )
        self.events.log(
            f"⚠️ With differences: {summary.with_differences}",
            LogLevel.WARNING if summary.with_differences else LogLevel.SUCCESS,
        )
        self.events.log(
            f"❌ Missing on new site: {summary.missing_on_new}",
            LogLevel.ERROR if summary.missing_on_new else LogLevel.SUCCESS,
        )
        self.events.log(f"🆕 New pages: {summary.missing_on_old}", LogLevel.INFO)
        self.events.log(f"🔀 Redirects: {summary.redirects_found}", LogLevel.INFO)
        self.events.log(
            f"🚫 Broken links: {summary.broken_links_found}",
            LogLevel.ERROR if summary.broken_links_found else LogLevel.SUCCESS,
        )
        self.events.log(
            f"🚨 Critical warnings: {summary.critical_warnings}",
            LogLevel.ERROR if summary.critical_warnings else LogLevel.SUCCESS,
        )
