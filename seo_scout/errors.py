"""Exception hierarchy for SeoScout.

Only problems that make a whole run impossible are exceptions; per-page
failures are recorded as data (see ``SeoCrawler.broken``).
"""
from __future__ import annotations


class SeoScoutError(Exception):
    """Base class for all SeoScout errors."""


class InvalidSeedUrl(SeoScoutError, ValueError):
    """The crawl seed cannot be normalized to an absolute http(s) URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid seed URL: {url!r}")
        self.url = url


class CrawlerStateError(SeoScoutError, RuntimeError):
    """An operation is not allowed in the crawler's current state."""


__all__ = ["SeoScoutError", "InvalidSeedUrl", "CrawlerStateError"]
