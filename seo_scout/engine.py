# File: seo_scout/engine.py
"""seo_scout.engine: Orchestration layer для запуска обхода, сохранения и сравнения."""

from __future__ import annotations

import asyncio
from typing import Optional

from seo_scout.comparator import ComparisonResult, SiteComparator
from seo_scout.config import AppConfig, ComparisonConfig, CrawlerConfig, load_config
from seo_scout.crawler.crawler import SeoCrawler
from seo_scout.crawler.fetcher import Fetcher
from seo_scout.crawler.models import CrawlResultSet
from seo_scout.events import Observer
from seo_scout.logger import logger
from seo_scout.storage import CrawlStore

__all__ = ["Engine", "compare_sites", "crawl_site"]


async def crawl_site(
    cfg: CrawlerConfig,
    seed_url: str,
    observer: Optional[Observer] = None,
    fetcher: Optional[Fetcher] = None,
) -> CrawlResultSet:
    """
    Запускает краулер в контексте и возвращает результат обхода.

    Raises InvalidSeedUrl if *seed_url* is not an absolute http(s) URL.
    """
    async with SeoCrawler(cfg, fetcher=fetcher, observer=observer) as crawler:
        return await crawler.crawl(seed_url)


def compare_sites(
    old_site: CrawlResultSet,
    new_site: CrawlResultSet,
    cfg: Optional[ComparisonConfig] = None,
    observer: Optional[Observer] = None,
) -> ComparisonResult:
    """Сравнивает два обхода свежим экземпляром SiteComparator."""
    return SiteComparator(cfg, observer=observer).compare(old_site, new_site)


class Engine:
    """Фасад для CLI и скриптов: конфиг, обход, хранилище и сравнение."""

    @staticmethod
    def load_config(path: Optional[str]) -> AppConfig:
        """Загружает конфиг из YAML/JSON."""
        return load_config(path)

    def __init__(self, config: Optional[AppConfig] = None, store: Optional[CrawlStore] = None) -> None:
        self.config = config or AppConfig()
        self.store = store or CrawlStore(self.config.storage_dir)

    def crawl(
        self,
        seed_url: str,
        *,
        save_as: Optional[str] = None,
        observer: Optional[Observer] = None,
    ) -> CrawlResultSet:
        """Запускает обход синхронно и при необходимости сохраняет результат."""
        logger.info("Starting crawl of %s", seed_url)
        result = asyncio.run(crawl_site(self.config.crawler, seed_url, observer=observer))
        if save_as:
            self.store.save(save_as, result)
        return result

    def compare(
        self,
        old_key: str,
        new_key: str,
        *,
        observer: Optional[Observer] = None,
    ) -> ComparisonResult:
        """Сравнивает два сохранённых обхода; KeyError, если ключ не найден."""
        old_site = self.store.load(old_key)
        if old_site is None:
            raise KeyError(f"No saved crawl: {old_key}")
        new_site = self.store.load(new_key)
        if new_site is None:
            raise KeyError(f"No saved crawl: {new_key}")
        return compare_sites(old_site, new_site, self.config.comparison, observer=observer)
