# File: seo_scout/storage.py
"""seo_scout.storage: сохранение и загрузка результатов обхода по произвольному ключу.

Каждый обход хранится в отдельном JSON-файле ``seo_crawl_<key>.json``.
"""
from __future__ import annotations

import json
import re
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from seo_scout.crawler.models import CrawlResultSet
from seo_scout.logger import logger

_PREFIX = "seo_crawl_"
_UNSAFE_KEY_RE = re.compile(r"[^A-Za-z0-9_.-]+")


class CrawlStore:
    """Файловое хранилище результатов обхода."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory).expanduser()

    @staticmethod
    def _safe_key(key: str) -> str:
        safe = _UNSAFE_KEY_RE.sub("_", key.strip()).strip(".")
        if not safe:
            raise ValueError(f"Invalid storage key: {key!r}")
        return safe

    def path_for(self, key: str) -> Path:
        return self.directory / f"{_PREFIX}{self._safe_key(key)}.json"

    def save(self, key: str, result: CrawlResultSet) -> Path:
        """Сохраняет обход под ключом *key* и возвращает путь к файлу."""
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info("💾 Crawl saved: %s (%d pages) -> %s", key, len(result.pages), path)
        return path

    def load(self, key: str) -> Optional[CrawlResultSet]:
        """Загружает обход или возвращает None, если ключ не найден."""
        path = self.path_for(key)
        if not path.is_file():
            logger.debug("No saved crawl for key %s (%s)", key, path)
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
        try:
            result = CrawlResultSet.from_dict(data)
        except ValidationError:
            logger.error("Saved crawl %s has an unexpected structure", path)
            raise
        logger.info("📂 Crawl loaded: %s (%d pages)", key, len(result.pages))
        return result

    def keys(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        return sorted(
            p.name[len(_PREFIX):-len(".json")]
            for p in self.directory.glob(f"{_PREFIX}*.json")
            if p.is_file()
        )

    def __contains__(self, key: str) -> bool:
        return self.path_for(key).is_file()


__all__ = ["CrawlStore"]
