# === FILE: seo_scout/config.py ===
"""
Модуль для загрузки и валидации конфигурации SeoScout.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, HttpUrl, ValidationError, field_validator

DEFAULT_EXCLUDED_PATHS: tuple[str, ...] = (
    "/admin",
    "/login",
    "/logout",
    "/api/",
    "/wp-admin",
    "/wp-json",
    "/cgi-bin",
)

DEFAULT_EXCLUDED_EXTENSIONS: tuple[str, ...] = (
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".zip", ".rar", ".7z",
    ".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp",
    ".mp3", ".mp4", ".avi", ".mov", ".webm", ".wav",
    ".css", ".js", ".xml", ".json", ".txt",
)


class CrawlerConfig(BaseModel):
    """Настройки одного запуска краулера."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    max_pages: int = Field(500, ge=1, description="Лимит успешно обработанных страниц.")
    delay: int = Field(200, ge=0, description="Пауза между запросами (миллисекунды).")
    no_limit: bool = Field(False, description="Игнорировать max_pages.")
    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field(
        "Mozilla/5.0 (compatible; SeoScoutBot/1.0)", min_length=1, description="Заголовок User-Agent."
    )
    retry_times: int = Field(0, ge=0, description="Число повторных попыток при 5xx/429.")
    proxy: Optional[HttpUrl] = Field(None, description="HTTP-прокси для всех запросов.")
    follow_redirects: bool = Field(True, description="Следовать редиректам при загрузке.")
    excluded_paths: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_PATHS))
    excluded_extensions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_EXTENSIONS))
    collect_metadata: bool = True
    collect_structured_data: bool = True
    collect_content_analysis: bool = True

    @field_validator("excluded_extensions", mode="before")
    def _lower_extensions(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            return [ext.lower() if ext.startswith(".") else "." + ext.lower() for ext in v]
        return v


class UrlPair(BaseModel):
    """Ручное сопоставление старого URL новому."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    old_url: str = Field(..., min_length=1)
    new_url: str = Field(..., min_length=1)


class ComparisonConfig(BaseModel):
    """Настройки сравнения двух обходов."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    auto_map_urls: bool = True
    check_redirects: bool = True
    check_broken_links: bool = True
    custom_url_mapping: Optional[List[UrlPair]] = None


class AppConfig(BaseModel):
    """Полная конфигурация приложения."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    crawler: CrawlerConfig = Field(default_factory=CrawlerConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)
    storage_dir: Path = Field(Path("crawls"), description="Каталог сохранённых обходов.")


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def _read_mapping_file(path: Union[str, Path]) -> dict[str, Any]:
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат файла: {suffix}")


def load_config(path: Union[str, Path, None]) -> AppConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект AppConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path = _DEFAULT_CFG

    data = _read_mapping_file(path)
    try:
        return AppConfig(**data)
    except ValidationError:
        raise


def load_url_mapping(path: Union[str, Path]) -> List[UrlPair]:
    """Читает файл вида ``old_url: new_url`` и возвращает список пар в исходном порядке."""
    data = _read_mapping_file(path)
    return [UrlPair(old_url=str(old), new_url=str(new)) for old, new in data.items()]


__all__ = [
    "AppConfig",
    "ComparisonConfig",
    "CrawlerConfig",
    "UrlPair",
    "load_config",
    "load_url_mapping",
]
