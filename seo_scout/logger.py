# === FILE: seo_scout/logger.py ===
"""Логгер SeoScout.

Все модули пишут в один именованный логгер ``SeoScout``::

    from seo_scout.logger import logger
    logger.info("Crawl started")

Вывод идёт в stdout и, если задан ``log_file``, ещё в файл с ротацией.
Уровни событий обхода (``success``, ``discover``...) переводятся в уровни
:mod:`logging` через :func:`level_for_event`.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Final, Optional, Union

LOGGER_NAME: Final[str] = "SeoScout"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# ротация файла логов: 5 MiB, три архива
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_EVENT_LEVELS: Final[Dict[str, int]] = {
    "info": logging.INFO,
    "success": logging.INFO,
    "crawl": logging.INFO,
    "discover": logging.DEBUG,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

Level = Union[int, str]


def _make_handler(log_file: Optional[Union[str, Path]], fmt: str) -> logging.Handler:
    """stdout при ``log_file=None``, иначе RotatingFileHandler."""
    if log_file is None:
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
    else:
        handler = RotatingFileHandler(
            str(log_file),
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding="utf-8",
        )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: Level = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
) -> logging.Logger:
    """Настраивает логгер ``SeoScout`` и возвращает его.

    With ``replace_handlers`` the previous handlers are closed and dropped,
    otherwise new ones are added next to them. A console handler is always
    attached; ``log_file`` adds a rotating file handler on top of it.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for old in list(lg.handlers):
            lg.removeHandler(old)
            old.close()

    lg.addHandler(_make_handler(None, log_format))
    if log_file is not None:
        lg.addHandler(_make_handler(log_file, log_format))

    # records stop here, root handlers never see them
    lg.propagate = False
    return lg


def init_logging(
    level: Level = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Используется CLI: заново настраивает логгер с нуля."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


def level_for_event(event_level: str) -> int:
    """Map a crawl event level (``success``, ``discover``...) to a logging level."""
    return _EVENT_LEVELS.get(str(event_level).lower(), logging.INFO)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging", "level_for_event", "LOGGER_NAME"]
