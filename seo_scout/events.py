"""
Log/progress events published by the crawler and the comparator.

The core never talks to a UI directly: it publishes :class:`LogEvent` and
:class:`ProgressSnapshot` objects to an optional :class:`Observer` and writes
the same messages to the project logger.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from seo_scout.logger import level_for_event, logger


class LogLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    DISCOVER = "discover"
    CRAWL = "crawl"


@dataclass(slots=True, frozen=True)
class LogEvent:
    """One human-readable message from a running crawl or comparison."""

    message: str
    level: LogLevel = LogLevel.INFO


@dataclass(slots=True, frozen=True)
class ProgressSnapshot:
    """Crawl progress after a processed page."""

    visited_count: int
    queued_count: int
    failed_count: int
    elapsed_ms: int
    eta_ms: Optional[int]


class Observer:
    """Optional collaborator receiving events; every hook is a no-op by default."""

    def on_log(self, event: LogEvent) -> None:
        pass

    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        pass

    def on_complete(self, result: Any) -> None:
        pass


class RecordingObserver(Observer):
    """Keeps every received event in memory (handy for scripts and tests)."""

    def __init__(self) -> None:
        self.events: list[LogEvent] = []
        self.snapshots: list[ProgressSnapshot] = []
        self.results: list[Any] = []

    def on_log(self, event: LogEvent) -> None:
        self.events.append(event)

    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        self.snapshots.append(snapshot)

    def on_complete(self, result: Any) -> None:
        self.results.append(result)

    def messages(self, level: LogLevel | None = None) -> list[str]:
        return [e.message for e in self.events if level is None or e.level == level]


class EventEmitter:
    """Fans events out to the logger and to an optional observer.

    Observer failures are logged and never propagate into the crawl loop.
    """

    def __init__(self, observer: Optional[Observer] = None, log: logging.Logger = logger) -> None:
        self.observer = observer
        self._log = log

    def log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        level = LogLevel(level)
        self._log.log(level_for_event(level.value), message)
        self._notify("on_log", LogEvent(message=message, level=level))

    def progress(self, snapshot: ProgressSnapshot) -> None:
        self._notify("on_progress", snapshot)

    def complete(self, result: Any) -> None:
        self._notify("on_complete", result)

    def _notify(self, hook: str, payload: Any) -> None:
        if self.observer is None:
            return
        try:
            getattr(self.observer, hook)(payload)
        except Exception:
            self._log.exception("Observer %s.%s failed", type(self.observer).__name__, hook)


__all__ = [
    "EventEmitter",
    "LogEvent",
    "LogLevel",
    "Observer",
    "ProgressSnapshot",
    "RecordingObserver",
]
