# File: seo_scout/utils.py
"""seo_scout.utils: нормализация URL и вспомогательные функции для работы с адресами."""

from __future__ import annotations

import re
from typing import Collection, List, Sequence
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from seo_scout.logger import logger

__all__: Sequence[str] = (
    "TRACKING_PARAM_PATTERNS",
    "normalize_url",
    "is_http_url",
    "extract_host",
    "is_same_domain",
    "is_tracking_param",
    "remove_duplicates",
)

#: Query keys that never change page content and are dropped during normalization.
TRACKING_PARAM_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^utm_"),
    re.compile(r"^trk_"),
    re.compile(r"^(fbclid|gclid|msclkid|ref|source)$"),
)

_MULTI_SLASH_RE = re.compile(r"/{2,}")


def is_tracking_param(key: str) -> bool:
    """True if *key* is a tracking query parameter (``utm_*``, ``fbclid``...)."""
    key = key.lower()
    return any(p.match(key) for p in TRACKING_PARAM_PATTERNS)


def _strip_www(host: str) -> str:
    # repeated prefixes too: www.www.example.com -> example.com
    while host.startswith("www."):
        host = host[4:]
    return host


def _normalize_host(parts) -> str:
    host = _strip_www((parts.hostname or "").lower())
    if ":" in host:
        host = f"[{host}]"
    port = parts.port  # ValueError on garbage ports
    netloc = host if port is None else f"{host}:{port}"
    if parts.username:
        userinfo = parts.username if parts.password is None else f"{parts.username}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"
    return netloc


def normalize_url(url: str) -> str:
    """Приводит URL к каноническому виду, используемому как ключ дедупликации.

    Lowercases scheme and host, strips ``www.``, drops the fragment, collapses
    repeated slashes, strips the trailing slash (the root stays ``/``), removes
    tracking parameters and sorts the remaining query by key. Anything that is
    not an absolute URL is returned unchanged.
    """
    try:
        parts = urlsplit(url.strip())
        if not parts.scheme or not parts.hostname:
            return url
        netloc = _normalize_host(parts)
    except (ValueError, AttributeError):
        return url

    path = _MULTI_SLASH_RE.sub("/", parts.path)
    path = path.rstrip("/") or "/"

    query_pairs = [
        (k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if not is_tracking_param(k)
    ]
    query_pairs.sort()
    query = urlencode(query_pairs, doseq=True)

    normalized = urlunsplit((parts.scheme.lower(), netloc, path, query, ""))
    return normalized


def is_http_url(url: str) -> bool:
    """Проверяет, что URL абсолютный и использует http(s)."""
    try:
        parts = urlsplit(url)
        return parts.scheme.lower() in ("http", "https") and bool(parts.hostname)
    except ValueError:
        return False


def extract_host(url: str) -> str:
    """Returns the lowercase hostname without a leading ``www.`` (``""`` if none)."""
    try:
        host = (urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""
    return _strip_www(host)


def is_same_domain(url: str, base_url: str) -> bool:
    """Two URLs are on the same domain if their normalized hostnames are equal."""
    host = extract_host(url)
    return bool(host) and host == extract_host(base_url)


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
