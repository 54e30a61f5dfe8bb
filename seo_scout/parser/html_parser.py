# === FILE: seo_scout/parser/html_parser.py ===
"""HTML extraction for SeoScout.

:class:`PageExtractor` turns raw markup into an
:class:`~seo_scout.crawler.models.ExtractionRecord`:

* metadata: title, description, robots, canonical, viewport, charset,
  Open Graph and Twitter card tags;
* headings: every ``h1``..``h6`` text in document order;
* structured data: JSON-LD ``@type`` values, microdata ``itemtype`` names
  and the ``itemprop`` values of each microdata item;
* content: visible text length, images, anchors split into internal and
  external by hostname;
* links: anchors plus resource references (images, scripts, stylesheets,
  iframes, media) typed for the crawl frontier.

Malformed pieces (bad JSON-LD, hrefs that cannot be resolved) are skipped.
"""
from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import Any, Iterator, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from seo_scout.config import CrawlerConfig
from seo_scout.crawler.models import (
    HEADING_LEVELS,
    ExtractionRecord,
    ImageRecord,
    LinkRecord,
    LinkType,
    MicrodataItem,
    PageContent,
    StructuredData,
)
from seo_scout.logger import logger
from seo_scout.utils import is_same_domain

__all__: Sequence[str] = ("PageExtractor", "get_link_type")

_EXTENSION_TYPES: dict[str, LinkType] = {}
for _ext in (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico", ".bmp", ".avif", ".tif", ".tiff"):
    _EXTENSION_TYPES[_ext] = LinkType.IMAGE
for _ext in (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods", ".rtf",
             ".txt", ".csv", ".zip", ".rar", ".7z", ".gz", ".tar"):
    _EXTENSION_TYPES[_ext] = LinkType.DOCUMENT
for _ext in (".mp3", ".mp4", ".avi", ".mov", ".wmv", ".webm", ".ogg", ".wav", ".flac", ".mkv", ".m4a"):
    _EXTENSION_TYPES[_ext] = LinkType.MEDIA
_EXTENSION_TYPES[".js"] = LinkType.SCRIPT
_EXTENSION_TYPES[".mjs"] = LinkType.SCRIPT
_EXTENSION_TYPES[".css"] = LinkType.STYLESHEET

_IGNORED_SCHEMES = ("mailto:", "tel:", "javascript:", "data:", "sms:", "ftp:")
_TEXT_EXCLUDED_TAGS = ["script", "style", "noscript", "template"]


def get_link_type(url: str) -> LinkType:
    """Classifies a URL by the extension of its path (``link`` when unknown)."""
    try:
        suffix = PurePosixPath(urlsplit(url).path).suffix.lower()
    except ValueError:
        return LinkType.LINK
    return _EXTENSION_TYPES.get(suffix, LinkType.LINK)


def _attr(tag: Optional[Tag], name: str) -> str:
    if tag is None:
        return ""
    value = tag.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _resolve(base: str, ref: str) -> Optional[str]:
    ref = ref.strip()
    if not ref or ref.startswith("#") or ref.lower().startswith(_IGNORED_SCHEMES):
        return None
    try:
        absolute = urljoin(base, ref)
        urlsplit(absolute).port  # raises on malformed netloc
    except ValueError:
        logger.debug("Skipping unparseable reference %r on %s", ref, base)
        return None
    return absolute


def _json_ld_types(data: Any) -> Iterator[str]:
    if isinstance(data, list):
        for item in data:
            yield from _json_ld_types(item)
        return
    if not isinstance(data, dict):
        return
    kind = data.get("@type")
    if isinstance(kind, str):
        yield kind
    elif isinstance(kind, list):
        yield from (k for k in kind if isinstance(k, str))
    graph = data.get("@graph")
    if graph is not None:
        yield from _json_ld_types(graph)


def _microdata_properties(item: Tag) -> dict[str, list[str]]:
    """``itemprop`` values of *item*: ``content``, then ``src``, then the text."""
    properties: dict[str, list[str]] = {}
    for prop in item.find_all(attrs={"itemprop": True}):
        # properties of a nested item belong to that item
        if prop.find_parent(attrs={"itemtype": True}) is not item:
            continue
        value = _attr(prop, "content") or _attr(prop, "src") or prop.get_text(" ", strip=True)
        if not value:
            continue
        for name in _attr(prop, "itemprop").split():
            properties.setdefault(name, []).append(value)
    return properties


class PageExtractor:
    """Extracts SEO signals from HTML with BeautifulSoup."""

    def __init__(self, config: Optional[CrawlerConfig] = None) -> None:
        self.config = config or CrawlerConfig()

    def extract(self, html: str, page_url: str, site_base_url: str) -> ExtractionRecord:
        soup = BeautifulSoup(html, "html.parser")
        record = ExtractionRecord()

        if self.config.collect_metadata:
            self._extract_metadata(soup, record)
        self._extract_headings(soup, record)
        if self.config.collect_structured_data:
            record.structured_data = self._extract_structured_data(soup)

        record.content = PageContent()
        self._extract_anchors(soup, page_url, site_base_url, record)
        self._extract_resources(soup, page_url, record)
        if self.config.collect_content_analysis:
            record.content.images = self._extract_images(soup, page_url)
            record.content.text_length = self._text_length(soup)
        return record

    # Metadata --------------------------------------------------------------
    @staticmethod
    def _meta(soup: BeautifulSoup, **attrs: str) -> str:
        return _attr(soup.find("meta", attrs=attrs), "content")

    def _extract_metadata(self, soup: BeautifulSoup, record: ExtractionRecord) -> None:
        title_tag = soup.find("title")
        record.title = title_tag.get_text(strip=True) if title_tag else ""
        record.description = self._meta(soup, name="description")
        record.robots = self._meta(soup, name="robots")
        record.viewport = self._meta(soup, name="viewport")
        record.canonical = _attr(soup.find("link", rel="canonical"), "href")

        charset_tag = soup.find("meta", charset=True)
        if charset_tag is not None:
            record.charset = _attr(charset_tag, "charset")
        else:
            record.charset = self._meta(soup, **{"http-equiv": "Content-Type"})

        record.og_title = self._meta(soup, property="og:title")
        record.og_description = self._meta(soup, property="og:description")
        record.og_image = self._meta(soup, property="og:image")
        record.og_type = self._meta(soup, property="og:type")

        record.twitter_title = self._meta(soup, name="twitter:title")
        record.twitter_description = self._meta(soup, name="twitter:description")
        record.twitter_image = self._meta(soup, name="twitter:image")
        record.twitter_card = self._meta(soup, name="twitter:card")

    @staticmethod
    def _extract_headings(soup: BeautifulSoup, record: ExtractionRecord) -> None:
        headings: dict[str, list[str]] = {level: [] for level in HEADING_LEVELS}
        for tag in soup.find_all(list(HEADING_LEVELS)):
            text = tag.get_text(" ", strip=True)
            if text:
                headings[tag.name].append(text)
        record.headings = headings
        record.h1 = headings["h1"][0] if headings["h1"] else ""

    # Structured data -------------------------------------------------------
    @staticmethod
    def _extract_structured_data(soup: BeautifulSoup) -> StructuredData:
        types: list[str] = []
        json_ld = 0
        for script in soup.find_all("script", type="application/ld+json"):
            try:
                data = json.loads(script.string or script.get_text() or "")
            except ValueError:
                logger.debug("Invalid JSON-LD block skipped")
                continue
            json_ld += 1
            types.extend(_json_ld_types(data))

        items: list[MicrodataItem] = []
        for element in soup.find_all(attrs={"itemtype": True}):
            itemtype = _attr(element, "itemtype")
            if not itemtype:
                continue
            items.append(MicrodataItem(type=itemtype, properties=_microdata_properties(element)))
            for value in itemtype.split():
                name = value.rstrip("/").rsplit("/", 1)[-1]
                if name:
                    types.append(name)

        return StructuredData(
            schema_types=list(dict.fromkeys(types)),
            json_ld_count=json_ld,
            microdata_count=len(items),
            microdata_items=items,
        )

    # Links -----------------------------------------------------------------
    @staticmethod
    def _extract_anchors(
        soup: BeautifulSoup, page_url: str, site_base_url: str, record: ExtractionRecord
    ) -> None:
        for tag in soup.find_all("a", href=True):
            absolute = _resolve(page_url, _attr(tag, "href"))
            if absolute is None:
                continue
            rel = tag.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            link = LinkRecord(
                url=absolute,
                anchor_text=tag.get_text(" ", strip=True),
                type=get_link_type(absolute),
                nofollow="nofollow" in [r.lower() for r in rel],
                source_url=page_url,
                title=_attr(tag, "title"),
            )
            if is_same_domain(absolute, site_base_url):
                record.content.internal_links.append(link)
            else:
                record.content.external_links.append(link)
            record.links.append(link)

    @staticmethod
    def _extract_resources(soup: BeautifulSoup, page_url: str, record: ExtractionRecord) -> None:
        candidates: list[tuple[Tag, str, LinkType]] = []
        for tag in soup.find_all("img", src=True):
            candidates.append((tag, "src", LinkType.IMAGE))
        for tag in soup.find_all("script", src=True):
            candidates.append((tag, "src", LinkType.SCRIPT))
        for tag in soup.find_all("link", href=True):
            rel = [r.lower() for r in (tag.get("rel") or [])]
            if "stylesheet" in rel:
                candidates.append((tag, "href", LinkType.STYLESHEET))
        for tag in soup.find_all("iframe", src=True):
            candidates.append((tag, "src", LinkType.IFRAME))
        for tag in soup.find_all(["video", "audio", "source"], src=True):
            candidates.append((tag, "src", LinkType.MEDIA))

        for tag, attr, kind in candidates:
            absolute = _resolve(page_url, _attr(tag, attr))
            if absolute is None:
                continue
            record.links.append(
                LinkRecord(
                    url=absolute,
                    anchor_text=_attr(tag, "alt") or _attr(tag, "title"),
                    type=kind,
                    source_url=page_url,
                )
            )

    # Content ---------------------------------------------------------------
    @staticmethod
    def _extract_images(soup: BeautifulSoup, page_url: str) -> list[ImageRecord]:
        images: list[ImageRecord] = []
        for img in soup.find_all("img", src=True):
            absolute = _resolve(page_url, _attr(img, "src"))
            if absolute is None:
                continue
            images.append(
                ImageRecord(
                    url=absolute,
                    alt=_attr(img, "alt"),
                    title=_attr(img, "title"),
                    width=_attr(img, "width"),
                    height=_attr(img, "height"),
                )
            )
        return images

    @staticmethod
    def _text_length(soup: BeautifulSoup) -> int:
        body = soup.body or soup
        for element in body(_TEXT_EXCLUDED_TAGS):
            element.decompose()
        return len(" ".join(body.stripped_strings))
