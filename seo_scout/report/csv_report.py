# seo_scout/report/csv_report.py
"""
CSV exports: one row per crawled page, and a metric/value summary of a comparison.

Text fields are always double-quoted with embedded quotes doubled; numeric
fields are written bare. The column order is fixed.
"""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Union

from seo_scout.comparator import ComparisonResult
from seo_scout.crawler.models import CrawlResultSet, PageRecord

PAGE_COLUMNS: tuple[str, ...] = (
    "URL", "Status", "Title", "Description", "H1", "Canonical", "Robots",
    "OG Title", "OG Description", "Text Length", "Images Count",
    "Internal Links", "External Links", "Incoming Links", "Schema Types",
    "Response Time", "Page Size", "Timestamp",
)

SUMMARY_ROWS: tuple[tuple[str, str], ...] = (
    ("Total compared", "total_compared"),
    ("Identical pages", "identical"),
    ("Pages with differences", "with_differences"),
    ("Missing on new site", "missing_on_new"),
    ("New pages", "missing_on_old"),
    ("Redirects found", "redirects_found"),
    ("Broken links", "broken_links_found"),
    ("Warnings", "total_warnings"),
    ("Critical warnings", "critical_warnings"),
)


def quote(value: object) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def page_row(page: PageRecord) -> List[str]:
    return [
        quote(page.url),
        str(page.status),
        quote(page.title),
        quote(page.description),
        quote(page.h1),
        quote(page.canonical),
        quote(page.robots),
        quote(page.og_title),
        quote(page.og_description),
        str(page.content.text_length),
        str(len(page.content.images)),
        str(len(page.content.internal_links)),
        str(len(page.content.external_links)),
        str(page.technical.internal_link_count),
        quote("; ".join(page.structured_data.schema_types)),
        str(page.response_time_ms),
        str(page.size_bytes),
        quote(page.timestamp),
    ]


def pages_to_csv(pages: Iterable[PageRecord]) -> str:
    lines = [",".join(PAGE_COLUMNS)]
    lines.extend(",".join(page_row(p)) for p in pages)
    return "\n".join(lines)


def summary_to_csv(result: ComparisonResult) -> str:
    lines = ["Metric,Value"]
    for label, attr in SUMMARY_ROWS:
        lines.append(f"{label},{getattr(result.summary, attr)}")
    return "\n".join(lines)


def _write(text: str, output_path: Union[Path, str]) -> Path:
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    return output


def render_pages_csv(result: CrawlResultSet, output_path: Union[Path, str]) -> Path:
    """Сохраняет страницы обхода в CSV и возвращает путь к файлу."""
    return _write(pages_to_csv(result.pages), output_path)


def render_summary_csv(result: ComparisonResult, output_path: Union[Path, str]) -> Path:
    """Сохраняет сводку сравнения в CSV и возвращает путь к файлу."""
    return _write(summary_to_csv(result), output_path)
