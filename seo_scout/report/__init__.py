"""seo_scout.report: экспорт результатов обхода и сравнения (JSON, CSV, HTML)."""

from __future__ import annotations

from seo_scout.report.csv_report import pages_to_csv, render_pages_csv, render_summary_csv, summary_to_csv
from seo_scout.report.html_report import render_html
from seo_scout.report.json_report import render_json, to_json

__all__ = [
    "pages_to_csv",
    "render_html",
    "render_json",
    "render_pages_csv",
    "render_summary_csv",
    "summary_to_csv",
    "to_json",
]
