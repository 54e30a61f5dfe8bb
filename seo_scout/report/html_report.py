# File: seo_scout/report/html_report.py
"""seo_scout.report.html_report: Генерация HTML-отчёта о сравнении с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from seo_scout.comparator import ComparisonResult

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
TEMPLATE_NAME = "comparison.html.j2"


def render_html(
    result: ComparisonResult,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
    *,
    title: str = "SeoScout comparison",
) -> Path:
    """Рендерит HTML-отчёт сравнения из шаблона и сохраняет его по указанному пути.

    Args:
        result: объект ComparisonResult.
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория с Jinja2-шаблонами (по умолчанию встроенная).
        title: заголовок страницы отчёта.

    Returns:
        Path до сохранённого HTML-файла.

    Пример:
    ```python
    from seo_scout.report.html_report import render_html
    html_path = render_html(comparison, output_path='reports/comparison.html')
    ```
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "title": title,
        "summary": result.summary,
        "compared_pages": result.compared_pages,
        "redirects": result.redirects,
        "broken_links": result.broken_links,
        "missing_on_new": result.missing_on_new,
        "missing_on_old": result.missing_on_old,
        "warnings": result.warnings,
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
