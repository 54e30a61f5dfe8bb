# seo_scout/report/json_report.py

"""
Генерация JSON-отчёта для проекта SeoScout.

Сериализация CrawlResultSet / ComparisonResult (dataclasses) в файл.
"""
import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any


def _as_data(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return obj


def to_json(obj: Any, *, pretty: bool = True) -> str:
    """Возвращает JSON-представление obj как есть, без преобразования полей."""
    return json.dumps(_as_data(obj), ensure_ascii=False, indent=2 if pretty else None)


def render_json(obj: Any, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Сохраняет obj в формате JSON по указанному пути.

    :param obj: CrawlResultSet, ComparisonResult или любая JSON-совместимая структура
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from seo_scout.report.json_report import render_json
    report_path = render_json(comparison, 'reports/comparison.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        f.write(to_json(obj, pretty=pretty))

    return output
