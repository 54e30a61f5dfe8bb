# === FILE: seo_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска SeoScout через командную строку.

Команды:
  crawl URL   Обойти сайт, сохранить результат и/или выгрузить отчёты
  compare     Сравнить два сохранённых обхода (old → new)
  list        Показать сохранённые обходы
  config      Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (по умолчанию встроенные значения)
  --store DIR         Каталог сохранённых обходов (override storage_dir)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Дополнительно:
  --version, -v       Показать версию SeoScout

Пример:
  seo-scout crawl https://staging.example.com --max-pages 200 --save old_site
  seo-scout crawl https://example.com --save new_site
  seo-scout compare old_site new_site --html reports/comparison.html
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from seo_scout import __version__
from seo_scout.config import AppConfig, load_config, load_url_mapping
from seo_scout.engine import compare_sites, crawl_site
from seo_scout.errors import InvalidSeedUrl
from seo_scout.events import Observer, ProgressSnapshot
from seo_scout.logger import init_logging
from seo_scout.report.csv_report import render_pages_csv, render_summary_csv
from seo_scout.report.html_report import render_html
from seo_scout.report.json_report import render_json, to_json
from seo_scout.storage import CrawlStore

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _format_ms(ms) -> str:
    if ms is None:
        return "?"
    seconds = int(ms // 1000)
    return f"{seconds // 60}m {seconds % 60:02d}s"


class ProgressPrinter(Observer):
    """Печатает прогресс обхода в stderr."""

    def on_progress(self, snapshot: ProgressSnapshot) -> None:
        click.echo(
            f"[{snapshot.visited_count} visited | {snapshot.queued_count} queued | "
            f"{snapshot.failed_count} failed] elapsed {_format_ms(snapshot.elapsed_ms)}, "
            f"ETA {_format_ms(snapshot.eta_ms)}",
            err=True,
        )


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SeoScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--store', 'store_dir',
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help='Каталог сохранённых обходов (override storage_dir)'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, store_dir, log_level, log_file, log_format):
    """Группа команд SeoScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path) if config_path else AppConfig()
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    if store_dir is not None:
        cfg = cfg.model_copy(update={'storage_dir': store_dir})
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg
    ctx.obj['store'] = CrawlStore(cfg.storage_dir)


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url')
@click.option('--max-pages', '-m', 'max_pages', type=click.IntRange(min=1), default=None,
              help='Макс. число страниц (override max_pages)')
@click.option('--delay', '-d', 'delay', type=click.IntRange(min=0), default=None,
              help='Пауза между запросами, мс (override delay)')
@click.option('--no-limit', 'no_limit', is_flag=True, help='Обходить без лимита страниц')
@click.option('--save', '-s', 'save_key', default=None, help='Сохранить обход под этим ключом')
@click.option('--json', '-j', 'json_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Сохранить полный результат в JSON')
@click.option('--csv', 'csv_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Сохранить страницы в CSV')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--quiet', '-q', is_flag=True, help='Не печатать прогресс')
@click.pass_context
def crawl(ctx, url, max_pages, delay, no_limit, save_key, json_output, csv_output, pretty, quiet):
    """Обойти сайт начиная с URL."""
    cfg = ctx.obj['config']
    overrides = {}
    if max_pages is not None:
        overrides['max_pages'] = max_pages
    if delay is not None:
        overrides['delay'] = delay
    if no_limit:
        overrides['no_limit'] = True
    crawler_cfg = cfg.crawler.model_copy(update=overrides)

    observer = None if quiet else ProgressPrinter()
    try:
        result = asyncio.run(crawl_site(crawler_cfg, url, observer=observer))
    except InvalidSeedUrl as e:
        print_error(f'Некорректный URL: {e.url}')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    if save_key:
        try:
            saved = ctx.obj['store'].save(save_key, result)
            click.echo(f'Saved crawl: {saved}')
        except Exception as e:
            print_error(f'Ошибка при сохранении обхода: {e}')

    if json_output:
        try:
            click.echo(f'JSON report: {render_json(result, json_output, pretty=pretty)}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if csv_output:
        try:
            click.echo(f'CSV report: {render_pages_csv(result, csv_output)}')
        except Exception as e:
            print_error(f'Ошибка при сохранении CSV: {e}')

    if not (save_key or json_output or csv_output):
        summary = {
            'base_url': result.base_url,
            'state': result.state.value,
            'stop_reason': result.stop_reason,
            'pages': [p.url for p in result.pages],
            'broken_links': [b.url for b in result.broken_links],
            'pending': len(result.pending),
            'stats': {k: v for k, v in vars(result.stats).items()},
        }
        click.echo(json.dumps(summary, ensure_ascii=False, indent=2 if pretty else None))


@cli.command('compare', context_settings=CONTEXT_SETTINGS)
@click.argument('old_key')
@click.argument('new_key')
@click.option('--mapping', 'mapping_path', default=None,
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='YAML/JSON с ручным сопоставлением old_url: new_url')
@click.option('--no-auto-map', 'no_auto_map', is_flag=True, help='Отключить автосопоставление URL')
@click.option('--no-check-redirects', 'no_redirects', is_flag=True, help='Не искать редиректы')
@click.option('--no-check-broken', 'no_broken', is_flag=True, help='Не искать битые ссылки')
@click.option('--json', '-j', 'json_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Сохранить результат сравнения в JSON')
@click.option('--html', 'html_output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Сохранить HTML-отчёт')
@click.option('--summary-csv', 'summary_csv', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Сохранить сводку в CSV')
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def compare(ctx, old_key, new_key, mapping_path, no_auto_map, no_redirects, no_broken,
            json_output, html_output, summary_csv, pretty):
    """Сравнить два сохранённых обхода OLD_KEY и NEW_KEY."""
    cfg = ctx.obj['config']
    store = ctx.obj['store']

    overrides = {}
    if mapping_path:
        try:
            overrides['custom_url_mapping'] = load_url_mapping(mapping_path)
        except Exception as e:
            print_error(f'Ошибка загрузки сопоставления: {e}')
    if no_auto_map:
        overrides['auto_map_urls'] = False
    if no_redirects:
        overrides['check_redirects'] = False
    if no_broken:
        overrides['check_broken_links'] = False
    comparison_cfg = cfg.comparison.model_copy(update=overrides)

    sites = []
    for key in (old_key, new_key):
        try:
            site = store.load(key)
        except Exception as e:
            print_error(f'Ошибка загрузки обхода {key}: {e}')
        if site is None:
            print_error(f'Обход не найден: {key}')
        sites.append(site)

    result = compare_sites(sites[0], sites[1], comparison_cfg)

    if json_output:
        try:
            click.echo(f'JSON report: {render_json(result, json_output, pretty=pretty)}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            click.echo(f'HTML report: {render_html(result, html_output)}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')

    if summary_csv:
        try:
            click.echo(f'CSV summary: {render_summary_csv(result, summary_csv)}')
        except Exception as e:
            print_error(f'Ошибка при сохранении CSV: {e}')

    if not (json_output or html_output or summary_csv):
        click.echo(to_json(result.summary, pretty=pretty))


@cli.command('list', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def list_crawls(ctx):
    """Показать ключи сохранённых обходов."""
    for key in ctx.obj['store'].keys():
        click.echo(key)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
