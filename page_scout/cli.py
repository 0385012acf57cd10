# === FILE: page_scout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска краулера page_scout через командную строку.

Команды:
  crawl URL...  Обойти сайт(ы) и вывести/сохранить отчёт
  config        Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  --depth, --max-pages, --concurrency, --rate-limit, --timeout
  --include REGEX / --exclude REGEX
  --engine fetch|playwright|stealth
  --no-robots, --no-sitemap, --no-auth
  --json PATH / --html PATH / --pretty

Пример:
  page-scout crawl https://example.com --depth 1 --max-pages 20 --json report.json --pretty
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from page_scout import __version__
from page_scout.aggregator import aggregate_results
from page_scout.config import DEFAULT_CONFIG_PATH, CrawlConfig, load_config, override_config
from page_scout.errors import PageScoutError
from page_scout.logger import init_logging
from page_scout.report.html_report import render_html
from page_scout.report.json_report import render_json
from page_scout.scanner import start_scan

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='page_scout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
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
    help='Путь к файлу логов (stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд page_scout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        if config_path is None and not DEFAULT_CONFIG_PATH.exists():
            cfg = CrawlConfig()
        else:
            cfg = load_config(config_path)
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('urls', nargs=-1, required=True)
@click.option('--depth', '-d', type=click.IntRange(min=0), default=None, help='Глубина обхода ссылок')
@click.option('--max-pages', '-m', 'max_pages', type=click.IntRange(min=1), default=None, help='Макс. число страниц')
@click.option('--concurrency', type=click.IntRange(min=1), default=None, help='Одновременных загрузок')
@click.option('--rate-limit', 'rate_limit', type=click.IntRange(min=1), default=None, help='Запусков загрузки в секунду')
@click.option('--timeout', type=float, default=None, help='Таймаут стратегии загрузки (секунд)')
@click.option('--include', 'include_pattern', default=None, help='Регулярное выражение: URL должен совпасть')
@click.option('--exclude', 'exclude_pattern', default=None, help='Регулярное выражение: URL не должен совпасть')
@click.option(
    '--engine', 'force_engine',
    type=click.Choice(['fetch', 'playwright', 'stealth']),
    default=None,
    help='Использовать только эту стратегию загрузки'
)
@click.option('--no-robots', is_flag=True, help='Игнорировать robots.txt')
@click.option('--no-sitemap', is_flag=True, help='Не использовать sitemap.xml')
@click.option('--no-auth', is_flag=True, help='Не подставлять сохранённые сессии')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def crawl(ctx, urls, depth, max_pages, concurrency, rate_limit, timeout, include_pattern, exclude_pattern,
          force_engine, no_robots, no_sitemap, no_auth, json_output, html_output, pretty):
    """Обойти сайт(ы), начиная с URLS, и сгенерировать отчёт."""
    try:
        cfg = override_config(
            ctx.obj['config'],
            depth=depth,
            max_pages=max_pages,
            concurrency=concurrency,
            rate_limit=rate_limit,
            timeout=timeout,
            include_pattern=include_pattern,
            exclude_pattern=exclude_pattern,
            force_engine=force_engine,
            respect_robots=False if no_robots else None,
            use_sitemap=False if no_sitemap else None,
            use_auth=False if no_auth else None,
        )
    except ValidationError as e:
        print_error(f'Некорректные параметры: {e}')

    click.echo(f'Starting crawl: {", ".join(urls)}', err=True)
    try:
        results, stats = asyncio.run(start_scan(cfg, urls))
    except PageScoutError as e:
        print_error(f'Ошибка при обходе: {e}')

    report = aggregate_results(results, stats)

    # без файлов вывода отчёт печатается в stdout
    if not json_output and not html_output:
        click.echo(report.json(pretty=pretty))
        return

    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=pretty)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(report, html_output)
            click.echo(f'HTML report: {saved_html}')
        except OSError as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
