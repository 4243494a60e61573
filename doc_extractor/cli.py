# === FILE: doc_extractor/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска DocExtractor через командную строку.

Команды:
  crawl     Обойти страницу и её ссылки, вывести/сохранить результат
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования (e.g. "%(asctime)s %(levelname)s %(message)s")

Команда crawl опции:
  URL                 Корневой адрес (по умолчанию base_url из конфига)
  --depth INT         Бюджет глубины 0..5 (override max_depth)
  --concurrency INT   Одновременных загрузок (override concurrency)
  --fetch-mode MODE   direct | render_proxy | relay_proxy
  --proxy-url URL     Адрес прокси для режимов *_proxy
  --format-markdown   Прогнать скачанные страницы через LLM-форматтер
  --json PATH         Сохранить JSON-отчёт в файл
  --markdown PATH     Сохранить сводный Markdown-документ в файл
  --template DIR      Папка с Jinja2-шаблоном document.md.j2
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --scan-timeout SEC  Таймаут всего обхода (секунд)

Дополнительно:
  --version, -v       Показать версию DocExtractor

Пример:
  doc-extractor crawl https://example.com/docs/ --depth 2 --markdown docs.md
"""
import asyncio
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from doc_extractor import __version__
from doc_extractor.config import load_config
from doc_extractor.engine import start_crawl
from doc_extractor.logger import init_logging
from doc_extractor.report.json_report import render_json
from doc_extractor.report.markdown_report import render_markdown

CONTEXT_SETTINGS = dict(help_option_names=["--help", "-h"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='DocExtractor, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
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
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд DocExtractor CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path, missing_ok=True)
    except (OSError, ValueError, TypeError, ValidationError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.option('--depth', '-d', type=click.IntRange(0, 5), default=None,
              help='Бюджет глубины (override max_depth)')
@click.option('--concurrency', type=click.IntRange(min=1), default=None,
              help='Одновременных загрузок (override concurrency)')
@click.option('--fetch-mode', type=click.Choice(['direct', 'render_proxy', 'relay_proxy']), default=None,
              help='Способ получения страниц')
@click.option('--proxy-url', default=None, help='Адрес прокси для режимов *_proxy')
@click.option('--format-markdown', is_flag=True, default=False,
              help='Форматировать скачанные страницы в Markdown через LLM')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--markdown', '-m', 'markdown_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить сводный Markdown-документ в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблоном document.md.j2'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--scan-timeout', 'scan_timeout', type=float, default=None,
              help='Таймаут всего обхода (секунд)')
@click.pass_context
def crawl(ctx, url, depth, concurrency, fetch_mode, proxy_url, format_markdown,
          json_output, markdown_output, template_dir, pretty, scan_timeout):
    """Обойти URL и сгенерировать отчёты."""
    cfg = ctx.obj['config']
    overrides = {
        'max_depth': depth,
        'concurrency': concurrency,
        'fetch_mode': fetch_mode,
        'proxy_url': proxy_url,
        'scan_timeout': scan_timeout,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if format_markdown:
        overrides['formatter'] = {**cfg.formatter.model_dump(mode='json'), 'enabled': True}
    try:
        cfg = cfg.model_validate({**cfg.model_dump(mode='json'), **overrides})
    except ValidationError as e:
        print_error(f'Некорректные параметры: {e}')

    address = url or (str(cfg.base_url) if cfg.base_url else None)
    if not address:
        print_error('Не задан адрес: укажите URL или base_url в конфиге')

    click.echo(f'Starting crawl: {address} (depth {cfg.max_depth})', err=True)
    try:
        if cfg.scan_timeout:
            report = asyncio.run(
                asyncio.wait_for(start_crawl(cfg, address), timeout=cfg.scan_timeout)
            )
        else:
            report = asyncio.run(start_crawl(cfg, address))
    except asyncio.TimeoutError:
        print_error(f'Обход не завершён за {cfg.scan_timeout} секунд')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    if not json_output and not markdown_output:
        click.echo(report.json(pretty=pretty))
    if json_output:
        try:
            saved_json = render_json(report, json_output, pretty=True)
            click.echo(f'JSON report: {saved_json}', err=True)
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')
    if markdown_output:
        try:
            saved_md = render_markdown(report, markdown_output, template_dir)
            click.echo(f'Markdown document: {saved_md}', err=True)
        except OSError as e:
            print_error(f'Ошибка при сохранении Markdown: {e}')

    if not report.root_fetched:
        print_error(f'Не удалось загрузить корневой адрес: {report.root}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2, exclude={'formatter': {'api_key'}}))


if __name__ == "__main__":
    cli()
