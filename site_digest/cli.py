# === FILE: site_digest/cli.py ===
#!/usr/bin/env python3
"""
Точка входа SiteDigest через командную строку.

Команды:
  discover  Обойти сайт и вывести/сохранить список страниц (JSON для выбора)
  extract   Извлечь содержимое выбранных страниц и собрать Markdown-документ
  crawl     Обход + извлечение всех найденных страниц за один запуск
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stderr, если не указан)
  --log-format FORMAT Формат логирования

Дополнительно:
  --version, -v       Показать версию SiteDigest

Пример:
  site-digest discover example.com --json pages.json
  site-digest extract pages.json --output website-content.md
"""
import asyncio
import json
import sys
from pathlib import Path

import click

from site_digest import __version__
from site_digest.config import load_config
from site_digest.engine import build_document, start_discovery, start_extraction
from site_digest.errors import DigestError
from site_digest.logger import init_logging
from site_digest.report.json_report import load_selection, pages_to_dicts, render_json
from site_digest.report.markdown_report import render_markdown, save_markdown

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _progress(label: str):
    def report(current: int, total: int) -> None:
        click.echo(f'{label}: {current}/{total}', err=True)
    return report


def _with_limit(cfg, limit):
    if limit is None:
        return cfg
    return cfg.model_copy(update={'max_pages': limit})


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteDigest, version %(version)s')
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
    """Группа команд SiteDigest CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('discover', context_settings=CONTEXT_SETTINGS)
@click.argument('root_url')
@click.option(
    '--ignore-blog/--include-blog', 'ignore_blog',
    default=None,
    help='Пропускать пути /blog/ (по умолчанию из конфига)'
)
@click.option('--limit', '-l', 'limit', type=click.IntRange(min=1), default=None,
              help='Макс. число страниц (override max_pages)')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить список страниц в JSON-файл'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.pass_context
def discover(ctx, root_url, ignore_blog, limit, json_output, pretty):
    """Обойти сайт и вывести найденные страницы."""
    cfg = _with_limit(ctx.obj['config'], limit)
    click.echo(f'Discovering pages of {root_url}', err=True)
    try:
        pages = asyncio.run(
            start_discovery(cfg, root_url, ignore_blog=ignore_blog, on_progress=_progress('Scanned'))
        )
    except DigestError as e:
        print_error(str(e))

    if json_output:
        try:
            saved = render_json(pages, json_output, pretty=pretty)
            click.echo(f'Pages: {saved}', err=True)
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')
        return

    click.echo(json.dumps(pages_to_dicts(pages), ensure_ascii=False, indent=2 if pretty else None))


@cli.command('extract', context_settings=CONTEXT_SETTINGS)
@click.argument(
    'selection',
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option('--url', '-u', 'urls', multiple=True, help='Дополнительный URL для извлечения')
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к Markdown-документу (default: output_name из конфига)'
)
@click.pass_context
def extract(ctx, selection, urls, output):
    """Извлечь содержимое выбранных страниц в Markdown-документ."""
    cfg = ctx.obj['config']
    pages = []
    if selection is not None:
        try:
            pages.extend(load_selection(selection))
        except (ValueError, TypeError) as e:
            print_error(f'Ошибка чтения выбора: {e}')
    pages.extend(urls)

    try:
        records = asyncio.run(start_extraction(cfg, pages, on_progress=_progress('Extracted')))
    except DigestError as e:
        print_error(str(e))

    target = output or Path(cfg.output_name)
    try:
        saved = render_markdown(records, target, cfg.document_title)
    except OSError as e:
        print_error(f'Ошибка при сохранении документа: {e}')
    click.echo(f'Document: {saved}')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('root_url')
@click.option('--ignore-blog/--include-blog', 'ignore_blog', default=None,
              help='Пропускать пути /blog/ (по умолчанию из конфига)')
@click.option('--limit', '-l', 'limit', type=click.IntRange(min=1), default=None,
              help='Макс. число страниц (override max_pages)')
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к Markdown-документу (default: output_name из конфига)'
)
@click.pass_context
def crawl(ctx, root_url, ignore_blog, limit, output):
    """Обойти сайт и сразу собрать документ из всех найденных страниц."""
    cfg = _with_limit(ctx.obj['config'], limit)
    try:
        document = asyncio.run(
            build_document(
                cfg,
                root_url,
                ignore_blog=ignore_blog,
                on_discovery=_progress('Scanned'),
                on_extraction=_progress('Extracted'),
            )
        )
    except DigestError as e:
        print_error(str(e))

    target = output or Path(cfg.output_name)
    try:
        saved = save_markdown(document, target)
    except OSError as e:
        print_error(f'Ошибка при сохранении документа: {e}')
    click.echo(f'Document: {saved}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
