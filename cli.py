# cli.py

"""
Точка входа для запуска SiteDigest из корня репозитория без установки пакета.

Пример запуска:
    python cli.py --config configs/default.yaml crawl example.com --output website-content.md
"""
from site_digest.cli import cli


if __name__ == '__main__':
    cli()
