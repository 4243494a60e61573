# File: doc_extractor/engine.py
"""doc_extractor.engine: Orchestration layer для запуска обхода, форматирования и агрегации."""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

from aiohttp import ClientSession

from doc_extractor.aggregator import ExtractionReport, aggregate_results
from doc_extractor.config import CrawlerConfig, load_config
from doc_extractor.crawler.crawler import AsyncCrawler
from doc_extractor.crawler.models import NOT_DOWNLOADED, CrawlResult
from doc_extractor.formatter import MarkdownFormatter
from doc_extractor.logger import logger
from doc_extractor.utils import normalize_url

__all__ = ["Engine", "start_crawl", "format_pages"]


async def format_pages(formatter: MarkdownFormatter, results: CrawlResult) -> Dict[str, Optional[str]]:
    """Форматирует все скачанные страницы; ошибка одной страницы даёт ``None``."""
    urls = [url for url, content in results.items() if content != NOT_DOWNLOADED]
    formatted = await asyncio.gather(*(formatter.try_format(url, results[url]) for url in urls))
    return dict(zip(urls, formatted))


async def start_crawl(
    cfg: CrawlerConfig,
    address: Optional[str] = None,
    max_depth: Optional[int] = None,
) -> ExtractionReport:
    """
    Запускает обход в контексте AsyncCrawler и возвращает ExtractionReport.

    Parameters
    ----------
    cfg : CrawlerConfig
        Конфигурация обхода.
    address : str, optional
        Корневой адрес (по умолчанию ``cfg.base_url``).
    max_depth : int, optional
        Бюджет глубины (по умолчанию ``cfg.max_depth``).
    """
    if address is None:
        if cfg.base_url is None:
            raise ValueError("Не задан корневой адрес: укажите URL или base_url в конфиге")
        address = str(cfg.base_url)
    depth = cfg.max_depth if max_depth is None else max_depth

    async with AsyncCrawler(cfg) as crawler:
        results = await crawler.crawl(address, depth)

    markdown: Dict[str, Optional[str]] = {}
    if cfg.formatter.enabled and results:
        async with ClientSession(headers={"User-Agent": cfg.user_agent}) as session:
            formatter = MarkdownFormatter(session, cfg.formatter)
            markdown = await format_pages(formatter, results)

    return aggregate_results(normalize_url(address), depth, results, markdown)


class Engine:
    """Фасад для CLI и тестов: загрузка конфига, запуск обхода и агрегация результатов."""

    @staticmethod
    def load_config(path: Optional[str]) -> CrawlerConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path, missing_ok=True)

    def __init__(self, config: CrawlerConfig) -> None:
        """Инициализирует Engine с заданной конфигурацией обхода."""
        self.config = config

    def run(self, address: Optional[str] = None, max_depth: Optional[int] = None) -> ExtractionReport:
        """Запускает обход (с общим таймаутом, если задан) и возвращает отчёт."""
        logger.info("Starting crawl…")

        coro = start_crawl(self.config, address, max_depth)
        try:
            if self.config.scan_timeout:
                return asyncio.run(asyncio.wait_for(coro, timeout=self.config.scan_timeout))
            return asyncio.run(coro)
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", self.config.scan_timeout)
            raise
