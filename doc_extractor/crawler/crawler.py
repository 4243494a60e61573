# === FILE: doc_extractor/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from aiohttp import ClientSession, ClientTimeout

from doc_extractor.config import CrawlerConfig
from doc_extractor.crawler.fetcher import (
    RETRYABLE_ERRORS,
    RetryingFetcher,
    Retriever,
    build_retriever,
)
from doc_extractor.crawler.limiter import ConcurrencyLimiter
from doc_extractor.crawler.link_extractor import extract_links
from doc_extractor.crawler.models import NOT_DOWNLOADED, CleanedPage, CrawlResult, CrawlStats, VisitedSet
from doc_extractor.crawler.retry import RetryPolicy, SleepFunc
from doc_extractor.logger import LOGGER_NAME
from doc_extractor.parser.html_cleaner import clean_html
from doc_extractor.utils import make_scope_filter, normalize_url

__all__ = ("AsyncCrawler",)


class AsyncCrawler:
    """Асинхронный обход с ограничением глубины, параллелизма и повторными попытками.

    Depth policy for one address with budget ``depth``:

    * ``depth < 0`` or already claimed: nothing;
    * ``depth == 0``: fetch and clean the address only;
    * ``depth == 1``: fetch and clean, then list unclaimed links with the
      :data:`NOT_DOWNLOADED` sentinel;
    * ``depth > 1``: fetch and clean, then crawl every link with
      ``depth - 1`` concurrently and merge the results.

    A page that cannot be fetched contributes nothing and prunes its own
    subtree; ``crawl`` itself never raises for page failures.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        *,
        retriever: Optional[Retriever] = None,
        sleep: SleepFunc = asyncio.sleep,
        cleaner: Callable[[str], CleanedPage] = clean_html,
    ) -> None:
        self.config = config
        self.session: Optional[ClientSession] = None
        self.logger = logging.getLogger(LOGGER_NAME)
        self._retriever = retriever
        self._sleep = sleep
        self._cleaner = cleaner
        self._policy = RetryPolicy.from_delays(config.retry_delays)
        self._fetcher: Optional[RetryingFetcher] = (
            RetryingFetcher(retriever, self._policy, sleep=sleep) if retriever is not None else None
        )
        self.stats = CrawlStats()

    async def __aenter__(self) -> AsyncCrawler:
        if self._fetcher is None:
            timeout = ClientTimeout(total=self.config.timeout)
            self.session = ClientSession(
                timeout=timeout,
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
            retriever = build_retriever(self.session, self.config)
            self._fetcher = RetryingFetcher(retriever, self._policy, sleep=self._sleep)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None
        if self._retriever is None:
            self._fetcher = None

    async def crawl(self, address: Optional[str] = None, max_depth: Optional[int] = None) -> CrawlResult:
        """Обходит *address* (по умолчанию ``config.base_url``) на глубину *max_depth*.

        Every call gets its own visited set and limiter.
        """
        fetcher = self._fetcher
        if fetcher is None:
            raise RuntimeError("Crawler not initialized; use 'async with AsyncCrawler(...)'")
        if address is None:
            if self.config.base_url is None:
                raise ValueError("No address given and config.base_url is not set")
            address = str(self.config.base_url)
        depth = self.config.max_depth if max_depth is None else max_depth

        root = normalize_url(address)
        visited = VisitedSet()
        limiter = ConcurrencyLimiter(self.config.concurrency)
        link_filter = make_scope_filter(
            root,
            same_host=self.config.same_host,
            same_path_prefix=self.config.same_path_prefix,
        )
        self.stats = CrawlStats()

        self.logger.info("Старт обхода: %s (глубина %d)", root, depth)
        start = time.monotonic()
        results = await self._crawl(fetcher, root, depth, visited, limiter, link_filter)
        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d страниц скачано, %d ссылок найдено, %d ошибок за %.2f с",
            self.stats.fetched, self.stats.discovered, self.stats.failed, duration,
        )
        if root not in results:
            self.logger.error("Root address could not be fetched: %s", root)
        return results

    async def _crawl(
        self,
        fetcher: RetryingFetcher,
        address: str,
        depth: int,
        visited: VisitedSet,
        limiter: ConcurrencyLimiter,
        link_filter: Callable[[str], bool],
    ) -> CrawlResult:
        results: CrawlResult = {}
        if depth < 0 or not visited.claim(address):
            return results
        try:
            async with limiter:
                raw = await fetcher.fetch(address)
        except RETRYABLE_ERRORS:
            self.stats.failed += 1
            return results
        except Exception as exc:
            self.logger.error("Unexpected error while fetching %s: %r", address, exc)
            self.stats.failed += 1
            return results
        self.stats.fetched += 1

        results[address] = self._cleaner(raw).content
        if depth == 0:
            return results

        # links come from the raw markup; cleaning drops nav blocks
        links = sorted(extract_links(address, raw, link_filter))

        if depth == 1:
            for link in links:
                if visited.claim(link):
                    results[link] = NOT_DOWNLOADED
                    self.stats.discovered += 1
            return results

        children: List[CrawlResult | BaseException] = await asyncio.gather(
            *(self._crawl(fetcher, link, depth - 1, visited, limiter, link_filter) for link in links),
            return_exceptions=True,
        )
        for link, child in zip(links, children):
            if isinstance(child, BaseException):
                self.logger.error("Unexpected error while crawling %s: %r", link, child)
                continue
            results.update(child)
        return results

