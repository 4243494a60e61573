# doc_extractor/crawler/fetcher.py
"""
Fetcher module: content-retrieval collaborators and the retrying fetcher.

A *retriever* is any ``async (url) -> str`` callable. Three HTTP retrievers
share one :class:`aiohttp.ClientSession`:

* :class:`DirectRetriever`: plain ``GET url``;
* :class:`RenderProxyRetriever`: ``POST {"url": url}`` to a fetch-and-render
  service answering ``{"html": "..."}``;
* :class:`RelayProxyRetriever`: ``GET proxy?url=...`` through a local relay.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Tuple, Type

from aiohttp import ClientError, ClientResponse, ClientSession

from doc_extractor.config import CrawlerConfig
from doc_extractor.crawler.models import FetchError
from doc_extractor.crawler.retry import RetryPolicy, SleepFunc, run_with_retry
from doc_extractor.logger import LOGGER_NAME

Retriever = Callable[[str], Awaitable[str]]

#: Failures the fetcher retries and the crawler contains per address.
RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (FetchError, ClientError, asyncio.TimeoutError)

logger = logging.getLogger(LOGGER_NAME)

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8"


def _raise_for_status(url: str, resp: ClientResponse) -> None:
    if not 200 <= resp.status < 300:
        raise FetchError(url, resp.status, resp.reason or "")


class DirectRetriever:
    """Fetches the page itself."""

    def __init__(self, session: ClientSession) -> None:
        self.session = session

    async def __call__(self, url: str) -> str:
        async with self.session.get(url, headers={"Accept": _ACCEPT}) as resp:
            _raise_for_status(url, resp)
            return await resp.text(errors="replace")


class RenderProxyRetriever:
    """Asks a remote fetch-and-render service for the generated HTML."""

    def __init__(self, session: ClientSession, proxy_url: str) -> None:
        self.session = session
        self.proxy_url = proxy_url

    async def __call__(self, url: str) -> str:
        async with self.session.post(self.proxy_url, json={"url": url}) as resp:
            _raise_for_status(url, resp)
            try:
                data = await resp.json(content_type=None)
            except ValueError as exc:
                raise FetchError(url, resp.status, "proxy answered invalid JSON") from exc
        html = data.get("html") if isinstance(data, dict) else None
        if not isinstance(html, str):
            raise FetchError(url, resp.status, "proxy response has no html")
        return html


class RelayProxyRetriever:
    """Fetches through a same-origin relay: ``GET proxy_url?url=<url>``."""

    def __init__(self, session: ClientSession, proxy_url: str) -> None:
        self.session = session
        self.proxy_url = proxy_url

    async def __call__(self, url: str) -> str:
        async with self.session.get(
            self.proxy_url, params={"url": url}, headers={"Accept": _ACCEPT}
        ) as resp:
            _raise_for_status(url, resp)
            return await resp.text(errors="replace")


def build_retriever(session: ClientSession, config: CrawlerConfig) -> Retriever:
    """Pick the retriever configured by ``config.fetch_mode``."""
    if config.fetch_mode == "render_proxy":
        return RenderProxyRetriever(session, str(config.proxy_url))
    if config.fetch_mode == "relay_proxy":
        return RelayProxyRetriever(session, str(config.proxy_url))
    return DirectRetriever(session)


class RetryingFetcher:
    """Fetches one address through *retriever*, retrying per *policy*.

    Every attempt is independent. After the last delay is used the final
    error is raised to the caller unchanged.
    """

    def __init__(
        self,
        retriever: Retriever,
        policy: Optional[RetryPolicy] = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.retriever = retriever
        self.policy = policy or RetryPolicy()
        self._sleep = sleep

    async def fetch(self, url: str) -> str:
        try:
            return await run_with_retry(
                lambda: self.retriever(url),
                self.policy,
                RETRYABLE_ERRORS,
                sleep=self._sleep,
                label=url,
            )
        except RETRYABLE_ERRORS as exc:
            logger.warning(
                "Failed %s after %d attempts: %s",
                url, self.policy.max_attempts, str(exc) or type(exc).__name__,
            )
            raise
