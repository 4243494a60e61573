# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import AsyncIterator
from typing import Callable, Dict, List, Mapping, Optional, Union

import pytest
from aiohttp import web

from doc_extractor.config import CrawlerConfig
from doc_extractor.crawler.models import FetchError

ROOT = "http://example.com/"

PageSpec = Union[str, Exception, Callable[[int], str]]


class FakeSite:
    """In-memory retrieval collaborator.

    Values are HTML strings, exceptions (raised on every call) or callables
    receiving the 1-based attempt number.
    """

    def __init__(self, pages: Mapping[str, PageSpec], latency: float = 0.0) -> None:
        self.pages = dict(pages)
        self.latency = latency
        self.calls: Counter[str] = Counter()
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, url: str) -> str:
        self.calls[url] += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            spec = self.pages.get(url)
            if spec is None:
                raise FetchError(url, 404, "Not Found")
            if isinstance(spec, Exception):
                raise spec
            if callable(spec):
                return spec(self.calls[url])
            return spec
        finally:
            self.in_flight -= 1


class SleepRecorder:
    """Replacement for ``asyncio.sleep`` that only records the delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def links_page(*hrefs: str, title: Optional[str] = None, body: str = "") -> str:
    head = f"<head><title>{title}</title></head>" if title else ""
    anchors = "".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return f"<html>{head}<body><p>{body or 'content'}</p>{anchors}</body></html>"


@pytest.fixture()
def basic_config() -> CrawlerConfig:
    """Return a basic valid CrawlerConfig for crawler tests."""
    return CrawlerConfig(
        base_url=ROOT,
        max_depth=2,
        concurrency=3,
        retry_delays=[1.0, 5.0, 15.0],
        timeout=2.0,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


async def serve_app(app: web.Application) -> AsyncIterator[str]:
    """Start *app* on a free local port, yield its base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


def html_response(text: str, status: int = 200) -> web.Response:
    return web.Response(text=text, status=status, content_type="text/html")


def make_site_app(pages: Dict[str, str]) -> web.Application:
    """aiohttp app serving *pages* (path -> HTML)."""
    app = web.Application()
    for path, html in pages.items():
        async def handler(_request, _html=html):
            return html_response(_html)
        app.router.add_get(path, handler)
    return app
