# File: tests/test_fetcher.py
from __future__ import annotations

import json

import pytest
from aiohttp import ClientSession, web
from conftest import SleepRecorder, html_response, serve_app

from doc_extractor.crawler.fetcher import (
    DirectRetriever,
    RelayProxyRetriever,
    RenderProxyRetriever,
    RetryingFetcher,
)
from doc_extractor.crawler.models import FetchError
from doc_extractor.crawler.retry import RetryPolicy, run_with_retry

DELAYS = RetryPolicy((1000, 5000, 15000))


class Flaky:
    """Fails *failures* times with *error*, then returns "ok"."""

    def __init__(self, failures: int, error: Exception) -> None:
        self.failures = failures
        self.error = error
        self.calls = 0

    async def __call__(self, url: str = "") -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


# --------------------------------------------------------------------------- #
#                                Retry policy                                 #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_three_failures_then_success():
    sleep = SleepRecorder()
    op = Flaky(3, FetchError("u", 500))

    assert await run_with_retry(op, DELAYS, (FetchError,), sleep=sleep) == "ok"
    assert op.calls == 4
    assert sleep.delays == [1000, 5000, 15000]
    assert sleep.delays == sorted(sleep.delays)


@pytest.mark.asyncio()
async def test_four_failures_propagate_without_fourth_wait():
    sleep = SleepRecorder()
    error = FetchError("u", 502)
    op = Flaky(4, error)

    with pytest.raises(FetchError) as exc_info:
        await run_with_retry(op, DELAYS, (FetchError,), sleep=sleep)

    assert exc_info.value is error
    assert op.calls == 4
    assert len(sleep.delays) == 3


@pytest.mark.asyncio()
async def test_non_retryable_error_is_not_retried():
    sleep = SleepRecorder()
    op = Flaky(1, KeyError("bug"))

    with pytest.raises(KeyError):
        await run_with_retry(op, DELAYS, (FetchError,), sleep=sleep)
    assert op.calls == 1
    assert sleep.delays == []


def test_policy_from_delays():
    policy = RetryPolicy.from_delays([1, 5, 15])
    assert policy.delays == (1.0, 5.0, 15.0)
    assert policy.max_attempts == 4


@pytest.mark.asyncio()
async def test_retrying_fetcher_surfaces_final_error():
    sleep = SleepRecorder()
    retriever = Flaky(10, FetchError("http://x/", 503))
    fetcher = RetryingFetcher(retriever, RetryPolicy((0.1, 0.2)), sleep=sleep)

    with pytest.raises(FetchError):
        await fetcher.fetch("http://x/")
    assert retriever.calls == 3
    assert sleep.delays == [0.1, 0.2]


# --------------------------------------------------------------------------- #
#                                 Retrievers                                  #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_direct_retriever():
    app = web.Application()

    async def page(request):
        assert request.headers["User-Agent"] == "TestAgent/1.0"
        return html_response("<p>hello</p>")

    async def gone(_):
        return web.Response(status=410)

    app.router.add_get("/page", page)
    app.router.add_get("/gone", gone)

    async for base in serve_app(app):
        async with ClientSession(headers={"User-Agent": "TestAgent/1.0"}) as session:
            retriever = DirectRetriever(session)
            assert await retriever(f"{base}/page") == "<p>hello</p>"
            with pytest.raises(FetchError) as exc_info:
                await retriever(f"{base}/gone")

    assert exc_info.value.status == 410


@pytest.mark.asyncio()
async def test_render_proxy_retriever():
    app = web.Application()
    seen: list[str] = []

    async def fetch(request):
        body = await request.json()
        seen.append(body["url"])
        if body["url"].endswith("/broken"):
            return web.json_response({"error": "nope"})
        return web.json_response({"html": f"<p>{body['url']}</p>"})

    app.router.add_post("/fetch_generated_html_from_url", fetch)

    async for base in serve_app(app):
        async with ClientSession() as session:
            retriever = RenderProxyRetriever(session, f"{base}/fetch_generated_html_from_url")
            assert await retriever("https://docs.example.org/") == "<p>https://docs.example.org/</p>"
            with pytest.raises(FetchError):
                await retriever("https://docs.example.org/broken")

    assert seen == ["https://docs.example.org/", "https://docs.example.org/broken"]


@pytest.mark.asyncio()
async def test_relay_proxy_retriever():
    app = web.Application()

    async def relay(request):
        target = request.query["url"]
        if "fail" in target:
            return web.Response(status=502)
        return web.Response(text=json.dumps({"relayed": target}), content_type="text/plain")

    app.router.add_get("/proxy", relay)

    async for base in serve_app(app):
        async with ClientSession() as session:
            retriever = RelayProxyRetriever(session, f"{base}/proxy")
            text = await retriever("https://example.com/a?b=1")
            with pytest.raises(FetchError):
                await retriever("https://example.com/fail")

    assert json.loads(text) == {"relayed": "https://example.com/a?b=1"}
