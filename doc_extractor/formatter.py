# File: doc_extractor/formatter.py
"""doc_extractor.formatter: HTML -> Markdown через внешний LLM (OpenAI-совместимый API).

The formatter owns its concurrency limiter and retry policy; create one per
application run and pass it to whoever needs it.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from aiohttp import ClientError, ClientSession, ClientTimeout
from bs4 import BeautifulSoup

from doc_extractor.config import FormatterConfig
from doc_extractor.crawler.limiter import ConcurrencyLimiter
from doc_extractor.crawler.models import FormatterError
from doc_extractor.crawler.retry import RetryPolicy, SleepFunc, run_with_retry
from doc_extractor.logger import logger

__all__ = ["MarkdownFormatter", "build_prompt", "localize_images", "describe_images"]

EOF_MARKER = "<EOF>"

_PROMPT_TEMPLATE = """Convert the following HTML to Markdown.
Here are some rules:
1. Preserve the structure and formatting of the original content as much as possible.
2. Do not include href to any local links, only external links are allowed.
3. Do not include ``` or any other code block formatting, just plain text.

For example:
Do not include any of the following:
[Architecture](architecture)
[Base Protocol](basic)
[Server Features](server)
[Client Features](client)
[Contributing](contributing)

The following are OK:
[#Implementation Guidelines](#implementation-guidelines)
[#Learn More](#learn-more)
[#Key Details](#key-details)
[RFC2119](https://datatracker.ietf.org/doc/html/rfc2119)
[modelcontextprotocol.io](https://modelcontextprotocol.io)

{html}
{eof}"""


def build_prompt(html: str) -> str:
    """Формирует текст запроса к модели."""
    return _PROMPT_TEMPLATE.format(html=html, eof=EOF_MARKER)


def _local_image_name(src: str) -> str:
    return urlparse(src).path.rsplit("/", 1)[-1] or "image.jpg"


def localize_images(html: str) -> str:
    """Заменяет каждый <img> на ``<img src="<имя файла>" alt="Image"/>``."""
    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img", src=True):
        replacement = soup.new_tag("img", attrs={"src": _local_image_name(str(img["src"])), "alt": "Image"})
        img.replace_with(replacement)
    return soup.decode()


def describe_images(html: str) -> str:
    """Заменяет каждый <img> текстовой заглушкой с его src."""
    soup = BeautifulSoup(html, "html.parser")
    for img in soup.find_all("img", src=True):
        block = soup.new_tag("div", attrs={"class": "image-description"})
        block.string = f"[Image description for: {img['src']}]"
        img.replace_with(block)
    return soup.decode()


class MarkdownFormatter:
    """Клиент сервиса форматирования с ограничением параллелизма и повторами."""

    def __init__(
        self,
        session: ClientSession,
        config: FormatterConfig,
        *,
        limiter: Optional[ConcurrencyLimiter] = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.session = session
        self.config = config
        self.limiter = limiter or ConcurrencyLimiter(config.concurrency)
        self.policy = RetryPolicy.from_delays(config.retry_delays)
        self._sleep = sleep

    def _prepare(self, html: str) -> str:
        if self.config.include_images:
            html = localize_images(html)
        if self.config.image_to_text:
            html = describe_images(html)
        return html

    def _payload(self, html: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [{"role": "user", "content": build_prompt(html)}],
            "stream": False,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    async def _request(self, payload: Dict[str, Any]) -> str:
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        async with self.session.post(
            str(self.config.api_url),
            json=payload,
            headers=headers,
            timeout=ClientTimeout(total=self.config.timeout),
        ) as resp:
            if not 200 <= resp.status < 300:
                raise FormatterError(f"Markdown formatting failed: HTTP {resp.status} {resp.reason or ''}".strip())
            try:
                data = await resp.json(content_type=None)
            except ValueError as exc:
                raise FormatterError("Markdown formatting failed: invalid JSON reply") from exc
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise FormatterError("Markdown formatting failed: unexpected reply shape") from exc
        if not isinstance(content, str):
            raise FormatterError("Markdown formatting failed: reply content is not text")
        return content.replace(EOF_MARKER, "").strip()

    async def format(self, html: str) -> str:
        """Возвращает Markdown для *html* или бросает последнюю ошибку после всех повторов."""
        payload = self._payload(self._prepare(html))
        async with self.limiter:
            return await run_with_retry(
                lambda: self._request(payload),
                self.policy,
                (FormatterError, ClientError, asyncio.TimeoutError),
                sleep=self._sleep,
                label="markdown formatting",
            )

    async def try_format(self, url: str, html: str) -> Optional[str]:
        """Как :meth:`format`, но ошибки логируются и дают ``None``."""
        try:
            return await self.format(html)
        except (FormatterError, ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Formatting %s failed: %s", url, exc)
            return None
