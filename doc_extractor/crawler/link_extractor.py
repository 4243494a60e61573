# doc_extractor/crawler/link_extractor.py
"""
Link extraction for DocExtractor.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Set
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag
from bs4.exceptions import ParserRejectedMarkup

from doc_extractor.logger import LOGGER_NAME
from doc_extractor.utils import is_http_url, normalize_url

logger = logging.getLogger(LOGGER_NAME)


def extract_links(
    base_url: str,
    html: str,
    link_filter: Optional[Callable[[str], bool]] = None,
) -> Set[str]:
    """
    Extract normalized absolute http(s) links from *html*.

    Relative hrefs are resolved against *base_url*, fragments are dropped,
    other schemes (mailto:, javascript:, file:, ...) and malformed targets
    are skipped silently. *link_filter* is applied after normalization.
    Markup the parser rejects yields no links.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        logger.debug("No links extracted from %s: %s", base_url, exc)
        return set()
    links: Set[str] = set()
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str):
            continue
        raw = href_val.strip()
        if not raw:
            continue
        try:
            absolute = normalize_url(urljoin(base_url, raw))
        except ValueError:
            logger.debug("Skipping malformed link %r on %s", raw, base_url)
            continue
        if not is_http_url(absolute):
            continue
        if link_filter is not None and not link_filter(absolute):
            continue
        links.add(absolute)
    return links
