# === FILE: doc_extractor/parser/html_cleaner.py ===
"""HTML cleaning for DocExtractor.

:func:`clean_html` turns a raw page into canonical markup that downstream
consumers (the Markdown formatter, reports) can use directly:

* script/style/iframe/object/embed elements are dropped;
* "non-content" blocks (navigation, footers, sidebars, ads, cookie banners,
  share widgets, ``aria-hidden`` elements) are dropped by tag, ``role`` or
  class/id token; the html/body/main/article wrappers are exempt;
* every attribute outside :data:`ALLOWED_ATTRIBUTES` is stripped, and
  ``on*`` event handlers are stripped unconditionally;
* elements left without text or media are removed;
* the ``<title>`` is returned separately and re-injected as a leading ``<h1>``;
* whitespace is collapsed and block-level tags are put on their own lines;
  ``<pre>`` and ``<textarea>`` content is kept verbatim.

The transform is pure and deterministic. Cleaning its own output again
returns the same string.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Optional

from bs4 import BeautifulSoup
from bs4.element import Comment, Doctype, Tag

from doc_extractor.crawler.models import CleanedPage
from doc_extractor.logger import logger

__all__: Sequence[str] = ("ALLOWED_ATTRIBUTES", "clean_html", "CleanedPage")

REMOVED_TAGS: tuple[str, ...] = (
    "script", "style", "noscript", "template", "iframe", "frame", "frameset",
    "object", "embed", "applet", "head", "meta", "link", "base",
)
NOISE_TAGS: tuple[str, ...] = ("nav", "footer", "aside")
# document and landmark wrappers are never treated as noise
CONTENT_WRAPPERS: frozenset[str] = frozenset({"html", "body", "main", "article"})
# whitespace inside these is significant
PRESERVE_TAGS: tuple[str, ...] = ("pre", "textarea")
NOISE_ROLES: frozenset[str] = frozenset(
    {"navigation", "contentinfo", "complementary", "banner", "menu", "menubar", "dialog", "alertdialog"}
)
ALLOWED_ATTRIBUTES: frozenset[str] = frozenset({"href", "src", "alt", "title", "width", "height"})
MEDIA_TAGS: frozenset[str] = frozenset(
    {"img", "picture", "video", "audio", "source", "svg", "canvas", "math"}
)
# void / structural tags that are meaningful without content
KEEP_EMPTY_TAGS: frozenset[str] = MEDIA_TAGS | frozenset({"br", "hr", "td", "th", "wbr"})
BLOCK_TAGS: tuple[str, ...] = (
    "address", "article", "blockquote", "dd", "div", "dl", "dt", "fieldset", "figcaption",
    "figure", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "li", "main",
    "ol", "p", "pre", "section", "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
)

_NOISE_TOKEN_RE = re.compile(
    r"(?:^|[\s_-])(?:"
    r"nav|navbar|navigation|menu|breadcrumbs?|footer|sidebar|"
    r"ad|ads|advert\w*|sponsor\w*|promo|"
    r"cookies?|consent|gdpr|"
    r"social|share|sharing|"
    r"popup|modal"
    r")(?:$|[\s_-])",
    re.IGNORECASE,
)
_WS_RE = re.compile(r"\s+")
_BLOCK_NAMES = "|".join(BLOCK_TAGS)
_BLOCK_OPEN_RE = re.compile(rf"\s*(<(?:{_BLOCK_NAMES})\b[^>]*>)\s*", re.IGNORECASE)
_BLOCK_CLOSE_RE = re.compile(rf"\s*(</(?:{_BLOCK_NAMES})>)\s*", re.IGNORECASE)
_PRESERVE_NAMES = "|".join(PRESERVE_TAGS)
_PRESERVE_RE = re.compile(
    rf"<({_PRESERVE_NAMES})\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL
)
_PLACEHOLDER_RE = re.compile(r"\s*\x00(\d+)\x00\s*")
_STASH_RE = re.compile(r"\x00(\d+)\x00")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _attr_text(tag: Tag, name: str) -> str:
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def _is_noise(tag: Tag) -> bool:
    """Heuristic "non-content" signature match."""
    if tag.name in CONTENT_WRAPPERS:
        return False
    if tag.name in NOISE_TAGS:
        return True
    if _attr_text(tag, "aria-hidden").strip().lower() == "true":
        return True
    if _attr_text(tag, "role").strip().lower() in NOISE_ROLES:
        return True
    for attr in ("class", "id"):
        if _NOISE_TOKEN_RE.search(_attr_text(tag, attr)):
            return True
    return False


def _has_media(tag: Tag) -> bool:
    return tag.name in MEDIA_TAGS or tag.find(list(MEDIA_TAGS)) is not None


def _first_heading_text(soup: BeautifulSoup) -> Optional[str]:
    first = soup.find(True)
    if isinstance(first, Tag) and first.name == "h1":
        return first.get_text(" ", strip=True)
    return None


def _canonical_whitespace(markup: str) -> str:
    """Collapse whitespace and put block tags on their own lines.

    ``<pre>`` and ``<textarea>`` blocks are set aside first and restored
    verbatim, each on a line of its own.
    """
    preserved: list[str] = []

    def _stash(match: re.Match[str]) -> str:
        preserved.append(match.group(0))
        return f"\x00{len(preserved) - 1}\x00"

    text = _PRESERVE_RE.sub(_stash, markup.replace("\x00", ""))
    text = _WS_RE.sub(" ", text)
    text = _BLOCK_OPEN_RE.sub(r"\n\1", text)
    text = _BLOCK_CLOSE_RE.sub(r"\1\n", text)
    text = _PLACEHOLDER_RE.sub("\n\x00\\1\x00\n", text)
    lines = (line.strip() for line in text.split("\n"))
    text = "\n".join(line for line in lines if line)
    return _STASH_RE.sub(lambda m: preserved[int(m.group(1))], text)


# ---------------------------------------------------------------------------
# Public function
# ---------------------------------------------------------------------------


def _clean(html: str) -> CleanedPage:
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = _WS_RE.sub(" ", title_tag.get_text()).strip() if title_tag else ""
    if title_tag is not None:
        title_tag.decompose()

    for node in soup.find_all(string=lambda s: isinstance(s, (Comment, Doctype))):
        node.extract()

    for element in soup.find_all(list(REMOVED_TAGS)):
        if not element.decomposed:
            element.decompose()

    for element in soup.find_all(True):
        if not element.decomposed and _is_noise(element):
            element.decompose()

    for wrapper in ("html", "body"):
        for element in soup.find_all(wrapper):
            element.unwrap()

    for element in soup.find_all(True):
        element.attrs = {
            name: value
            for name, value in element.attrs.items()
            if name.lower() in ALLOWED_ATTRIBUTES and not name.lower().startswith("on")
        }

    # children come after their parents in document order
    for element in reversed(soup.find_all(True)):
        if element.decomposed or element.name in KEEP_EMPTY_TAGS:
            continue
        if not element.get_text(strip=True) and not _has_media(element):
            element.decompose()

    if title and _first_heading_text(soup) != title:
        heading = soup.new_tag("h1")
        heading.string = title
        soup.insert(0, heading)

    return CleanedPage(title=title, content=_canonical_whitespace(soup.decode()))


def clean_html(html: str) -> CleanedPage:
    """Clean raw *html*; on a parsing anomaly return the raw markup unchanged.

    Partial cleaning is preferable to losing the page, so any exception
    raised while cleaning degrades to ``CleanedPage("", html)``.
    """
    try:
        return _clean(html)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Cleaning failed, keeping raw content: %s", exc)
        return CleanedPage(title="", content=html)
