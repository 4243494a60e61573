# File: tests/test_link_extractor.py
from __future__ import annotations

import pytest

from doc_extractor.crawler.link_extractor import extract_links
from doc_extractor.utils import make_scope_filter, normalize_url

BASE = "https://docs.example.com/guide/intro"


def anchors(*hrefs: str) -> str:
    return "".join(f'<a href="{h}">x</a>' for h in hrefs)


def test_relative_links_are_resolved():
    links = extract_links(BASE, anchors("setup", "../api", "/root", "?page=2"))
    assert links == {
        "https://docs.example.com/guide/setup",
        "https://docs.example.com/api",
        "https://docs.example.com/root",
        "https://docs.example.com/guide/intro?page=2",
    }


def test_fragment_variants_collapse():
    links = extract_links(BASE, anchors("setup#one", "setup#two", "setup", "#top"))
    assert links == {"https://docs.example.com/guide/setup", BASE}


@pytest.mark.parametrize(
    "href",
    [
        "mailto:team@example.com",
        "javascript:void(0)",
        "file:///etc/passwd",
        "ftp://files.example.com/a",
        "tel:+123",
        "data:text/html,hi",
    ],
)
def test_non_http_schemes_are_dropped(href):
    assert extract_links(BASE, anchors(href)) == set()


def test_malformed_targets_are_skipped():
    links = extract_links(BASE, anchors("http://[::1", "next") + "<a>no href</a>")
    assert links == {"https://docs.example.com/guide/next"}


def test_scheme_and_host_are_lowercased():
    links = extract_links(BASE, anchors("HTTPS://Docs.Example.COM/Path"))
    assert links == {"https://docs.example.com/Path"}


def test_filter_applies_after_normalization():
    scope = make_scope_filter(BASE, same_host=True, same_path_prefix=True)
    links = extract_links(
        BASE,
        anchors("https://DOCS.example.com/guide/a#x", "/blog/b", "https://other.org/guide/c"),
        scope,
    )
    assert links == {"https://docs.example.com/guide/a"}


def test_empty_document_has_no_links():
    assert extract_links(BASE, "") == set()


def test_rejected_markup_has_no_links():
    assert extract_links(BASE, '<p>hello</p><a href="/a">a</a><![foo]>') == set()


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("HTTP://Example.com", "http://example.com/"),
        ("http://example.com/a/#frag", "http://example.com/a/"),
        ("http://example.com/a?x=1#frag", "http://example.com/a?x=1"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected
    assert normalize_url(expected) == expected
