# File: tests/test_report.py
from __future__ import annotations

import json

from doc_extractor.aggregator import aggregate_results
from doc_extractor.report.json_report import render_json
from doc_extractor.report.markdown_report import render_markdown, render_markdown_text

ROOT = "https://docs.example.com/"

RESULTS = {
    "https://docs.example.com/b": "",
    "https://docs.example.com/a": "<p>A page</p>",
    ROOT: "<h1>Docs</h1>",
}


def test_aggregate_orders_root_first():
    report = aggregate_results(ROOT, 2, RESULTS)
    assert [p["url"] for p in report.pages] == [ROOT, "https://docs.example.com/a", "https://docs.example.com/b"]
    assert report.root_fetched is True
    assert [p["url"] for p in report.downloaded] == [ROOT, "https://docs.example.com/a"]
    assert [p["url"] for p in report.discovered] == ["https://docs.example.com/b"]


def test_aggregate_without_root():
    report = aggregate_results(ROOT, 1, {})
    assert report.root_fetched is False
    assert report.pages == []


def test_aggregate_attaches_markdown():
    report = aggregate_results(ROOT, 2, RESULTS, {ROOT: "# Docs", "https://docs.example.com/a": None})
    pages = {p["url"]: p for p in report.pages}
    assert pages[ROOT]["markdown"] == "# Docs"
    assert pages["https://docs.example.com/a"]["markdown"] is None
    assert "markdown" not in pages["https://docs.example.com/b"]


def test_report_json_roundtrip(tmp_path):
    report = aggregate_results(ROOT, 2, RESULTS)
    data = json.loads(report.json())
    assert data["root"] == ROOT
    assert data["max_depth"] == 2

    saved = render_json(report, tmp_path / "out" / "report.json")
    assert json.loads(saved.read_text(encoding="utf-8")) == data


def test_markdown_document(tmp_path):
    report = aggregate_results(ROOT, 2, RESULTS, {ROOT: "# Docs (formatted)"})
    text = render_markdown_text(report)

    assert "## Source: https://docs.example.com/" in text
    assert "# Docs (formatted)" in text
    assert "<p>A page</p>" in text
    assert "## Discovered links (not downloaded)" in text
    assert "- https://docs.example.com/b" in text
    assert text.index("# Docs (formatted)") < text.index("<p>A page</p>")

    saved = render_markdown(report, tmp_path / "docs.md")
    assert saved.read_text(encoding="utf-8") == text


def test_markdown_custom_template(tmp_path):
    (tmp_path / "document.md.j2").write_text(
        "{% for page in downloaded %}{{ page.url }}\n{% endfor %}", encoding="utf-8"
    )
    report = aggregate_results(ROOT, 2, RESULTS)
    text = render_markdown_text(report, tmp_path)
    assert text.splitlines() == [ROOT, "https://docs.example.com/a"]
