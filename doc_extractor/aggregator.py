# File: doc_extractor/aggregator.py
"""doc_extractor.aggregator: Сборка отчёта из карты результатов обхода."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Optional, TypedDict

from doc_extractor.crawler.models import NOT_DOWNLOADED


class PageInfo(TypedDict, total=False):
    """Информация о странице в отчёте."""

    url: str
    content: str
    downloaded: bool
    markdown: Optional[str]


@dataclass(slots=True)
class ExtractionReport:
    """Результат обхода: страницы (корень первым) и признак успеха корня."""

    root: str
    max_depth: int
    pages: List[PageInfo] = field(default_factory=list)
    root_fetched: bool = False

    @property
    def downloaded(self) -> List[PageInfo]:
        return [p for p in self.pages if p.get("downloaded")]

    @property
    def discovered(self) -> List[PageInfo]:
        return [p for p in self.pages if not p.get("downloaded")]

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(asdict(self), ensure_ascii=False, indent=2 if pretty else None)


def aggregate_results(
    root: str,
    max_depth: int,
    results: Mapping[str, str],
    markdown: Optional[Dict[str, Optional[str]]] = None,
) -> ExtractionReport:
    """Преобразует карту адрес -> контент в ExtractionReport.

    Пустая строка в *results* означает «ссылка найдена, но не скачана».
    """
    markdown = markdown or {}
    ordered = sorted(results, key=lambda url: (url != root, url))
    pages: List[PageInfo] = []
    for url in ordered:
        content = results[url]
        page: PageInfo = {
            "url": url,
            "content": content,
            "downloaded": content != NOT_DOWNLOADED or url == root,
        }
        if url in markdown:
            page["markdown"] = markdown[url]
        pages.append(page)
    return ExtractionReport(root=root, max_depth=max_depth, pages=pages, root_fetched=root in results)


__all__ = ["PageInfo", "ExtractionReport", "aggregate_results"]
