# doc_extractor/crawler/models.py
"""
Data models for the DocExtractor crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Set

#: Result-map value for an address that was discovered but not downloaded.
NOT_DOWNLOADED: str = ""

#: Normalized address -> cleaned content (or :data:`NOT_DOWNLOADED`).
CrawlResult = Dict[str, str]


class DocExtractorError(Exception):
    """Base class for DocExtractor errors."""


class FetchError(DocExtractorError):
    """Non-success answer from a content-retrieval collaborator."""

    def __init__(self, url: str, status: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"HTTP {status}" if status is not None else "failed"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(f"Error fetching {url}: {detail}")


class FormatterError(DocExtractorError):
    """The Markdown formatting service failed or answered malformed data."""


@dataclass(slots=True)
class CleanedPage:
    """Cleaner output: canonical markup plus the extracted document title."""

    title: str
    content: str


@dataclass(slots=True)
class CrawlStats:
    """Per-traversal counters, reported in the finish log line."""

    fetched: int = 0
    failed: int = 0
    discovered: int = 0


class VisitedSet:
    """Addresses claimed during one traversal.

    ``claim`` checks and inserts without awaiting, so under asyncio it is
    atomic with respect to every other branch of the same crawl.
    """

    __slots__ = ("_seen",)

    def __init__(self) -> None:
        self._seen: Set[str] = set()

    def claim(self, address: str) -> bool:
        """Mark *address* visited; return False if it was already claimed."""
        if address in self._seen:
            return False
        self._seen.add(address)
        return True

    def __contains__(self, address: object) -> bool:
        return address in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def __iter__(self) -> Iterator[str]:
        return iter(self._seen)
