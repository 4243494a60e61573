# doc_extractor/__init__.py
"""
DocExtractor package initializer.
Defines package version and exposes the crawler entry points.
"""
__version__ = "0.1.0"

from doc_extractor.crawler.crawler import AsyncCrawler  # noqa: E402
from doc_extractor.engine import start_crawl  # noqa: E402

__all__ = ["__version__", "AsyncCrawler", "start_crawl"]
