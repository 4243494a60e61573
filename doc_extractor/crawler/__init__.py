"""doc_extractor.crawler: traversal, fetching, link extraction and concurrency limiting."""
