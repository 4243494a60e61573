"""doc_extractor.report: JSON and Markdown reports."""
