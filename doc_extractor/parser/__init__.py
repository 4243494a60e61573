"""doc_extractor.parser: HTML cleaning."""
