"""
Indexing and retrieval package.

This package provides the complete search stack:
- analyzers: Tokenizer and token filters
- processors: Document parsing and term extraction
- models: Vocabulary, document and posting records
- storage: Length-prefixed binary artifacts
- cache: Compressed per-document text cache
- index: In-memory index with load/save
- indexer: Two-pass index builder
- stats: TF, IDF and norm formulas
- cosine: Cosine/TF-IDF retrieval model
- snippet: Highlighted result snippets
"""
