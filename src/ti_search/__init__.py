"""ti-search: a single-node TF-IDF cosine search engine."""

__version__ = "0.1.0"
