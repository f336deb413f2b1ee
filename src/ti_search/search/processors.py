"""Text processors: turn raw documents into (title, body) and index terms.

Every processor implements the same two-method contract, so the indexer and
the retrieval models never care which one is plugged in:

* ``parse(raw_text)`` returns a ``ParsedDocument`` with ``title`` and ``body``
  (empty strings when either cannot be extracted).
* ``process_text(text)`` returns the ordered list of terms to index or query.

Use ``get_processor`` to build one by name.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Protocol

from lxml import etree
import lxml.html

from ti_search.config import ConfigurationError
from ti_search.search.analyzers import (
    AnalyzerPipeline,
    LowercaseFilter,
    MinLengthFilter,
    PorterStemFilter,
    SeparatorTokenizer,
    StopFilter,
    TokenFilter,
)


logger = logging.getLogger(__name__)

DEFAULT_MIN_TERM_LENGTH = 5

_WHITESPACE = re.compile(r"\s+")

_HTML_PARSER = lxml.html.HTMLParser(encoding="utf-8")


@dataclass(frozen=True)
class ParsedDocument:
    """Title and body text extracted from a raw document."""

    title: str = ""
    body: str = ""


class DocumentProcessingError(ValueError):
    """Raised when a raw document cannot be turned into text."""


class TextProcessor(Protocol):
    """Protocol implemented by text processors."""

    def parse(self, raw_text: str) -> ParsedDocument:  # pragma: no cover - interface definition
        ...

    def process_text(self, text: str) -> list[str]:  # pragma: no cover - interface definition
        ...


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def load_stopwords(path: str | Path) -> frozenset[str]:
    """Load a one-word-per-line stopword file into a set.

    Blank lines are ignored and words are lowercased.
    """

    stopwords_path = Path(path)
    try:
        raw = stopwords_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read stopwords file {stopwords_path}: {exc}") from exc
    words = frozenset(line.strip().lower() for line in raw.splitlines() if line.strip())
    logger.debug("Loaded %d stopwords from %s", len(words), stopwords_path)
    return words


class SimpleProcessor:
    """Treats the whole input as body text and keeps long lowercase words."""

    def __init__(
        self,
        *,
        stopwords: Iterable[str] | None = None,
        min_term_length: int = DEFAULT_MIN_TERM_LENGTH,
    ) -> None:
        filters: list[TokenFilter] = [LowercaseFilter(), MinLengthFilter(min_term_length)]
        if stopwords:
            filters.append(StopFilter(stopwords))
        # lowercase first so only [a-z0-9'] survive as word characters
        self.pipeline = AnalyzerPipeline(SeparatorTokenizer("a-z0-9'"), filters)

    def parse(self, raw_text: str) -> ParsedDocument:
        return ParsedDocument(title="", body=raw_text)

    def process_text(self, text: str) -> list[str]:
        return self.pipeline.terms(text.lower())


class HtmlProcessor:
    """Extracts title/body from HTML and emits stemmed, stopword-free terms."""

    def __init__(
        self,
        *,
        stopwords: Iterable[str] | None = None,
        min_term_length: int = DEFAULT_MIN_TERM_LENGTH,
    ) -> None:
        filters: list[TokenFilter] = [MinLengthFilter(min_term_length), LowercaseFilter()]
        if stopwords:
            filters.append(StopFilter(stopwords))
        filters.append(PorterStemFilter())
        self.pipeline = AnalyzerPipeline(SeparatorTokenizer("a-zA-Z0-9'"), filters)

    def parse(self, raw_text: str) -> ParsedDocument:
        if not raw_text.strip():
            return ParsedDocument()
        # lxml refuses str input carrying an XML encoding declaration, so hand it bytes
        try:
            root = lxml.html.document_fromstring(raw_text.encode("utf-8"), parser=_HTML_PARSER)
        except (etree.ParserError, etree.XMLSyntaxError) as exc:
            logger.debug("No extractable HTML content: %s", exc)
            return ParsedDocument()
        except ValueError as exc:
            raise DocumentProcessingError(f"Unparseable HTML: {exc}") from exc

        title_el = root.find(".//title")
        title = collapse_whitespace(title_el.text_content()) if title_el is not None else ""

        body_el = root.find("body")
        body = collapse_whitespace(body_el.text_content()) if body_el is not None else ""
        return ParsedDocument(title=title, body=body)

    def process_text(self, text: str) -> list[str]:
        return self.pipeline.terms(text)


_PROCESSOR_FACTORIES: dict[str, Callable[..., TextProcessor]] = {
    "simple": SimpleProcessor,
    "html": HtmlProcessor,
}


def get_processor(
    name: str | None,
    *,
    stopwords: Iterable[str] | None = None,
    min_term_length: int = DEFAULT_MIN_TERM_LENGTH,
) -> TextProcessor:
    """Return a processor by name, defaulting to the simple processor."""

    normalized = (name or "simple").lower()
    if normalized not in _PROCESSOR_FACTORIES:
        msg = f"Unknown processor '{name}'. Available: {sorted(_PROCESSOR_FACTORIES)}"
        raise ValueError(msg)
    return _PROCESSOR_FACTORIES[normalized](stopwords=stopwords, min_term_length=min_term_length)
