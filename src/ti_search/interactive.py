"""Interactive query prompt with paged, highlighted results."""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging
import sys
from typing import TextIO

from ti_search.search.cosine import RetrievalModel
from ti_search.search.index import Index
from ti_search.search.models import RankedDocument
from ti_search.search.processors import TextProcessor
from ti_search.search.snippet import build_snippet, truncate_title
from ti_search.search.storage import StorageError


logger = logging.getLogger(__name__)

QUERY_PROMPT = "Query (empty to exit): "
MORE_PROMPT = "More results? (n = next page, anything else = new query): "
NEXT_PAGE = "n"


class InteractiveRunner:
    """Prompt loop: read a query, show result pages until the user moves on."""

    def __init__(
        self,
        model: RetrievalModel,
        index: Index,
        processor: TextProcessor,
        *,
        page_size: int = 10,
        snippet_length: int = 300,
        input_fn: Callable[[str], str] = input,
        stream: TextIO | None = None,
    ) -> None:
        self.model = model
        self.index = index
        self.processor = processor
        self.page_size = page_size
        self.snippet_length = snippet_length
        self.input_fn = input_fn
        self.stream = stream or sys.stdout

    def run(self) -> None:
        while True:
            self.stream.write("\n")
            query = self._prompt(QUERY_PROMPT)
            if not query:
                return
            results = self.model.run_query(query, self.index, self.processor)
            if not results:
                self.stream.write("No results.\n")
                continue
            self._page_through(query, results)

    def _page_through(self, query: str, results: Sequence[RankedDocument]) -> None:
        start = 0
        while start < len(results):
            self.print_results(query, results, start, self.page_size)
            start += self.page_size
            if start >= len(results):
                return
            if self._prompt(MORE_PROMPT).lower() != NEXT_PAGE:
                return

    def print_results(self, query: str, results: Sequence[RankedDocument], start: int, count: int) -> None:
        """Print ``count`` results from ``start``: rank, name, title and snippet."""

        for rank in range(start, min(len(results), start + count)):
            doc_id = results[rank].doc_id
            doc_name = self.index.documents[doc_id].name
            try:
                cached = self.index.get_cached_document(doc_id)
            except StorageError as exc:
                logger.warning("No cached text for %s: %s", doc_name, exc)
                self.stream.write(f"\n{rank + 1} ({doc_name}):\n")
                continue

            title = truncate_title(cached.title)
            snippet = build_snippet(cached.body, query, self.snippet_length)
            self.stream.write(f"\n{rank + 1} ({doc_name}): {title}\n{snippet}\n")

    def _prompt(self, message: str) -> str:
        try:
            return self.input_fn(message).strip()
        except EOFError:
            return ""
