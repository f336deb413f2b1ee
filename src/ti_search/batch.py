"""Batch retrieval over an XML topics file with TREC-format output."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
from pathlib import Path
import sys
from typing import TextIO

from lxml import etree

from ti_search.config import ConfigurationError
from ti_search.search.cosine import RetrievalModel
from ti_search.search.index import Index
from ti_search.search.models import RankedDocument
from ti_search.search.processors import TextProcessor


logger = logging.getLogger(__name__)

RUN_TAG = "sys"


@dataclass(frozen=True)
class Topic:
    """A query read from the topics file."""

    query_id: str
    text: str


def read_topics(path: str | Path) -> list[Topic]:
    """Read ``<topic id="..."><title>...</title></topic>`` records.

    Raises:
        ConfigurationError: the file is missing or not well-formed XML.
    """

    topics_path = Path(path)
    try:
        tree = etree.parse(str(topics_path))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read query file {topics_path}: {exc}") from exc
    except etree.XMLSyntaxError as exc:
        raise ConfigurationError(f"Malformed query file {topics_path}: {exc}") from exc

    topics: list[Topic] = []
    for node in tree.iter("topic"):
        query_id = node.get("id", "")
        title = node.find("title")
        if title is None:
            logger.warning("Topic %r has no title; skipping", query_id)
            continue
        topics.append(Topic(query_id=query_id, text="".join(title.itertext()).strip()))
    return topics


def format_trec_line(query_id: str, doc_name: str, rank: int, score: float) -> str:
    return f"{query_id}\tQ0\t{doc_name}\t{rank}\t{score}\t{RUN_TAG}"


class BatchRunner:
    """Runs every topic through a retrieval model and prints TREC lines."""

    def __init__(
        self,
        model: RetrievalModel,
        index: Index,
        processor: TextProcessor,
        *,
        page_size: int = 500,
        stream: TextIO | None = None,
    ) -> None:
        self.model = model
        self.index = index
        self.processor = processor
        self.page_size = page_size
        self.stream = stream or sys.stdout

    def run(self, topics: Sequence[Topic]) -> int:
        """Write results for every topic; return the number of lines written."""

        written = 0
        for topic in topics:
            results = self.model.run_query(topic.text, self.index, self.processor)
            logger.debug("Topic %s: %d results", topic.query_id, len(results))
            written += self.print_results(results, topic.query_id)
        return written

    def print_results(self, results: Sequence[RankedDocument], query_id: str) -> int:
        page = results[: self.page_size]
        for rank, ranked in enumerate(page, start=1):
            doc_name = self.index.documents[ranked.doc_id].name
            self.stream.write(format_trec_line(query_id, doc_name, rank, ranked.score) + "\n")
        return len(page)
