"""Command line entry point: build an index, run batch topics, or query interactively."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
import logging
from pathlib import Path
import sys

from pydantic import ValidationError

from ti_search.batch import BatchRunner, read_topics
from ti_search.config import (
    ConfigurationError,
    Settings,
    validate_collection,
    validate_existing_index,
    validate_file,
    validate_index_target,
)
from ti_search.interactive import InteractiveRunner
from ti_search.observability import command_context, configure_logging
from ti_search.search.cosine import get_retrieval_model
from ti_search.search.index import Index
from ti_search.search.indexer import Indexer, IndexingContext
from ti_search.search.processors import TextProcessor, get_processor, load_stopwords
from ti_search.search.storage import StorageError


logger = logging.getLogger(__name__)


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ti-search", description="TF-IDF cosine search engine")
    parser.add_argument("--log-level", help="Override TI_LOG_LEVEL")
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    index_cmd = subparsers.add_parser("index", help="Build an index from a document collection")
    index_cmd.add_argument("index_dir", type=Path, help="Directory to write the index to")
    index_cmd.add_argument("collection_dir", type=Path, help="Directory holding the documents")
    index_cmd.add_argument("stopwords", type=Path, nargs="?", help="Optional stopword list, one word per line")
    index_cmd.add_argument("--processor", choices=["simple", "html"], help="Override TI_PROCESSOR")

    batch_cmd = subparsers.add_parser("batch", help="Run an XML topics file and print TREC results")
    batch_cmd.add_argument("index_dir", type=Path, help="Directory holding a built index")
    batch_cmd.add_argument("queries", type=Path, help="XML file with <topic> records")
    batch_cmd.add_argument("--stopwords", type=Path, help="Stopword list used when the index was built")
    batch_cmd.add_argument("--processor", choices=["simple", "html"], help="Override TI_PROCESSOR")

    interactive_cmd = subparsers.add_parser("interactive", help="Query an index from the terminal")
    interactive_cmd.add_argument("index_dir", type=Path, help="Directory holding a built index")
    interactive_cmd.add_argument("--stopwords", type=Path, help="Stopword list used when the index was built")
    interactive_cmd.add_argument("--processor", choices=["simple", "html"], help="Override TI_PROCESSOR")
    return parser


def _build_processor(settings: Settings, args: argparse.Namespace) -> TextProcessor:
    stopwords = None
    if args.stopwords is not None:
        stopwords = load_stopwords(validate_file(args.stopwords, label="list of stop words"))
    return get_processor(
        args.processor or settings.processor,
        stopwords=stopwords,
        min_term_length=settings.min_term_length,
    )


def _load_index(settings: Settings, index_dir: Path) -> Index:
    index = Index(validate_existing_index(index_dir), cache_bucket_count=settings.cache_bucket_count)
    logger.info("Loading index from %s", index_dir)
    index.load()
    index.log_statistics()
    return index


def run_index(settings: Settings, args: argparse.Namespace) -> int:
    validate_index_target(args.index_dir)
    validate_collection(args.collection_dir)
    processor = _build_processor(settings, args)

    context = IndexingContext(
        index_dir=args.index_dir,
        collection_dir=args.collection_dir,
        processor=processor,
        document_suffix=settings.document_suffix,
        document_encoding=settings.document_encoding,
        cache_bucket_count=settings.cache_bucket_count,
    )
    result = Indexer(context).run()
    if result.documents_skipped:
        logger.warning(
            "Indexed %d documents; %d could not be indexed",
            result.documents_indexed,
            result.documents_skipped,
        )
    else:
        logger.info("Indexed %d documents", result.documents_indexed)
    return 0


def run_batch(settings: Settings, args: argparse.Namespace) -> int:
    validate_existing_index(args.index_dir)
    queries = validate_file(args.queries, label="query file")
    processor = _build_processor(settings, args)
    topics = read_topics(queries)
    index = _load_index(settings, args.index_dir)

    runner = BatchRunner(
        get_retrieval_model(settings.retrieval_model),
        index,
        processor,
        page_size=settings.batch_page_size,
    )
    written = runner.run(topics)
    logger.info("Ran %d topics, wrote %d result lines", len(topics), written)
    return 0


def run_interactive(settings: Settings, args: argparse.Namespace) -> int:
    validate_existing_index(args.index_dir)
    processor = _build_processor(settings, args)
    index = _load_index(settings, args.index_dir)

    runner = InteractiveRunner(
        get_retrieval_model(settings.retrieval_model),
        index,
        processor,
        page_size=settings.interactive_page_size,
        snippet_length=settings.snippet_length,
    )
    runner.run()
    return 0


_COMMANDS = {
    "index": run_index,
    "batch": run_batch,
    "interactive": run_interactive,
}


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as exc:
        sys.stderr.write(f"Invalid configuration: {exc}\n")
        return 1

    configure_logging(args.log_level or settings.log_level, json_output=args.json_logs or settings.log_json)

    with command_context(args.command):
        try:
            return _COMMANDS[args.command](settings, args)
        except ConfigurationError as exc:
            logger.error("%s", exc)
            return 1
        except StorageError as exc:
            logger.error("Index storage failure: %s", exc)
            return 1


if __name__ == "__main__":
    sys.exit(main())
