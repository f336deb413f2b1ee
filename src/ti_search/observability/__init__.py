"""Logging and run-context helpers."""

from ti_search.observability.context import command_context, get_run_context
from ti_search.observability.logging import JsonFormatter, configure_logging


__all__ = [
    "JsonFormatter",
    "command_context",
    "configure_logging",
    "get_run_context",
]
