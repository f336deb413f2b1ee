"""Run context attached to every log record of a command invocation."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from uuid import uuid4


run_context: ContextVar[dict | None] = ContextVar("run_context", default=None)


def generate_run_id() -> str:
    """Generate a 16-char hex run ID."""
    return uuid4().hex[:16]


def get_run_context() -> dict:
    """Get the current run context, creating a run ID on first use."""
    ctx = run_context.get()
    if ctx is None or not ctx.get("run_id"):
        ctx = {"run_id": generate_run_id()}
        run_context.set(ctx)
    return ctx


@contextmanager
def command_context(command: str, **extra: object) -> Iterator[dict]:
    """Scope a run context to a block and restore the previous one afterwards."""
    token = run_context.set({"run_id": generate_run_id(), "command": command, **extra})
    try:
        yield run_context.get() or {}
    finally:
        run_context.reset(token)
