"""The snapshot a log record or span belongs to, carried across async boundaries."""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, replace
from uuid import uuid4


@dataclass(frozen=True)
class RunContext:
    """Correlates the log records of one ``freeze_dry`` run."""

    trace_id: str
    span_id: str
    document_url: str | None = None


_run_context: ContextVar[RunContext | None] = ContextVar("freeze_dry_run_context", default=None)


def current_run_context() -> RunContext:
    """The active run context, starting a fresh trace if there is none."""
    ctx = _run_context.get()
    if ctx is None:
        ctx = RunContext(trace_id=uuid4().hex, span_id=uuid4().hex[:16])
        _run_context.set(ctx)
    return ctx


def bind_document_url(document_url: str | None) -> RunContext:
    """Attach the document being snapshotted to the current trace."""
    ctx = replace(current_run_context(), document_url=document_url)
    _run_context.set(ctx)
    return ctx


def update_span_id(span_id: str) -> None:
    """Point log records at the innermost span, keeping trace and document."""
    _run_context.set(replace(current_run_context(), span_id=span_id))
