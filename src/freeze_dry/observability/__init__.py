"""Observability: structured logging, tracing and metrics."""

from .context import RunContext, bind_document_url, current_run_context
from .logging import JsonFormatter, configure_logging
from .metrics import (
    CRAWL_DURATION,
    FETCH_COUNT,
    RUN_COUNT,
    RUN_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from .tracing import create_span, get_tracer, init_tracing


__all__ = [
    "CRAWL_DURATION",
    "FETCH_COUNT",
    "RUN_COUNT",
    "RUN_LATENCY",
    "JsonFormatter",
    "RunContext",
    "bind_document_url",
    "configure_logging",
    "create_span",
    "current_run_context",
    "get_metrics",
    "get_metrics_content_type",
    "get_tracer",
    "init_tracing",
    "track_latency",
]
