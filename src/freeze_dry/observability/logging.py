"""Logging setup: plain text, or one orjson object per line tagged with the run context."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import sys
from typing import Any

import orjson

from ..config import Settings
from .context import current_run_context


# Attributes every LogRecord has; anything else was passed via ``extra=``.
_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Formats records as JSON carrying the trace, span and document URL of the run."""

    def format(self, record: logging.LogRecord) -> str:
        ctx = current_run_context()
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "trace_id": ctx.trace_id,
            "span_id": ctx.span_id,
        }
        if ctx.document_url:
            entry["document_url"] = ctx.document_url
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RECORD_ATTRIBUTES
        )
        return orjson.dumps(entry, default=str).decode("utf-8")


def configure_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Install a stdout handler on the root logger.

    Args:
        level: Root log level name; defaults to ``Settings.log_level``
        json_output: Use :class:`JsonFormatter`; defaults to ``Settings.log_json``
    """
    if level is None or json_output is None:
        settings = Settings()
        level = settings.log_level if level is None else level
        json_output = settings.log_json if json_output is None else json_output

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Per-request lines from the HTTP client drown out the crawl summary.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
