"""Prometheus metrics for snapshot runs and subresource fetches."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


RUN_COUNT = Counter(
    "freeze_dry_runs_total",
    "Total freeze-dry runs",
    ["status"],
)

RUN_LATENCY = Histogram(
    "freeze_dry_run_seconds",
    "Duration of a whole freeze-dry run in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)

FETCH_COUNT = Counter(
    "freeze_dry_fetches_total",
    "Subresource fetches by outcome",
    ["outcome"],
)

CRAWL_DURATION = Histogram(
    "freeze_dry_crawl_seconds",
    "Time spent crawling subresources",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
)


@contextmanager
def track_latency(histogram: Histogram) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get content type for a metrics endpoint."""
    return CONTENT_TYPE_LATEST
