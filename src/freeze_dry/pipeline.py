"""The freeze-dry pipeline: capture, crawl, dry, compile."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
import logging
import math
from typing import Any, TypeVar

from bs4 import BeautifulSoup

from .capture import Document, capture_dom
from .config import FetchFunction, FreezeDryConfig, Settings
from .domain.resource import Resource
from .environment import DEFAULT_ENVIRONMENT, Environment, require_environment
from .exceptions import ConfigurationError
from .observability.context import bind_document_url
from .observability.metrics import RUN_COUNT, RUN_LATENCY, track_latency
from .observability.tracing import create_span
from .utils.compiler import create_single_file
from .utils.crawler import SubresourceCrawler
from .utils.dry import dry_resources
from .utils.fetcher import HttpResourceFetcher


logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(
    awaitable: Awaitable[T],
    timeout: float | None,
    environment: Environment,
) -> tuple[bool, T | None]:
    """Race ``awaitable`` against the environment's timer.

    Returns ``(True, result)`` when it finished first and ``(False, None)``
    when the timer fired first, in which case ``awaitable`` is cancelled.
    A ``timeout`` of ``None``, ``0`` or infinity waits without a timer.
    """
    if not timeout or math.isinf(timeout):
        return True, await awaitable

    work = asyncio.ensure_future(awaitable)
    timer = asyncio.ensure_future(environment.sleep(timeout))
    try:
        done, _ = await asyncio.wait({work, timer}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        work.cancel()
        raise
    finally:
        timer.cancel()

    if work in done:
        return True, work.result()

    work.cancel()
    # Let the cancelled work run its cleanup before the caller moves on.
    (outcome,) = await asyncio.gather(work, return_exceptions=True)
    if isinstance(outcome, Exception):
        logger.warning(f"Timed-out work failed while stopping: {outcome!r}")
    return False, None


async def crawl_with_timeout(crawler: SubresourceCrawler, root: Resource, config: FreezeDryConfig) -> bool:
    """Crawl ``root`` within ``config.timeout``; False if the deadline cut it short."""
    completed, _ = await with_timeout(crawler.crawl(root), config.timeout, config.glob)
    if not completed:
        crawler.close()
        logger.warning(
            f"Crawl of {root.url} timed out after {config.timeout}s; "
            f"continuing with {crawler.stats.fetched} fetched subresource(s)"
        )
    return completed


def _as_document(document: Any) -> Document:
    if document is None:
        raise ConfigurationError("No document given to freeze-dry")
    if isinstance(document, Document):
        return document
    if isinstance(document, (str, bytes, BeautifulSoup)):
        return Document(document)
    raise ConfigurationError(f"Cannot freeze-dry a {type(document).__name__}; pass a Document, markup or soup")


async def freeze_dry(document: Any = None, config: FreezeDryConfig | None = None, **options: Any) -> str:
    """Freeze-dry an HTML document into a static, self-contained string of HTML.

    Args:
        document: The :class:`Document` to snapshot (or bare markup or a
            BeautifulSoup tree). It is never modified.
        config: Base options; keyword ``options`` override its fields. See
            :class:`FreezeDryConfig` for what they mean.

    Returns:
        The snapshot, with every fetched subresource inlined as a data URL and
        every other URL made absolute.

    Raises:
        ConfigurationError: if no document or no usable environment is given,
            or an option is invalid. Raised before any work starts.
    """
    document = _as_document(document)
    config = FreezeDryConfig.from_options(config, **options)
    environment = require_environment(config.glob or document.environment or DEFAULT_ENVIRONMENT)
    config = config.model_copy(update={"glob": environment, "now": config.now or environment.now()})

    doc_url = config.doc_url or document.url
    bind_document_url(doc_url)

    status = "error"
    try:
        with track_latency(RUN_LATENCY), create_span("freeze_dry", attributes={"freeze_dry.document_url": doc_url}):
            if config.fetch_resource is not None:
                html = await _run_stages(document, config, config.fetch_resource)
            else:
                async with HttpResourceFetcher(Settings()) as fetch_resource:
                    html = await _run_stages(document, config, fetch_resource)
        status = "success"
        return html
    finally:
        RUN_COUNT.labels(status=status).inc()


async def _run_stages(document: Document, config: FreezeDryConfig, fetch_resource: FetchFunction) -> str:
    # Step 1: capture the DOM, and the DOMs inside its frames.
    with create_span("freeze_dry.capture"):
        root = capture_dom(document, config, url=config.doc_url)

    # Step 2: fetch subresources, recursively, until done or out of time.
    crawler = SubresourceCrawler(fetch_resource, config.glob)
    with create_span("freeze_dry.crawl", attributes={"freeze_dry.timeout": str(config.timeout)}) as span:
        completed = await crawl_with_timeout(crawler, root, config)
        span.set_attribute("freeze_dry.crawl_completed", completed)
        span.set_attribute("freeze_dry.fetched", crawler.stats.fetched)

    # Step 3: dry the resources, making them static and context-free.
    with create_span("freeze_dry.dry"):
        dry_resources(root, config)

    # Step 4: compile everything into a single string of HTML.
    with create_span("freeze_dry.compile"):
        html = create_single_file(root, config)

    logger.info(
        f"Freeze-dried {root.url}: {crawler.stats.fetched} subresource(s) fetched, "
        f"{crawler.stats.failed} failed{'' if completed else ', crawl timed out'}"
    )
    return html
