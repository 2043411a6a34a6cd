"""Concurrent crawler for the subresources of a captured page.

Starting from the root resource, every subresource link is followed: each
distinct absolute URL is fetched at most once, the resulting resource is
attached to every link that points at that URL, and documents and stylesheets
are crawled in turn. All fetches run concurrently on the event loop.

A fetch is registered in the URL-keyed mapping before it starts, so a link
discovered later (including one that closes a cycle back to an ancestor)
reuses the pending or completed fetch instead of starting another.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Coroutine
from dataclasses import dataclass
import logging
import time
from typing import Any

from ..config import FetchFunction
from ..domain.links import Link, SubresourceType
from ..domain.resource import HTML_MIME_TYPES, DocumentResource, Resource, StylesheetResource
from ..environment import DEFAULT_ENVIRONMENT, Environment
from ..exceptions import FetchError
from ..observability.metrics import CRAWL_DURATION, FETCH_COUNT
from .fetcher import FetchedResource, fetch_subresource


logger = logging.getLogger(__name__)

# Scripts are removed when drying, so their content would never be used.
SKIPPED_SUBRESOURCE_TYPES: frozenset[str] = frozenset({"script"})


@dataclass
class CrawlStats:
    """Counters describing one crawl."""

    fetched: int = 0
    failed: int = 0
    reused: int = 0
    discarded: int = 0


class SubresourceCrawler:
    """Fetches the subresources of a resource tree, recursively and concurrently.

    Features:
    - URL-keyed mapping of fetch tasks guarantees one fetch per URL
    - Cycles degenerate into lookups in that mapping
    - Failed fetches leave their links without a resource
    - ``close()`` abandons pending fetches; late results are discarded
    """

    def __init__(self, fetch_resource: FetchFunction, environment: Environment | None = None):
        """Initialize crawler.

        Args:
            fetch_resource: Async callable fetching one URL
            environment: Supplies the HTML parser for fetched documents
        """
        self.fetch_resource = fetch_resource
        self.environment = environment or DEFAULT_ENVIRONMENT

        # URL -> task resolving to the fetched resource, or None on failure
        self.fetches: dict[str, asyncio.Task[Resource | None]] = {}
        self.stats = CrawlStats()

        self._pending: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def crawl(self, root: Resource) -> None:
        """Crawl all subresources reachable from ``root``.

        Returns when no fetch is pending any more. If cancelled (e.g. by a
        timeout) the crawler is closed, leaving the tree as it is.
        """
        if self._closed:
            raise RuntimeError("Crawler has been closed")

        start_time = time.perf_counter()
        try:
            self._schedule_links(root)
            while self._pending:
                done, _ = await asyncio.wait(set(self._pending))
                for task in done:
                    # Fetch failures are handled inside the tasks; anything else is a bug.
                    if not task.cancelled() and task.exception() is not None:
                        raise task.exception()
        finally:
            if self._pending:
                self.close()
            CRAWL_DURATION.observe(time.perf_counter() - start_time)
            self._log_completion(start_time)

    def close(self) -> None:
        """Stop the crawl: cancel pending fetches and ignore any late results."""
        if self._closed:
            return
        self._closed = True
        pending = [task for task in self._pending if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            logger.info(f"Crawl stopped with {len(pending)} pending task(s); their results will be discarded")

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    def _schedule_links(self, resource: Resource) -> None:
        """Schedule the resolution of every subresource link of ``resource``."""
        for link in resource.links:
            if not link.is_subresource:
                continue

            # Resources attached during capture (frame contents) are not fetched but crawled.
            if link.resource is not None:
                self._schedule_links(link.resource)
                continue

            if link.subresource_type in SKIPPED_SUBRESOURCE_TYPES:
                continue

            url = link.absolute_target
            if url is None:
                continue

            fetch = self.fetches.get(url)
            if fetch is None:
                fetch = self._spawn(self._fetch(url, link.subresource_type))
                self.fetches[url] = fetch
            else:
                self.stats.reused += 1
            self._spawn(self._resolve_link(link, fetch))

    async def _resolve_link(self, link: Link, fetch: Awaitable[Resource | None]) -> None:
        resource = await fetch
        if resource is None:
            return
        if self._closed:
            self.stats.discarded += 1
            return
        link.resource = resource

    async def _fetch(self, url: str, subresource_type: SubresourceType | None) -> Resource | None:
        """Fetch one URL and build its resource; None if anything goes wrong."""
        try:
            fetched = await fetch_subresource(self.fetch_resource, url)
            resource = self._build_resource(fetched, subresource_type)
        except FetchError as e:
            self.stats.failed += 1
            FETCH_COUNT.labels(outcome="failed").inc()
            logger.warning(str(e))
            return None

        if self._closed:
            self.stats.discarded += 1
            FETCH_COUNT.labels(outcome="discarded").inc()
            logger.debug(f"Discarding {url}: fetched after the crawl was closed")
            return None

        self.stats.fetched += 1
        FETCH_COUNT.labels(outcome="fetched").inc()
        logger.debug(f"Fetched {url} as {type(resource).__name__}")

        # Children are scheduled before any link gets this resource.
        self._schedule_links(resource)
        return resource

    def _build_resource(self, fetched: FetchedResource, subresource_type: SubresourceType | None) -> Resource:
        """Wrap fetched content in the resource class its link type calls for."""
        blob = fetched.blob
        if subresource_type == "document" and (not blob.mime_type or blob.mime_type in HTML_MIME_TYPES):
            try:
                doc = self.environment.parse_html(blob.text())
            except Exception as e:
                raise FetchError(fetched.url, f"unparsable document: {e}") from e
            return DocumentResource(fetched.url, doc)
        if subresource_type == "style":
            return StylesheetResource(fetched.url, blob.text())
        return Resource(fetched.url, blob)

    def _log_completion(self, start_time: float):
        elapsed = time.perf_counter() - start_time
        logger.info(
            f"Crawl finished in {elapsed:.2f}s: {self.stats.fetched} fetched, {self.stats.failed} failed, "
            f"{self.stats.reused} reused, {self.stats.discarded} discarded"
        )

