"""Fetching subresources.

The crawler accepts any async ``fetch_resource(url)`` callable. It may return
an ``httpx.Response`` or a :class:`FetchedResource`; :func:`fetch_subresource`
normalizes both and turns every kind of failure into a :class:`FetchError`.

:class:`HttpResourceFetcher` is the fetch function used when none is given.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
import logging
from typing import Any
from urllib.parse import urlsplit

import httpx

from ..config import FetchFunction, Settings
from ..domain.resource import Blob
from ..exceptions import FetchError
from .data_url import is_data_url, parse_data_url


logger = logging.getLogger(__name__)


@dataclass
class FetchedResource:
    """The simplified result a fetch function may return instead of a response."""

    blob: Blob
    url: str


def _response_url(response: httpx.Response, requested_url: str) -> str:
    try:
        return str(response.url) or requested_url
    except RuntimeError:
        # Responses built by hand have no request attached.
        return requested_url


def normalize_fetch_result(result: Any, requested_url: str) -> FetchedResource:
    """Convert whatever a fetch function returned into a FetchedResource.

    Raises:
        FetchError: for non-success responses and unrecognised results
    """
    if isinstance(result, FetchedResource):
        return result

    if isinstance(result, httpx.Response):
        if not result.is_success:
            raise FetchError(requested_url, f"HTTP {result.status_code}")
        blob = Blob(result.content, result.headers.get("content-type", ""))
        return FetchedResource(blob=blob, url=_response_url(result, requested_url))

    if isinstance(result, Mapping) and "blob" in result:
        blob = result["blob"]
        if isinstance(blob, (bytes, bytearray)):
            blob = Blob(bytes(blob), str(result.get("type", "")))
        if not isinstance(blob, Blob):
            raise FetchError(requested_url, f"unsupported blob of type {type(blob).__name__}")
        return FetchedResource(blob=blob, url=result.get("url") or requested_url)

    raise FetchError(requested_url, f"unsupported fetch result of type {type(result).__name__}")


async def fetch_subresource(fetch_resource: FetchFunction, url: str) -> FetchedResource:
    """Fetch ``url`` with the configured fetch function.

    Raises:
        FetchError: whenever the fetch does not produce usable content
    """
    try:
        return normalize_fetch_result(await fetch_resource(url), url)
    except FetchError:
        raise
    except Exception as e:
        raise FetchError(url, f"{type(e).__name__}: {e}") from e


class HttpResourceFetcher:
    """Default fetch function: httpx for http(s), local decoding for data URLs.

    Use as an async context manager so the underlying client is closed::

        async with HttpResourceFetcher(settings) as fetch_resource:
            fetched = await fetch_resource("https://example.com/style.css")
    """

    SUPPORTED_SCHEMES = frozenset({"http", "https"})

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize fetcher with configuration.

        Args:
            settings: Settings instance; loaded from the environment when omitted
            transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
        """
        self.settings = settings or Settings()
        self._transport = transport
        self.client: httpx.AsyncClient | None = None
        self._semaphore = asyncio.Semaphore(self.settings.max_concurrent_requests)

    async def __aenter__(self) -> HttpResourceFetcher:
        self.client = self._create_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.client:
            await self.client.aclose()
            self.client = None

    def _create_client(self) -> httpx.AsyncClient:
        """Create HTTP client with timeouts, limits and browser-like headers."""
        timeout = httpx.Timeout(self.settings.http_timeout, connect=self.settings.connect_timeout)
        limits = httpx.Limits(max_connections=self.settings.max_concurrent_requests)
        headers = {
            "User-Agent": self.settings.get_user_agent(),
            "Accept": "*/*",
            "Accept-Language": "en,en-US;q=0.9",
        }
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=timeout,
            limits=limits,
            headers=headers,
            follow_redirects=True,
        )

    async def __call__(self, url: str) -> FetchedResource:
        if is_data_url(url):
            try:
                return FetchedResource(blob=parse_data_url(url), url=url)
            except ValueError as e:
                raise FetchError(url, str(e)) from e

        scheme = urlsplit(url).scheme.lower()
        if scheme not in self.SUPPORTED_SCHEMES:
            raise FetchError(url, f"unsupported URL scheme {scheme!r}")
        if not self.client:
            raise RuntimeError("HttpResourceFetcher must be used as async context manager")

        async with self._semaphore:
            response = await self.client.get(url)
        if not response.is_success:
            raise FetchError(url, f"HTTP {response.status_code}")

        size = len(response.content)
        if size > self.settings.max_resource_bytes:
            raise FetchError(url, f"{size} bytes exceeds the {self.settings.max_resource_bytes} byte limit")

        logger.debug(f"Fetched {url} ({size} bytes, {response.headers.get('content-type', 'no content type')})")
        return FetchedResource(
            blob=Blob(response.content, response.headers.get("content-type", "")),
            url=str(response.url),
        )
