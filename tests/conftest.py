"""Shared test fixtures and configuration."""

import asyncio
from datetime import datetime, timezone
import os

import httpx
import pytest

from freeze_dry import Blob, Environment, FetchedResource
from freeze_dry.utils.data_url import is_data_url, parse_data_url


# Keep host configuration from leaking into the Settings used by the default fetcher
for key in [name for name in os.environ if name.startswith("FREEZE_DRY_")]:
    del os.environ[key]


PAGE_URL = "https://example.com/main/page.html"

PNG_BYTES = b"\x89PNG\r\n\x1a\n-fake-image-"
ICON_BYTES = b"\x89PNG\r\n\x1a\n-fake-icon-"
FONT_BYTES = b"wOF2-fake-font"

PAGE_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="windows-1252">
<title>Example page</title>
<link rel="stylesheet" href="style.css">
<link rel="icon" href="/missing.ico">
<style>div.banner { background: url("bg.png"); }</style>
<script src="app.js"></script>
<script>document.title = "changed";</script>
</head>
<body onload="init()">
<h1>Example</h1>
<a href="something">A link</a>
<a href="javascript:void(0)" onclick="go()">Scripted</a>
<img src="image.png" srcset="image.png 1x, bg.png 2x">
<div class="banner" style="background-image: url(bg.png)">Banner</div>
<iframe src="frame.html"></iframe>
</body>
</html>
"""

STYLE_CSS = """@import url(imported.css);
/* url(commented-out.png) */
body { background: url(bg.png); }
@font-face { font-family: Example; src: url("../fonts/example.woff2"); }
"""

IMPORTED_CSS = "h1 { background-image: url('bg.png'); }\n"

FRAME_HTML = """<!DOCTYPE html>
<html><head><title>Frame</title></head>
<body><img src="bg.png"><a href="/elsewhere">Elsewhere</a></body>
</html>
"""

EXAMPLE_SITE: dict[str, tuple[str, bytes]] = {
    PAGE_URL: ("text/html; charset=utf-8", PAGE_HTML.encode("utf-8")),
    "https://example.com/main/style.css": ("text/css", STYLE_CSS.encode("utf-8")),
    "https://example.com/main/imported.css": ("text/css", IMPORTED_CSS.encode("utf-8")),
    "https://example.com/main/bg.png": ("image/png", ICON_BYTES),
    "https://example.com/main/image.png": ("image/png", PNG_BYTES),
    "https://example.com/main/app.js": ("application/javascript", b"init = () => {};"),
    "https://example.com/main/frame.html": ("text/html", FRAME_HTML.encode("utf-8")),
    "https://example.com/fonts/example.woff2": ("font/woff2", FONT_BYTES),
}

FIXED_NOW = datetime(2018, 8, 18, 18, 2, 20, 948000, tzinfo=timezone.utc)


class FakeFetch:
    """In-memory fetch function serving a dict of URL -> (content type, body).

    Records every requested URL; data URLs are decoded like the default
    fetcher does.
    """

    def __init__(self, site: dict[str, tuple[str, bytes]]):
        self.site = dict(site)
        self.calls: list[str] = []

    async def __call__(self, url: str) -> FetchedResource:
        self.calls.append(url)
        # Yield so that fetches interleave like real ones.
        await asyncio.sleep(0)
        if is_data_url(url):
            return FetchedResource(blob=parse_data_url(url), url=url)
        if url not in self.site:
            raise httpx.HTTPStatusError(
                "404 Not Found",
                request=httpx.Request("GET", url),
                response=httpx.Response(404),
            )
        content_type, body = self.site[url]
        return FetchedResource(blob=Blob(body, content_type), url=url)


class NeverFetch:
    """Fetch function whose fetches never complete."""

    def __init__(self):
        self.calls: list[str] = []

    async def __call__(self, url: str):
        self.calls.append(url)
        await asyncio.Event().wait()


class InstantTimerEnvironment(Environment):
    """Environment whose timer fires immediately, whatever the timeout."""

    def __init__(self):
        self.sleeps: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)


def site_handler(site: dict[str, tuple[str, bytes]]):
    """An ``httpx.MockTransport`` handler serving ``site``."""

    def handler(request: httpx.Request) -> httpx.Response:
        entry = site.get(str(request.url))
        if entry is None:
            return httpx.Response(404, text="Not Found")
        content_type, body = entry
        return httpx.Response(200, content=body, headers={"content-type": content_type})

    return handler


@pytest.fixture
def example_site():
    return dict(EXAMPLE_SITE)


@pytest.fixture
def fake_fetch(example_site):
    return FakeFetch(example_site)


@pytest.fixture
def never_fetch():
    return NeverFetch()


@pytest.fixture
def instant_timer():
    return InstantTimerEnvironment()


@pytest.fixture
def mock_transport(example_site):
    return httpx.MockTransport(site_handler(example_site))


@pytest.fixture
def make_fake_fetch():
    """Build a FakeFetch over a custom site."""
    return FakeFetch


@pytest.fixture
def page_url():
    return PAGE_URL


@pytest.fixture
def page_html():
    return PAGE_HTML


@pytest.fixture
def fixed_now():
    return FIXED_NOW
