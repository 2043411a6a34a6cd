"""Resources: the nodes of the snapshot's resource tree.

A resource is one unit of content (the captured page, a frame's document, a
stylesheet, an image, ...). Documents and stylesheets expose their links;
fetched subresources hang off those links, forming a graph that may contain
cycles.
"""

from __future__ import annotations

from functools import cached_property

from bs4 import BeautifulSoup
from pydantic.dataclasses import dataclass

from ..utils import css_links, html_links
from .links import Link


HTML_MIME_TYPES = frozenset({"text/html", "application/xhtml+xml"})
DEFAULT_MIME_TYPE = "application/octet-stream"


# Value Objects (immutable)
@dataclass(frozen=True)
class Blob:
    """Binary content with a MIME type (which may carry parameters)."""

    data: bytes
    type: str = ""

    @property
    def mime_type(self) -> str:
        """The bare, lower-cased MIME type without parameters."""
        return self.type.split(";", 1)[0].strip().lower()

    @property
    def charset(self) -> str | None:
        for parameter in self.type.split(";")[1:]:
            name, _, value = parameter.partition("=")
            if name.strip().lower() == "charset" and value.strip():
                return value.strip().strip("\"'")
        return None

    def text(self) -> str:
        """Decode the content using its declared charset, UTF-8 by default."""
        charset = self.charset or "utf-8"
        try:
            return self.data.decode(charset, errors="replace")
        except LookupError:
            return self.data.decode("utf-8", errors="replace")


# Entities (mutable, identified by URL)
class Resource:
    """An opaque fetched resource, e.g. an image or a font."""

    def __init__(self, url: str, blob: Blob):
        self._url = url
        self._blob = blob

    @property
    def url(self) -> str:
        return self._url

    @property
    def blob(self) -> Blob:
        return self._blob

    @property
    def links(self) -> list[Link]:
        return []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.url}>"


class DocumentResource(Resource):
    """An HTML document, held as a live BeautifulSoup tree."""

    def __init__(self, url: str, doc: BeautifulSoup):
        self._url = url
        self.doc = doc

    @property
    def base_url(self) -> str | None:
        return html_links.get_base_url(self.doc, self.url)

    @cached_property
    def links(self) -> list[Link]:  # type: ignore[override]
        return html_links.extract_links_from_dom(self.doc, self.base_url)

    @property
    def string(self) -> str:
        """The document serialized as HTML (its outerHTML, doctype included)."""
        return str(self.doc)

    @property
    def blob(self) -> Blob:
        return Blob(self.string.encode("utf-8"), "text/html;charset=utf-8")


class StylesheetResource(Resource):
    """A CSS stylesheet; its text changes as its links are rewritten."""

    def __init__(self, url: str, text: str):
        self._url = url
        self.text = text

    @cached_property
    def links(self) -> list[Link]:  # type: ignore[override]
        return css_links.extract_links_from_css(self)

    @property
    def string(self) -> str:
        return self.text

    @property
    def blob(self) -> Blob:
        return Blob(self.text.encode("utf-8"), "text/css;charset=utf-8")
