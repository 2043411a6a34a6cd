"""Compiling a dried resource tree into one self-contained HTML string.

Every subresource link that has a resource gets that resource inlined as a
data URL. Frames compile recursively, so a frame's own subresources end up
inside the data URL of its document.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime
import logging
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup, Doctype, Tag

from ..domain.resource import DocumentResource, Resource
from .data_url import encode_data_url


if TYPE_CHECKING:
    from collections.abc import Callable

    from ..config import FreezeDryConfig


logger = logging.getLogger(__name__)

MEMENTO_DATETIME = "Memento-Datetime"
ORIGINAL_RELATION = "original"


class SingleFileCompiler:
    """Turns resources into data URLs, each resource at most once.

    A resource that is still being compiled further up the stack cannot be
    inlined into its own descendant; links closing such a cycle keep (or get)
    their absolute URL instead.
    """

    def __init__(self, b64encode: Callable[[bytes], str] | None = None):
        self.b64encode = b64encode
        self._data_urls: dict[int, str] = {}
        self._in_progress: set[int] = set()

    @property
    def inlined_count(self) -> int:
        return len(self._data_urls)

    def compile_links(self, resource: Resource) -> None:
        """Point every fetched subresource link of ``resource`` at its data URL."""
        self._in_progress.add(id(resource))
        try:
            for link in resource.links:
                if not link.is_subresource or link.resource is None:
                    continue
                if id(link.resource) in self._in_progress:
                    logger.debug(f"Not inlining {link.resource.url} into itself")
                    absolute_target = link.absolute_target
                    if absolute_target is not None:
                        link.target = absolute_target
                    continue
                link.target = self.to_data_url(link.resource)
        finally:
            self._in_progress.discard(id(resource))

    def to_data_url(self, resource: Resource) -> str:
        key = id(resource)
        if key not in self._data_urls:
            self.compile_links(resource)
            self._data_urls[key] = encode_data_url(resource.blob, self.b64encode)
        return self._data_urls[key]


def create_single_file(root: DocumentResource, config: FreezeDryConfig) -> str:
    """Compile ``root`` and its subresources into a single string of HTML."""
    b64encode = config.glob.b64encode if config.glob is not None else None
    compiler = SingleFileCompiler(b64encode)
    compiler.compile_links(root)

    if config.add_metadata:
        now = config.now or datetime.now(timezone.utc)
        set_memento_metadata(root.doc, doc_url=root.url, now=now)
    set_charset_declaration(root.doc, config.charset_declaration)

    html = root.string
    logger.debug(f"Compiled {root.url} with {compiler.inlined_count} inlined resource(s) into {len(html)} chars")
    return html


def ensure_head(doc: BeautifulSoup) -> Tag:
    """Return the document's ``<head>``, creating it if missing."""
    if doc.head is not None:
        return doc.head
    head = doc.new_tag("head")
    if doc.html is not None:
        doc.html.insert(0, head)
        return head
    position = 0
    for index, node in enumerate(doc.contents):
        if isinstance(node, Doctype):
            position = index + 1
            break
    doc.insert(position, head)
    return head


def http_date(moment: datetime) -> str:
    """Format ``moment`` as an HTTP-date; naive datetimes are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def set_memento_metadata(doc: BeautifulSoup, *, doc_url: str, now: datetime) -> None:
    """Note the snapshot time and the original URL, Memento style (RFC 7089).

    Inserts, as the first children of ``<head>``::

        <meta http-equiv="Memento-Datetime" content="Sat, 18 Aug 2018 18:02:20 GMT">
        <link rel="original" href="https://example.com/page">
    """
    head = ensure_head(doc)
    datetime_meta = doc.new_tag("meta", attrs={"http-equiv": MEMENTO_DATETIME, "content": http_date(now)})
    original_link = doc.new_tag("link", attrs={"rel": ORIGINAL_RELATION, "href": doc_url})
    head.insert(0, original_link)
    head.insert(0, datetime_meta)


def _is_charset_declaration(element: Tag) -> bool:
    if element.has_attr("charset"):
        return True
    http_equiv = element.get("http-equiv")
    return isinstance(http_equiv, str) and http_equiv.strip().lower() == "content-type"


def set_charset_declaration(doc: BeautifulSoup, charset: str | None) -> None:
    """Replace any charset declarations with a single ``<meta charset>`` heading the ``<head>``.

    An empty ``charset`` removes the declarations without adding one.
    """
    for meta in doc.find_all("meta"):
        if _is_charset_declaration(meta):
            meta.decompose()
    if not charset:
        return
    head = ensure_head(doc)
    head.insert(0, doc.new_tag("meta", attrs={"charset": charset}))
