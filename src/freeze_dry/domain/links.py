"""Links: live references from a document or stylesheet to a URL.

A link does not copy its target out of the source. It remembers where the
URL lives (an element attribute, an element's text, or a stylesheet) and which
of the URLs found there it is, and re-reads that location on every access.
Assigning to ``target`` splices the new value into the source, so the change
shows up when the document or stylesheet is serialized.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Literal, get_args

from bs4 import NavigableString

from ..utils.url_parsing import Span, SpanParser, resolve_url


if TYPE_CHECKING:
    from bs4 import Tag

    from .resource import Resource, StylesheetResource


logger = logging.getLogger(__name__)

# Corresponds to the request 'destination' of the WHATWG fetch standard.
SubresourceType = Literal[
    "audio",
    "document",
    "embed",
    "font",
    "image",
    "object",
    "script",
    "style",
    "track",
    "video",
]

SUBRESOURCE_TYPES: frozenset[str] = frozenset(get_args(SubresourceType))


@dataclass
class Anchor:
    """Locates a link within its source."""


@dataclass
class AttributeAnchor(Anchor):
    element: Tag
    attribute: str
    range_within_attribute: Span | None = None


@dataclass
class TextContentAnchor(Anchor):
    element: Tag
    range_within_text_content: Span | None = None


@dataclass
class CssAnchor(Anchor):
    range: Span | None = None


class Link:
    """A reference to a URL from an HTML document or a CSS stylesheet.

    Subresource links (``is_subresource``) make their target part of the
    referring resource, like an image ``src``; other links merely point
    elsewhere, like an ``<a href>``. Once fetched, a subresource is attached
    as ``resource``.
    """

    def __init__(
        self,
        *,
        parse: SpanParser,
        index: int,
        base_url: str | None,
        is_subresource: bool,
        subresource_type: SubresourceType | None = None,
    ):
        if not is_subresource and subresource_type is not None:
            raise ValueError("Only subresource links can have a subresource type")
        self._parse = parse
        self._index = index
        self.base_url = base_url
        self.is_subresource = is_subresource
        self.subresource_type = subresource_type
        self.resource: Resource | None = None

    def _read(self) -> str:
        raise NotImplementedError

    def _write(self, value: str) -> None:
        raise NotImplementedError

    def _span(self, text: str) -> Span | None:
        """The link's current span, or None once the source no longer has that many URLs."""
        spans = self._parse(text)
        if self._index >= len(spans):
            return None
        return spans[self._index]

    @property
    def target(self) -> str:
        text = self._read()
        span = self._span(text)
        if span is None:
            return ""
        start, end = span
        return text[start:end]

    @target.setter
    def target(self, value: str) -> None:
        text = self._read()
        span = self._span(text)
        if span is None:
            logger.warning(f"Link #{self._index} no longer exists in its source; leaving it unchanged")
            return
        start, end = span
        self._write(text[:start] + value + text[end:])

    @property
    def absolute_target(self) -> str | None:
        if self._span(self._read()) is None:
            return None
        return resolve_url(self.target, self.base_url)

    @property
    def from_(self) -> Anchor:
        raise NotImplementedError

    def __repr__(self) -> str:
        kind = self.subresource_type or ("subresource" if self.is_subresource else "hyperlink")
        return f"<{type(self).__name__} {kind} {self.target!r}>"


class AttributeLink(Link):
    """A URL inside an element attribute, e.g. ``src`` or one ``srcset`` candidate."""

    def __init__(self, element: Tag, attribute: str, **kwargs):
        super().__init__(**kwargs)
        self.element = element
        self.attribute = attribute

    def _read(self) -> str:
        value = self.element.get(self.attribute)
        if isinstance(value, list):
            return " ".join(value)
        return value or ""

    def _write(self, value: str) -> None:
        self.element[self.attribute] = value

    @property
    def from_(self) -> AttributeAnchor:
        return AttributeAnchor(self.element, self.attribute, self._span(self._read()))


class TextContentLink(Link):
    """A URL inside the text of an element, e.g. in a ``<style>`` block."""

    def __init__(self, element: Tag, **kwargs):
        super().__init__(**kwargs)
        self.element = element

    def _read(self) -> str:
        return "".join(self.element.strings)

    def _write(self, value: str) -> None:
        # Keep the string class (e.g. bs4 Stylesheet) so the text stays unescaped and findable.
        current = next(iter(self.element.strings), None)
        string_class = type(current) if current is not None else NavigableString
        self.element.string = string_class(value)

    @property
    def from_(self) -> TextContentAnchor:
        return TextContentAnchor(self.element, self._span(self._read()))


class StylesheetLink(Link):
    """A URL inside a fetched stylesheet."""

    def __init__(self, stylesheet: StylesheetResource, **kwargs):
        super().__init__(**kwargs)
        self.stylesheet = stylesheet

    def _read(self) -> str:
        return self.stylesheet.text

    def _write(self, value: str) -> None:
        self.stylesheet.text = value

    @property
    def from_(self) -> CssAnchor:
        return CssAnchor(self._span(self._read()))
