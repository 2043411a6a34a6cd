"""Enumerate the links of an HTML document.

Which element attributes hold URLs, and whether those URLs denote
subresources, is fixed by the table below. CSS found in ``<style>`` elements
and ``style`` attributes contributes its own links.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

from ..domain.links import AttributeLink, Link, SubresourceType, TextContentLink
from .url_parsing import (
    SpanParser,
    css_url_spans,
    css_urls,
    resolve_url,
    space_separated_spans,
    srcset_spans,
    whole_value_spans,
)


TypeResolver = Callable[[Tag], "tuple[bool, SubresourceType | None]"]


@dataclass(frozen=True)
class UrlAttribute:
    """An attribute that holds one or more URLs on the given elements."""

    attribute: str
    elements: frozenset[str]
    parse: SpanParser
    resolve_type: TypeResolver


def _hyperlink(element: Tag) -> tuple[bool, SubresourceType | None]:
    return False, None


def _subresource(subresource_type: SubresourceType | None) -> TypeResolver:
    def resolve(element: Tag) -> tuple[bool, SubresourceType | None]:
        return True, subresource_type

    return resolve


def _link_href_type(element: Tag) -> tuple[bool, SubresourceType | None]:
    rel = element.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    rel = {value.lower() for value in rel}
    if "stylesheet" in rel:
        return True, "style"
    if "icon" in rel or "apple-touch-icon" in rel:
        return True, "image"
    return False, None


def _source_src_type(element: Tag) -> tuple[bool, SubresourceType | None]:
    parent = element.parent.name if element.parent is not None else None
    if parent in ("audio", "video"):
        return True, parent  # type: ignore[return-value]
    return True, None


def _elements(*names: str) -> frozenset[str]:
    return frozenset(names)


URL_ATTRIBUTES: tuple[UrlAttribute, ...] = (
    UrlAttribute("action", _elements("form"), whole_value_spans, _hyperlink),
    UrlAttribute("background", _elements("body", "table", "td", "th"), whole_value_spans, _subresource("image")),
    UrlAttribute("cite", _elements("blockquote", "q", "del", "ins"), whole_value_spans, _hyperlink),
    UrlAttribute("data", _elements("object"), whole_value_spans, _subresource("object")),
    UrlAttribute("formaction", _elements("button", "input"), whole_value_spans, _hyperlink),
    UrlAttribute("href", _elements("a", "area", "base"), whole_value_spans, _hyperlink),
    UrlAttribute("href", _elements("link"), whole_value_spans, _link_href_type),
    UrlAttribute("longdesc", _elements("frame", "img"), whole_value_spans, _hyperlink),
    UrlAttribute("manifest", _elements("html"), whole_value_spans, _hyperlink),
    UrlAttribute("ping", _elements("a", "area"), space_separated_spans, _hyperlink),
    UrlAttribute("poster", _elements("video"), whole_value_spans, _subresource("image")),
    UrlAttribute("src", _elements("audio"), whole_value_spans, _subresource("audio")),
    UrlAttribute("src", _elements("embed"), whole_value_spans, _subresource("embed")),
    UrlAttribute("src", _elements("frame", "iframe"), whole_value_spans, _subresource("document")),
    UrlAttribute("src", _elements("img", "input"), whole_value_spans, _subresource("image")),
    UrlAttribute("src", _elements("script"), whole_value_spans, _subresource("script")),
    UrlAttribute("src", _elements("source"), whole_value_spans, _source_src_type),
    UrlAttribute("src", _elements("track"), whole_value_spans, _subresource("track")),
    UrlAttribute("src", _elements("video"), whole_value_spans, _subresource("video")),
    UrlAttribute("srcset", _elements("img", "source"), srcset_spans, _subresource("image")),
)

_ATTRIBUTES_BY_ELEMENT: dict[str, list[UrlAttribute]] = {}
for _url_attribute in URL_ATTRIBUTES:
    for _name in _url_attribute.elements:
        _ATTRIBUTES_BY_ELEMENT.setdefault(_name, []).append(_url_attribute)

FRAME_ELEMENTS = frozenset({"frame", "iframe"})


def get_base_url(doc: BeautifulSoup, doc_url: str | None) -> str | None:
    """The URL relative references in ``doc`` resolve against.

    That is the document URL, unless the first ``<base href>`` overrides it.
    """
    base = doc.find("base", href=True)
    if base is not None:
        resolved = resolve_url(str(base["href"]), doc_url)
        if resolved:
            return resolved
    return doc_url


def _css_links_in(text: str, make_link: Callable[..., Link], base_url: str | None) -> Iterator[Link]:
    for index, css_url in enumerate(css_urls(text)):
        yield make_link(
            parse=css_url_spans,
            index=index,
            base_url=base_url,
            is_subresource=True,
            subresource_type=css_url.subresource_type,
        )


def _element_links(element: Tag, base_url: str | None) -> Iterator[Link]:
    for url_attribute in _ATTRIBUTES_BY_ELEMENT.get(element.name, ()):
        value = element.get(url_attribute.attribute)
        if value is None:
            continue
        if isinstance(value, list):
            value = " ".join(value)
        is_subresource, subresource_type = url_attribute.resolve_type(element)
        for index in range(len(url_attribute.parse(value))):
            yield AttributeLink(
                element,
                url_attribute.attribute,
                parse=url_attribute.parse,
                index=index,
                base_url=base_url,
                is_subresource=is_subresource,
                subresource_type=subresource_type,
            )

    style = element.get("style")
    if style:

        def style_attribute_link(**kwargs) -> Link:
            return AttributeLink(element, "style", **kwargs)

        yield from _css_links_in(str(style), style_attribute_link, base_url)

    if element.name == "style":

        def style_text_link(**kwargs) -> Link:
            return TextContentLink(element, **kwargs)

        yield from _css_links_in("".join(element.strings), style_text_link, base_url)


def extract_links_from_dom(doc: BeautifulSoup, base_url: str | None) -> list[Link]:
    """All links in ``doc``, in document order."""
    links: list[Link] = []
    for element in doc.find_all(True):
        links.extend(_element_links(element, base_url))
    return links


def frame_elements(doc: BeautifulSoup) -> list[Tag]:
    """The ``<iframe>`` and ``<frame>`` elements of ``doc`` in document order."""
    return doc.find_all(sorted(FRAME_ELEMENTS))
