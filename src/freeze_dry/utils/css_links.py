"""Enumerate the links of a stylesheet."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..domain.links import Link, StylesheetLink
from .url_parsing import css_url_spans, css_urls


if TYPE_CHECKING:
    from ..domain.resource import StylesheetResource


def extract_links_from_css(stylesheet: StylesheetResource) -> list[Link]:
    """All URLs in the stylesheet's text; relative ones resolve against its URL."""
    return [
        StylesheetLink(
            stylesheet,
            parse=css_url_spans,
            index=index,
            base_url=stylesheet.url,
            is_subresource=True,
            subresource_type=css_url.subresource_type,
        )
        for index, css_url in enumerate(css_urls(stylesheet.text))
    ]
