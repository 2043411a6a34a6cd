"""The dry transform: make a crawled resource tree static and context-free.

Links without a fetched resource are made absolute so they keep pointing at
the original site. Links that will be inlined have their current value noted
as a ``data-original-*`` attribute when so configured. Documents lose their
scripts and event handlers. No I/O happens here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from ..domain.links import AttributeLink, Link
from ..domain.resource import DocumentResource, Resource


if TYPE_CHECKING:
    from ..config import FreezeDryConfig


logger = logging.getLogger(__name__)

ORIGINAL_ATTRIBUTE_PREFIX = "data-original-"
NEUTRALIZED_JAVASCRIPT_URL = "javascript:"


def original_attribute_name(attribute: str) -> str:
    return f"{ORIGINAL_ATTRIBUTE_PREFIX}{attribute}"


def dry_resources(root: Resource, config: FreezeDryConfig) -> None:
    """Dry ``root`` and every resource reachable from it, each exactly once."""
    seen: set[int] = set()
    stack = [root]
    while stack:
        resource = stack.pop()
        if id(resource) in seen:
            continue
        seen.add(id(resource))
        dry_resource(resource, config)
        stack.extend(link.resource for link in resource.links if link.is_subresource and link.resource is not None)
    logger.debug(f"Dried {len(seen)} resource(s)")


def dry_resource(resource: Resource, config: FreezeDryConfig) -> None:
    """Rewrite the links of a single resource, then strip its liveness."""
    for link in resource.links:
        if link.is_subresource and link.resource is not None:
            if config.keep_original_attributes:
                keep_original_value(link)
        else:
            make_link_absolute(link)

    if isinstance(resource, DocumentResource):
        make_dom_static(resource.doc)


def make_link_absolute(link: Link) -> None:
    absolute_target = link.absolute_target
    if absolute_target is not None and absolute_target != link.target:
        link.target = absolute_target


def keep_original_value(link: Link) -> None:
    """Note the attribute's current value before it gets inlined.

    Only attributes can carry a shadow copy; an existing one is never
    overwritten, so the value from the first snapshot survives re-drying.
    """
    if not isinstance(link, AttributeLink):
        return
    name = original_attribute_name(link.attribute)
    if link.element.has_attr(name):
        return
    value = link.element.get(link.attribute)
    if isinstance(value, list):
        value = " ".join(value)
    link.element[name] = value or ""


def make_dom_static(doc: BeautifulSoup) -> None:
    """Remove scripts, event handlers and ``javascript:`` URLs from ``doc``."""
    for script in doc.find_all("script"):
        script.decompose()

    for element in doc.find_all(True):
        for attribute in list(element.attrs):
            if attribute.lower().startswith("on"):
                del element[attribute]
        for attribute in ("href", "action", "formaction", "src"):
            value = element.get(attribute)
            if isinstance(value, str) and _is_javascript_url(value) and value != NEUTRALIZED_JAVASCRIPT_URL:
                element[attribute] = NEUTRALIZED_JAVASCRIPT_URL


def _is_javascript_url(value: str) -> bool:
    return value.strip().lower().startswith("javascript:")
