"""Domain model: links and the resources they connect."""

from .links import (
    SUBRESOURCE_TYPES,
    Anchor,
    AttributeAnchor,
    AttributeLink,
    CssAnchor,
    Link,
    StylesheetLink,
    SubresourceType,
    TextContentAnchor,
    TextContentLink,
)
from .resource import Blob, DocumentResource, Resource, StylesheetResource


__all__ = [
    "SUBRESOURCE_TYPES",
    "Anchor",
    "AttributeAnchor",
    "AttributeLink",
    "Blob",
    "CssAnchor",
    "DocumentResource",
    "Link",
    "Resource",
    "StylesheetLink",
    "StylesheetResource",
    "SubresourceType",
    "TextContentAnchor",
    "TextContentLink",
]
