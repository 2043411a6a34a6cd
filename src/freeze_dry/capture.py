"""Capturing a document, and the documents inside its frames, as resources."""

from __future__ import annotations

from collections.abc import Sequence
import copy
import logging
from typing import TYPE_CHECKING

from bs4 import BeautifulSoup

from .domain.resource import DocumentResource
from .utils.html_links import frame_elements


if TYPE_CHECKING:
    from .config import FreezeDryConfig
    from .environment import Environment


logger = logging.getLogger(__name__)

BLANK_URL = "about:blank"


class Document:
    """A page to be freeze-dried.

    Args:
        html: Markup, or an already parsed BeautifulSoup tree
        url: The document's own URL; relative references resolve against it
        frames: Current content documents of the page's ``<iframe>`` and
            ``<frame>`` elements, in document order. ``None`` entries (or a
            short sequence) leave the corresponding frames to be fetched.
        environment: The environment owning this document, used as the
            default ``glob``
    """

    def __init__(
        self,
        html: str | bytes | BeautifulSoup,
        url: str | None = None,
        *,
        frames: Sequence[Document | None] = (),
        environment: Environment | None = None,
    ):
        self.html = html
        self.url = url or BLANK_URL
        self.frames = list(frames)
        self.environment = environment

    def to_soup(self, environment: Environment) -> BeautifulSoup:
        """A fresh tree of this document; the original is never handed out."""
        if isinstance(self.html, BeautifulSoup):
            return copy.copy(self.html)
        return environment.parse_html(self.html)

    def __repr__(self) -> str:
        return f"<Document {self.url}>"


def capture_dom(document: Document, config: FreezeDryConfig, *, url: str | None = None) -> DocumentResource:
    """Snapshot ``document`` into a DocumentResource.

    Frame documents supplied with the document are captured recursively and
    attached to the matching frame links, so that their current content is
    used instead of whatever their ``src`` would load.
    """
    environment = config.glob
    resource = DocumentResource(url or document.url, document.to_soup(environment))

    if document.frames:
        frame_links = [link for link in resource.links if link.subresource_type == "document"]
        for frame_element, frame_document in zip(frame_elements(resource.doc), document.frames):
            if frame_document is None:
                continue
            link = next((link for link in frame_links if link.element is frame_element), None)
            if link is None:
                logger.debug(f"Skipping captured content of a {frame_element.name} without src")
                continue
            link.resource = capture_dom(frame_document, config)

    return resource
