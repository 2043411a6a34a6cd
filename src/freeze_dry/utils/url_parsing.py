"""Locating URLs inside attribute values and CSS text.

Every parser here returns character spans ``(start, end)`` into the text it
was given, so that callers can replace one URL without disturbing any other
byte of the source.
"""

from __future__ import annotations

from collections.abc import Callable
import re
from typing import NamedTuple
from urllib.parse import urljoin, urlsplit


Span = tuple[int, int]
SpanParser = Callable[[str], list[Span]]

ASCII_WHITESPACE = " \t\n\f\r"

CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
CSS_URL_RE = re.compile(
    r"""url\(\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^)"'\s]*))\s*\)""",
    re.IGNORECASE,
)
CSS_IMPORT_STRING_RE = re.compile(r"""@import\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)')""", re.IGNORECASE)
CSS_IMPORT_PREFIX_RE = re.compile(r"@import\s*$", re.IGNORECASE)
CSS_FONT_FACE_RE = re.compile(r"@font-face\s*\{[^}]*\}", re.IGNORECASE)


class CssUrl(NamedTuple):
    """A URL found in CSS text, with the kind of subresource it denotes."""

    start: int
    end: int
    subresource_type: str


def resolve_url(target: str, base_url: str | None) -> str | None:
    """Resolve ``target`` against ``base_url``.

    Returns None when the result is not an absolute URL, e.g. a relative
    reference inside a document whose own URL is ``about:blank``.
    """
    target = target.strip(ASCII_WHITESPACE)
    try:
        if urlsplit(target).scheme:
            return target
        if not base_url or not urlsplit(base_url).scheme:
            return None
        absolute = urljoin(base_url, target)
        if not urlsplit(absolute).scheme:
            return None
    except ValueError:
        return None
    return absolute


def whole_value_spans(value: str) -> list[Span]:
    """A single URL occupying the attribute value, minus surrounding whitespace."""
    start = len(value) - len(value.lstrip(ASCII_WHITESPACE))
    end = len(value.rstrip(ASCII_WHITESPACE))
    if start >= end:
        return []
    return [(start, end)]


def space_separated_spans(value: str) -> list[Span]:
    """URLs in a whitespace-separated list, as used by ``ping``."""
    return [match.span() for match in re.finditer(r"[^ \t\n\f\r]+", value)]


def srcset_spans(value: str) -> list[Span]:
    """URLs of the image candidates in a ``srcset`` attribute.

    Follows the HTML candidate parsing rules: a URL is a run of non-whitespace
    characters (trailing commas excluded), followed by optional descriptors
    up to the next comma outside parentheses. Commas inside a URL, as in data
    URIs, are kept.
    """
    spans: list[Span] = []
    position = 0
    length = len(value)
    while position < length:
        while position < length and (value[position] in ASCII_WHITESPACE or value[position] == ","):
            position += 1
        if position >= length:
            break
        start = position
        while position < length and value[position] not in ASCII_WHITESPACE:
            position += 1
        end = position
        while end > start and value[end - 1] == ",":
            end -= 1
        if end > start:
            spans.append((start, end))
        if end < position:
            # The URL ended with a comma: no descriptors follow.
            continue
        depth = 0
        while position < length:
            char = value[position]
            if char == "(":
                depth += 1
            elif char == ")" and depth:
                depth -= 1
            elif char == "," and not depth:
                break
            position += 1
    return spans


def _comment_spans(text: str) -> list[Span]:
    return [match.span() for match in CSS_COMMENT_RE.finditer(text)]


def _inside(position: int, spans: list[Span]) -> bool:
    return any(start <= position < end for start, end in spans)


def css_urls(text: str) -> list[CssUrl]:
    """Find every URL in a stylesheet, in source order.

    ``@import`` targets are typed ``style``, ``url()`` values inside an
    ``@font-face`` rule ``font`` and all others ``image``. Anything within a
    comment is skipped.
    """
    comments = _comment_spans(text)
    font_faces = [match.span() for match in CSS_FONT_FACE_RE.finditer(text) if not _inside(match.start(), comments)]
    found: list[CssUrl] = []

    for match in CSS_URL_RE.finditer(text):
        if _inside(match.start(), comments):
            continue
        group = next(name for name in ("dq", "sq", "bare") if match.group(name) is not None)
        start, end = match.span(group)
        if start == end:
            continue
        if CSS_IMPORT_PREFIX_RE.search(text, max(0, match.start() - 64), match.start()):
            kind = "style"
        elif _inside(match.start(), font_faces):
            kind = "font"
        else:
            kind = "image"
        found.append(CssUrl(start, end, kind))

    for match in CSS_IMPORT_STRING_RE.finditer(text):
        if _inside(match.start(), comments):
            continue
        group = "dq" if match.group("dq") is not None else "sq"
        start, end = match.span(group)
        if start < end:
            found.append(CssUrl(start, end, "style"))

    found.sort(key=lambda url: url.start)
    return found


def css_url_spans(text: str) -> list[Span]:
    return [(url.start, url.end) for url in css_urls(text)]
