"""Encoding and decoding of ``data:`` URLs (RFC 2397)."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Callable
import re
from urllib.parse import unquote_to_bytes

from ..domain.resource import DEFAULT_MIME_TYPE, Blob


DEFAULT_DATA_URL_TYPE = "text/plain;charset=US-ASCII"

# Characters that may appear unquoted in a CSS url() and an HTML attribute.
MIME_TYPE_RE = re.compile(r"^[\w.+-]+/[\w.+-]+$")
CHARSET_RE = re.compile(r"^[\w.:+-]+$")


def is_data_url(url: str) -> bool:
    return url[:5].lower() == "data:"


def encode_data_url(blob: Blob, b64encode: Callable[[bytes], str] | None = None) -> str:
    """Serialize ``blob`` as a base64 data URL.

    Only the bare MIME type and an unquoted ``charset`` parameter are kept, so
    the URL never contains quotes, spaces or parentheses.
    """
    encode = b64encode or (lambda data: base64.b64encode(data).decode("ascii"))
    mime_type = blob.mime_type if MIME_TYPE_RE.match(blob.mime_type) else DEFAULT_MIME_TYPE
    charset = blob.charset
    if charset and CHARSET_RE.match(charset):
        mime_type = f"{mime_type};charset={charset}"
    return f"data:{mime_type};base64,{encode(blob.data)}"


def parse_data_url(url: str) -> Blob:
    """Decode a data URL into a Blob.

    Raises:
        ValueError: if ``url`` is not a well-formed data URL
    """
    if not is_data_url(url):
        raise ValueError(f"Not a data URL: {url[:40]}")
    header, separator, payload = url[5:].partition(",")
    if not separator:
        raise ValueError("Data URL lacks a comma")

    parameters = [part.strip() for part in header.split(";")]
    is_base64 = len(parameters) > 1 and parameters[-1].lower() == "base64"
    if is_base64:
        parameters = parameters[:-1]
    mime_type = ";".join(parameters) if parameters and parameters[0] else DEFAULT_DATA_URL_TYPE

    data = unquote_to_bytes(payload)
    if is_base64:
        try:
            data = base64.b64decode(b"".join(data.split()), validate=True)
        except binascii.Error as exc:
            raise ValueError(f"Invalid base64 in data URL: {exc}") from exc
    return Blob(data, mime_type)
