"""freeze-dry: turn a live HTML document into a static, self-contained snapshot."""

from .capture import Document
from .config import FreezeDryConfig, Settings
from .domain import Blob
from .environment import Environment
from .exceptions import ConfigurationError, FetchError, FreezeDryError
from .observability import configure_logging
from .pipeline import freeze_dry
from .utils.fetcher import FetchedResource, HttpResourceFetcher


__version__ = "0.3.0"

__all__ = [
    "Blob",
    "ConfigurationError",
    "Document",
    "Environment",
    "FetchError",
    "FetchedResource",
    "FreezeDryConfig",
    "FreezeDryError",
    "HttpResourceFetcher",
    "Settings",
    "configure_logging",
    "freeze_dry",
]
