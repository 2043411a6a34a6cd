"""Runtime interfaces the pipeline borrows from its host environment."""

from __future__ import annotations

import asyncio
import base64
from datetime import datetime, timezone

from bs4 import BeautifulSoup

from .exceptions import ConfigurationError


class Environment:
    """Timer, clock, HTML tree builder and base64 codec used by freeze-dry.

    Passed as the ``glob`` option. Subclass it to substitute any of these,
    e.g. a timer that fires immediately in tests.
    """

    parser: str = "html.parser"

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def parse_html(self, markup: str | bytes) -> BeautifulSoup:
        return BeautifulSoup(markup, self.parser)

    def b64encode(self, data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")


DEFAULT_ENVIRONMENT = Environment()


def require_environment(candidate: object) -> Environment:
    """Validate a ``glob`` value, raising ConfigurationError when unusable."""
    if candidate is None:
        raise ConfigurationError("Lacking a global environment")
    required = ("sleep", "now", "parse_html", "b64encode")
    missing = [name for name in required if not callable(getattr(candidate, name, None))]
    if missing:
        raise ConfigurationError(f"Environment {candidate!r} lacks required interfaces: {', '.join(missing)}")
    return candidate  # type: ignore[return-value]
