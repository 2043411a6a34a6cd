"""Configuration for freeze-dry using Pydantic and Pydantic Settings."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
import random
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


FetchFunction = Callable[..., Awaitable[Any]]


class Settings(BaseSettings):
    """Process-level defaults loaded from ``FREEZE_DRY_*`` environment variables.

    These only affect the default HTTP fetcher and logging; everything that
    shapes a single snapshot lives in :class:`FreezeDryConfig`.
    """

    model_config = SettingsConfigDict(
        env_prefix="FREEZE_DRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # HTTP/Request settings
    http_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    connect_timeout: float = Field(default=10.0, gt=0, description="Connection timeout in seconds")
    max_concurrent_requests: int = Field(default=10, ge=1, description="Maximum simultaneous subresource fetches")
    max_resource_bytes: int = Field(
        default=50_000_000, ge=1, description="Subresources larger than this are treated as failed fetches"
    )
    user_agent: str = Field(default="", description="User-Agent header; a browser-like one is picked when empty")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    USER_AGENTS: list[str] = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:143.0) Gecko/20100101 Firefox/143.0",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/18.6 Safari/605.1.15",
    ]

    def get_user_agent(self) -> str:
        """Return the configured User-Agent, or a random one from the pool."""
        return self.user_agent or random.choice(self.USER_AGENTS)


class FreezeDryConfig(BaseModel):
    """Options for a single ``freeze_dry`` call.

    Fields:
        timeout: Seconds spent fetching subresources; ``None``, ``0`` or ``inf``
            waits for the whole crawl.
        doc_url: Overrides the document's own URL.
        charset_declaration: Value of the ``<meta charset>`` element; empty or
            ``None`` leaves the charset declarations untouched.
        add_metadata: Note the snapshot time and original URL in the head.
        keep_original_attributes: Keep inlined attribute values as
            ``data-original-*`` attributes.
        now: Snapshot time; defaults to the environment's clock.
        fetch_resource: Async callable fetching a URL; returns an
            ``httpx.Response`` or a ``FetchedResource``.
        glob: The :class:`~freeze_dry.environment.Environment` to use.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    timeout: float | None = Field(default=None, ge=0)
    doc_url: str | None = None
    charset_declaration: str | None = "utf-8"
    add_metadata: bool = True
    keep_original_attributes: bool = True
    now: datetime | None = None
    fetch_resource: FetchFunction | None = None
    glob: Any = None

    @field_validator("doc_url")
    @classmethod
    def _strip_doc_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @classmethod
    def from_options(cls, config: FreezeDryConfig | None = None, **options: Any) -> FreezeDryConfig:
        """Merge keyword options over an optional base config.

        Raises:
            ConfigurationError: if an option is unknown or invalid
        """
        try:
            if config is None:
                return cls(**options)
            if not options:
                return config
            current = {name: getattr(config, name) for name in cls.model_fields}
            return cls(**{**current, **options})
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid freeze-dry options: {exc}") from exc
