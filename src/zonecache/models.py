"""Canonical Pydantic models shared across all zonecache modules.

This is the single source of truth for data shapes in the project. The
models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`FetchConfig`, :class:`OutputConfig`, and :class:`GlobalConfig`.

**Result models** -- produced by the cache and the fetcher:
    :class:`CacheStatus` and :class:`FetchResult`.

All models use Pydantic v2.
"""

from __future__ import annotations

import codecs
import tempfile
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from zonecache.exceptions import ConfigurationError

DEFAULT_RESOURCE_URL = "http://unicode.org/repos/cldr/trunk/common/supplemental/windowsZones.xml"
"""CLDR mapping between Windows time zone ids and IANA (Olson) ids."""

DEFAULT_TIMEOUT_MS = 5000
DEFAULT_TTL = timedelta(hours=24)


def _default_cache_directory() -> Path:
    return Path(tempfile.gettempdir())


# --- Fetch Config ---


class FetchConfig(BaseModel):
    """Settings for a single cache-backed fetch.

    ``ttl`` accepts a :class:`~datetime.timedelta`, an ISO 8601 duration,
    or a plain number of seconds (``3600`` or ``"3600"``).

    Example::

        FetchConfig(timeout_ms=2000, ttl=3600, cache_directory="/var/cache/tz")
    """

    timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        ge=0,
        description="Milliseconds before a download attempt is aborted",
    )
    ttl: timedelta = Field(
        default=DEFAULT_TTL,
        description="Maximum age of a cached copy before it is downloaded again",
    )
    cache_directory: Path = Field(
        default_factory=_default_cache_directory,
        description="Directory holding cached files (defaults to the system temp dir)",
    )
    encoding: str = Field(
        default="utf-8-sig",
        description="Encoding of the cached bytes; the default also accepts a UTF-8 BOM",
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid fetch settings: {exc}") from exc

    @field_validator("ttl", mode="before")
    @classmethod
    def _ttl_from_seconds(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip().replace(".", "", 1).isdigit():
            return timedelta(seconds=float(value))
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return timedelta(seconds=value)
        return value

    @field_validator("ttl")
    @classmethod
    def _ttl_not_negative(cls, value: timedelta) -> timedelta:
        if value < timedelta(0):
            raise ValueError("ttl must not be negative")
        return value

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            codecs.lookup(value)
        except LookupError:
            raise ValueError(f"unknown encoding: {value}") from None
        return value

    @property
    def timeout_seconds(self) -> float:
        """``timeout_ms`` expressed in seconds, as httpx expects it."""
        return self.timeout_ms / 1000


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/zonecache/config.json``.

    Loaded and saved by :func:`~zonecache.config.load_global_config` and
    :func:`~zonecache.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by environment variables or
    CLI flags. See :func:`~zonecache.config.resolve_fetch_config`.
    """

    default_uri: str = Field(
        default=DEFAULT_RESOURCE_URL,
        description="URI used when a command is invoked without one",
    )
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Results ---


class CacheStatus(BaseModel):
    """Freshness report for the cache entry belonging to one URI."""

    uri: str
    path: Path
    exists: bool
    age: Optional[timedelta] = None
    expired: bool


class FetchResult(BaseModel):
    """Content returned by :meth:`~zonecache.client.Fetcher.fetch`.

    ``from_cache`` is ``True`` when no network request was made.
    """

    uri: str
    path: Path
    content: str
    from_cache: bool
