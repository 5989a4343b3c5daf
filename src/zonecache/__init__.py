"""zonecache -- a time-bounded, cache-backed fetcher for remote text resources.

Given a URI, zonecache returns the resource's text. It serves a locally
cached copy while that copy is younger than a configured TTL and downloads
a fresh one, under a hard timeout, once it has expired or gone missing.
The default resource is the CLDR ``windowsZones.xml`` mapping used to
translate Windows time zone ids to IANA ones.

Typical use::

    import zonecache

    xml = zonecache.fetch(zonecache.DEFAULT_RESOURCE_URL)

Modules:
    models: Pydantic models (fetch configuration, cache status).
    cache: Cache file location and freshness.
    client: The HTTP fetcher.
    config: XDG-aware user configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from zonecache.cache import CacheStore, is_expired, path_for  # noqa: E402
from zonecache.client import Fetcher, fetch  # noqa: E402
from zonecache.exceptions import (  # noqa: E402
    CacheIOError,
    ConfigurationError,
    FetchError,
    FetchTimeoutError,
    NetworkError,
    ZonecacheError,
)
from zonecache.models import DEFAULT_RESOURCE_URL, FetchConfig  # noqa: E402

__all__ = [
    "DEFAULT_RESOURCE_URL",
    "CacheIOError",
    "CacheStore",
    "ConfigurationError",
    "FetchConfig",
    "FetchError",
    "FetchTimeoutError",
    "Fetcher",
    "NetworkError",
    "ZonecacheError",
    "fetch",
    "is_expired",
    "path_for",
]
