"""Resource commands -- fetch a resource and inspect its cache entry.

Provides three commands registered directly on the root app:

* ``zonecache fetch [URI]`` -- print the resource, downloading it only if
  the cached copy is missing or older than the TTL.
* ``zonecache status [URI]`` -- show where the cached copy lives, how old
  it is, and whether the next fetch will download it again.
* ``zonecache path [URI]`` -- print the cache file path for a URI.

Every command falls back to the configured ``default_uri`` (the CLDR
``windowsZones.xml`` mapping unless changed) when no URI is given.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import typer

from zonecache.exceptions import ZonecacheError
from zonecache.output import debug, error, print_document, print_line, print_record


def _format_age(age: Optional[timedelta]) -> str:
    if age is None:
        return "-"
    seconds = int(age.total_seconds())
    hours, rem = divmod(seconds, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}h{minutes:02d}m{secs:02d}s"


def _fail(exc: ZonecacheError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def fetch_command(
    uri: Optional[str] = typer.Argument(None, help="Resource URI (defaults to the configured URI)."),
    timeout_ms: Optional[int] = typer.Option(
        None, "--timeout-ms", help="Download timeout in milliseconds."
    ),
    ttl_seconds: Optional[float] = typer.Option(
        None, "--ttl-seconds", help="Maximum age of the cached copy in seconds."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Directory holding cached files."
    ),
) -> None:
    """Print a resource, downloading it only when the cached copy has expired.

    Example::

        zonecache fetch
        zonecache fetch https://example.org/data/zones.xml --ttl-seconds 3600
        zonecache -o zones.xml fetch --timeout-ms 2000
    """
    from zonecache.client import Fetcher
    from zonecache.config import load_global_config, resolve_fetch_config, resolve_uri

    try:
        global_cfg = load_global_config()
        resolved_uri = resolve_uri(uri, global_cfg)
        config = resolve_fetch_config(timeout_ms, ttl_seconds, cache_dir, global_cfg)
        with Fetcher(config) as fetcher:
            result = fetcher.fetch(resolved_uri)
    except ZonecacheError as exc:
        raise _fail(exc) from None

    debug(f"{'Served from cache' if result.from_cache else 'Downloaded'}: {result.path}")
    print_document(result.content)


def status_command(
    uri: Optional[str] = typer.Argument(None, help="Resource URI (defaults to the configured URI)."),
    ttl_seconds: Optional[float] = typer.Option(
        None, "--ttl-seconds", help="Maximum age of the cached copy in seconds."
    ),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Directory holding cached files."
    ),
) -> None:
    """Show the cache entry for a resource and whether it has expired.

    Never touches the network.

    Example::

        zonecache status
        zonecache --json status https://example.org/data/zones.xml
    """
    from zonecache.cache import CacheStore
    from zonecache.config import load_global_config, resolve_fetch_config, resolve_uri

    try:
        global_cfg = load_global_config()
        resolved_uri = resolve_uri(uri, global_cfg)
        config = resolve_fetch_config(None, ttl_seconds, cache_dir, global_cfg)
        status = CacheStore(config.cache_directory).status(resolved_uri, config.ttl)
    except ZonecacheError as exc:
        raise _fail(exc) from None

    print_record(
        {
            "uri": status.uri,
            "path": str(status.path),
            "exists": status.exists,
            "age": _format_age(status.age),
            "ttl": _format_age(config.ttl),
            "expired": status.expired,
        },
        title="Cache entry",
    )


def path_command(
    uri: Optional[str] = typer.Argument(None, help="Resource URI (defaults to the configured URI)."),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Directory holding cached files."
    ),
) -> None:
    """Print the cache file path a resource is stored under.

    Example::

        zonecache path https://example.org/data/zones.xml
    """
    from zonecache.cache import path_for
    from zonecache.config import load_global_config, resolve_fetch_config, resolve_uri

    try:
        global_cfg = load_global_config()
        resolved_uri = resolve_uri(uri, global_cfg)
        config = resolve_fetch_config(None, None, cache_dir, global_cfg)
        path = path_for(resolved_uri, config.cache_directory)
    except ZonecacheError as exc:
        raise _fail(exc) from None

    print_line(str(path))
