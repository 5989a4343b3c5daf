"""Synchronous cache-or-download fetcher.

This module provides :class:`Fetcher`, which returns the text of a remote
resource and keeps a copy of it in a :class:`~zonecache.cache.CacheStore`.
It wraps :class:`httpx.Client` and layers on:

- **Freshness check** -- the cached copy is served as long as it is
  younger than :attr:`~zonecache.models.FetchConfig.ttl`.
- **Hard deadline** -- ``timeout_ms`` bounds every socket operation via
  :class:`httpx.Timeout` *and* the request as a whole, from connect through
  the last body byte, so a server trickling its headers or body cannot
  hold a call open.
- **No intermediate caches** -- every refresh is an unconditional GET
  with ``Cache-Control: no-cache, no-store``.
- **Safe replacement** -- the body is streamed into a temporary file and
  renamed over the cached copy only after it arrived completely and
  decoded cleanly.  A failed refresh leaves the stale copy untouched and
  raises; the stale copy is never returned in its place.

There is no retry: every failure propagates to the caller as a subclass of
:class:`~zonecache.exceptions.ZonecacheError`.
"""

from __future__ import annotations

import codecs
import socket
import threading
import time
from pathlib import Path
from typing import Any, Optional

import httpx

from zonecache.cache import CacheStore
from zonecache.exceptions import (
    CacheIOError,
    ConfigurationError,
    FetchTimeoutError,
    NetworkError,
)
from zonecache.models import FetchConfig, FetchResult
from zonecache.output import get_output

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
}


class _Deadline:
    """Wall-clock limit for one download, including connect and response headers.

    ``httpx.Timeout`` only limits each socket operation on its own, so a
    server that trickles its status line and headers never trips it.  A
    background :class:`threading.Timer` shuts down the request's socket
    once the limit passes, which makes the blocked read fail at once.  The
    socket is captured through httpx's ``trace`` request extension.
    """

    _SOCKET_EVENTS = ("connection.connect_tcp.complete", "connection.start_tls.complete")

    def __init__(self, seconds: float) -> None:
        self._ends_at = time.monotonic() + seconds
        self._lock = threading.Lock()
        self._sock: Optional[socket.socket] = None
        self._fired = False
        self._timer = threading.Timer(seconds, self._fire)
        self._timer.daemon = True

    def __enter__(self) -> _Deadline:
        self._timer.start()
        return self

    def __exit__(self, *args: object) -> None:
        self._timer.cancel()

    @property
    def passed(self) -> bool:
        return self._fired or time.monotonic() >= self._ends_at

    def trace(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name not in self._SOCKET_EVENTS:
            return
        stream = info.get("return_value")
        sock = stream.get_extra_info("socket") if stream is not None else None
        with self._lock:
            self._sock = sock
            if self._fired:
                self._abort()

    def _fire(self) -> None:
        with self._lock:
            self._fired = True
            self._abort()

    def _abort(self) -> None:
        if self._sock is None:
            return
        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # already closed


class Fetcher:
    """Cache-backed HTTP fetcher for text resources.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        config: Timeout, TTL, cache directory and text encoding.  Defaults
            to :class:`~zonecache.models.FetchConfig` defaults (5 s, 24 h,
            system temp dir).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
        store: Optional cache store; by default one is built on
            ``config.cache_directory``.

    Example::

        with Fetcher(FetchConfig(timeout_ms=2000)) as fetcher:
            xml = fetcher.get("https://example.org/data/zones.xml")
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        store: Optional[CacheStore] = None,
    ) -> None:
        self._config = config or FetchConfig()
        self._store = store or CacheStore(self._config.cache_directory)
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Fetcher:
        self._client = httpx.Client(
            timeout=httpx.Timeout(self._config.timeout_seconds),
            headers=_NO_CACHE_HEADERS,
            follow_redirects=True,
            # Every request opens its own connection so _Deadline sees its socket.
            limits=httpx.Limits(max_keepalive_connections=0),
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    @property
    def config(self) -> FetchConfig:
        return self._config

    @property
    def store(self) -> CacheStore:
        return self._store

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def get(self, uri: str) -> str:
        """Return the text of *uri*, from cache when fresh.  See :meth:`fetch`."""
        return self.fetch(uri).content

    def fetch(self, uri: str) -> FetchResult:
        """Return the text of *uri* together with where it came from.

        Args:
            uri: Absolute ``http``/``https`` URI.  Its final path segment
                names the cache file.

        Returns:
            A :class:`~zonecache.models.FetchResult`; ``from_cache`` is
            ``False`` when a download happened.

        Raises:
            ConfigurationError: Invalid URI or unusable cache directory.
            NetworkError: Connection failure or non-2xx response.
            FetchTimeoutError: The download exceeded ``timeout_ms``.
            CacheIOError: The cache file could not be written or read.
        """
        output = get_output()
        path = self._store.path_for(uri)

        if not self._store.is_expired(path, self._config.ttl):
            output.debug(f"Cache hit: {uri} -> {path}")
            content = self._store.read_text(path, self._config.encoding)
            return FetchResult(uri=uri, path=path, content=content, from_cache=True)

        output.debug(f"Cache miss: {uri}")
        self.download(uri, path)
        content = self._store.read_text(path, self._config.encoding)
        return FetchResult(uri=uri, path=path, content=content, from_cache=False)

    def download(self, uri: str, path: Path) -> int:
        """GET *uri* and atomically replace *path* with the response body.

        The body must decode with ``config.encoding`` before it replaces
        *path*; otherwise the previous entry is kept.

        Returns:
            The number of bytes written.

        Raises:
            ConfigurationError: Unsupported scheme, malformed URI, or
                unusable cache directory.
            NetworkError: Connection failure or non-2xx response.
            FetchTimeoutError: The download exceeded ``timeout_ms``.
            CacheIOError: The body could not be decoded or the temporary
                file could not be written.
        """
        assert self._client is not None, "Fetcher not initialised -- use as context manager"

        self._store.ensure_writable()
        timeout_ms = self._config.timeout_ms
        if timeout_ms == 0:
            raise FetchTimeoutError(f"Timed out fetching {uri} (timeout_ms=0)", uri=uri)

        output = get_output()
        output.debug(f"GET {uri} (timeout {timeout_ms} ms)")
        encoding = self._config.encoding
        decoder = codecs.getincrementaldecoder(encoding)()
        timed_out = FetchTimeoutError(f"Timed out after {timeout_ms} ms fetching {uri}", uri=uri)
        deadline = _Deadline(self._config.timeout_seconds)
        written = 0

        try:
            with deadline, self._client.stream(
                "GET", uri, extensions={"trace": deadline.trace}
            ) as response:
                if not response.is_success:
                    raise NetworkError(
                        f"HTTP {response.status_code} fetching {uri}",
                        uri=uri,
                        status_code=response.status_code,
                    )
                with self._store.open_for_replace(path) as fh:
                    for chunk in response.iter_bytes():
                        if deadline.passed:
                            raise timed_out
                        decoder.decode(chunk)
                        fh.write(chunk)
                        written += len(chunk)
                    decoder.decode(b"", final=True)
        except UnicodeDecodeError as exc:
            raise CacheIOError(f"Response from {uri} is not valid {encoding}: {exc}") from exc
        except httpx.TimeoutException as exc:
            raise timed_out from exc
        except (httpx.UnsupportedProtocol, httpx.InvalidURL) as exc:
            raise ConfigurationError(f"Cannot fetch {uri!r}: {exc}") from exc
        except httpx.RequestError as exc:
            if deadline.passed:
                raise timed_out from exc
            raise NetworkError(f"Failed to fetch {uri}: {exc}", uri=uri) from exc

        output.debug(f"Wrote {written} bytes to {path}")
        return written


def fetch(
    uri: str,
    config: Optional[FetchConfig] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> str:
    """Return the text of *uri*, downloading it only if the cached copy expired.

    Convenience wrapper around a single-use :class:`Fetcher`.

    Example::

        import zonecache

        xml = zonecache.fetch("https://example.org/data/zones.xml")
    """
    with Fetcher(config, transport=transport) as fetcher:
        return fetcher.get(uri)
