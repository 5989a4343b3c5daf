"""Filesystem-backed cache entries with a single TTL.

A cache entry is one flat file inside the cache directory, named after the
final path segment of the URI it was downloaded from.  There is no index
and no sidecar metadata: an entry's age is read from the file's own
timestamp.

Writes never happen in place.  :meth:`CacheStore.open_for_replace` hands
out a temporary file in the same directory and renames it over the target
only once it has been fully written and fsynced, so a reader never sees a
truncated entry and a failed refresh leaves the previous entry (content
and timestamp) exactly as it was.

Because every write creates a new file, the modification time of the
entry is the moment its current content was written.  That is what
:func:`is_expired` compares against the TTL.  Birth time is not used: it
is missing on most Linux filesystems and cannot be set by ``os.utime``.

Concurrent refreshes of the same entry are not serialised.  Two processes
that both find an entry expired will both download it and the last
rename wins.
"""

from __future__ import annotations

import os
import posixpath
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import BinaryIO, Iterator, Optional
from urllib.parse import urlsplit

from zonecache.atomic import replace_atomically
from zonecache.exceptions import CacheIOError, ConfigurationError
from zonecache.models import CacheStatus


def path_for(uri: str, cache_directory: str | Path) -> Path:
    """Return the cache file path for *uri* inside *cache_directory*.

    The file name is the last path segment of the URI, taken verbatim
    (still percent-encoded).  URIs that share a final segment map to the
    same file::

        >>> path_for("https://a.example/x/zones.xml", "/tmp")
        PosixPath('/tmp/zones.xml')
        >>> path_for("https://b.example/y/zones.xml", "/tmp")
        PosixPath('/tmp/zones.xml')

    Raises:
        ConfigurationError: If *uri* is not absolute or has no final
            path segment to name the file after.
    """
    parts = urlsplit(uri)
    if not parts.scheme or not parts.netloc:
        raise ConfigurationError(f"Not an absolute URI: {uri!r}")

    name = posixpath.basename(parts.path)
    if name in ("", ".", ".."):
        raise ConfigurationError(
            f"URI has no final path segment to use as a cache file name: {uri!r}"
        )
    return Path(cache_directory) / name


def _created_at(path: Path) -> Optional[datetime]:
    """UTC timestamp of the entry's current content, or ``None`` if it does not exist."""
    try:
        stat = path.stat()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise CacheIOError(f"Cannot stat cache file {path}: {exc}") from exc
    return datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)


def is_expired(path: str | Path, ttl: timedelta) -> bool:
    """Return ``True`` if *path* is missing or older than *ttl*.

    Age is measured from the file's timestamp to now, both in UTC.  An
    entry whose age equals *ttl* exactly is still fresh.
    """
    created = _created_at(Path(path))
    if created is None:
        return True
    return datetime.now(timezone.utc) - created > ttl


class CacheStore:
    """A cache directory holding one file per resource.

    Args:
        directory: The cache directory.  It is not created; it must
            exist and be writable before :meth:`open_for_replace` is
            used.

    Example::

        store = CacheStore("/tmp/cache")
        path = store.path_for("https://example.org/data/zones.xml")
        if store.is_expired(path, timedelta(hours=24)):
            with store.open_for_replace(path) as fh:
                fh.write(b"<zones/>")
        text = store.read_text(path)
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, uri: str) -> Path:
        """Cache file path for *uri*.  See :func:`path_for`."""
        return path_for(uri, self._directory)

    def is_expired(self, path: Path, ttl: timedelta) -> bool:
        """See :func:`is_expired`."""
        return is_expired(path, ttl)

    def age(self, path: Path) -> Optional[timedelta]:
        """How long ago the entry at *path* was written, or ``None`` if absent."""
        created = _created_at(path)
        if created is None:
            return None
        return datetime.now(timezone.utc) - created

    def status(self, uri: str, ttl: timedelta) -> CacheStatus:
        """Report where the entry for *uri* lives and whether it is fresh."""
        path = self.path_for(uri)
        age = self.age(path)
        return CacheStatus(
            uri=uri,
            path=path,
            exists=age is not None,
            age=age,
            expired=age is None or age > ttl,
        )

    def ensure_writable(self) -> None:
        """Check that the cache directory exists and accepts new files.

        Raises:
            ConfigurationError: If the directory is missing, is not a
                directory, or is not writable by this process.
        """
        if not self._directory.exists():
            raise ConfigurationError(f"Cache directory does not exist: {self._directory}")
        if not self._directory.is_dir():
            raise ConfigurationError(f"Cache directory is not a directory: {self._directory}")
        if not os.access(self._directory, os.W_OK | os.X_OK):
            raise ConfigurationError(f"Cache directory is not writable: {self._directory}")

    def read_text(self, path: Path, encoding: str = "utf-8-sig") -> str:
        """Read the whole entry at *path* as text.

        Line endings are returned as stored.  The default encoding drops a
        leading UTF-8 byte-order mark.

        Raises:
            CacheIOError: If the file cannot be opened, read, or decoded.
        """
        try:
            with open(path, "r", encoding=encoding, newline="") as fh:
                return fh.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise CacheIOError(f"Cannot read cache file {path}: {exc}") from exc

    @contextmanager
    def open_for_replace(self, path: Path) -> Iterator[BinaryIO]:
        """Yield a binary file whose content replaces *path* on clean exit.

        See :func:`~zonecache.atomic.replace_atomically`.  If the ``with``
        block raises, *path* keeps its previous content and timestamp.
        ``OSError`` from creating, writing or renaming the file is
        re-raised as :class:`CacheIOError`; anything else propagates
        unchanged.
        """
        try:
            with replace_atomically(path) as fh:
                yield fh
        except OSError as exc:
            raise CacheIOError(f"Cannot write cache file {path}: {exc}") from exc
