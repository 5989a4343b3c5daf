"""Exception hierarchy for zonecache.

All exceptions inherit from :class:`ZonecacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`zonecache.exit_codes`.
The top-level error handler in :func:`zonecache.app.main` catches
``ZonecacheError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ZonecacheError (exit 1)
    +-- ConfigurationError  (exit 2)
    +-- CacheIOError        (exit 8)
    +-- FetchError          (exit 6)
        +-- NetworkError        (exit 6)
        +-- FetchTimeoutError   (exit 9)

None of these are retried by the library; they propagate to the caller
unchanged.
"""

from __future__ import annotations

from typing import Optional

from zonecache.exit_codes import (
    EXIT_CACHE_IO_ERROR,
    EXIT_CONFIGURATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NETWORK_ERROR,
    EXIT_TIMEOUT,
)


class ZonecacheError(Exception):
    """Base exception for all zonecache errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`zonecache.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigurationError(ZonecacheError):
    """Raised for an invalid URI, invalid settings, or an unusable cache directory."""

    exit_code = EXIT_CONFIGURATION_ERROR


class CacheIOError(ZonecacheError):
    """Raised when the cache file cannot be written or read (disk full, permission denied)."""

    exit_code = EXIT_CACHE_IO_ERROR


class FetchError(ZonecacheError):
    """Raised when a download cannot complete.

    Catch this to handle every network-side failure at once; catch
    :class:`NetworkError` or :class:`FetchTimeoutError` to tell them apart.

    Args:
        message: Human-readable error description.
        uri: The URI whose download failed.
    """

    exit_code = EXIT_NETWORK_ERROR

    def __init__(self, message: str, uri: Optional[str] = None):
        super().__init__(message)
        self.uri = uri


class NetworkError(FetchError):
    """Raised on connection or DNS failure, or when the server answers with a non-2xx status.

    ``status_code`` is set when the server responded, ``None`` when the
    failure happened before any response arrived.
    """

    def __init__(
        self,
        message: str,
        uri: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, uri=uri)
        self.status_code = status_code


class FetchTimeoutError(FetchError):
    """Raised when the download does not finish within ``timeout_ms``."""

    exit_code = EXIT_TIMEOUT
