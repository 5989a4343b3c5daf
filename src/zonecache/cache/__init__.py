"""Single-file response caching for zonecache.

This package provides :class:`CacheStore`, which decides where the cached
copy of a resource lives (one flat file per final URI path segment) and
whether that copy is still younger than the configured TTL.  It also
exposes the two underlying predicates, :func:`path_for` and
:func:`is_expired`, for callers that do not need a store object.

The store is consumed by :class:`~zonecache.client.fetcher.Fetcher` and is
configured through :class:`~zonecache.models.FetchConfig`.
"""

from zonecache.cache.store import CacheStore, is_expired, path_for

__all__ = ["CacheStore", "is_expired", "path_for"]
