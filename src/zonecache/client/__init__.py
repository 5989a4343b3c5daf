"""HTTP client module for zonecache.

Provides :class:`Fetcher`, a blocking client backed by :class:`httpx.Client`
that serves a resource from the local cache while it is fresh and
re-downloads it under a hard timeout once it has expired, plus the
one-shot :func:`fetch` helper.

Example::

    from zonecache.client import Fetcher

    with Fetcher() as fetcher:
        xml = fetcher.get("https://example.org/data/zones.xml")
"""

from zonecache.client.fetcher import Fetcher, fetch

__all__ = ["Fetcher", "fetch"]
