"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~zonecache.exceptions.ZonecacheError` subclass.
Shell wrappers and cron jobs can inspect the exit code to tell a stale
network from a broken cache directory without parsing stderr.

Example::

    $ zonecache fetch https://example.org/data/zones.xml --timeout-ms 100
    $ echo $?
    9   # EXIT_TIMEOUT -- the download did not finish in time
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIGURATION_ERROR = 2
"""Invalid URI, invalid configuration, or an unusable cache directory."""

EXIT_NETWORK_ERROR = 6
"""A network-level error occurred (DNS failure, connection refused, non-2xx status)."""

EXIT_CACHE_IO_ERROR = 8
"""Reading or writing the local cache file failed."""

EXIT_TIMEOUT = 9
"""The download did not complete within the configured timeout."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C (128 + SIGINT)."""
