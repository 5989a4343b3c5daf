"""Atomic whole-file replacement, shared by the cache and the config file."""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator


def _umask() -> int:
    # os.umask can only be read by setting it.
    mask = os.umask(0)
    os.umask(mask)
    return mask


@contextmanager
def replace_atomically(path: Path) -> Iterator[BinaryIO]:
    """Yield a binary file whose content replaces *path* on clean exit.

    The temporary file ``.<name>.<random>.tmp`` lives next to *path*, so
    the final ``os.replace`` is a rename within one filesystem.  Before the
    rename it is fsynced and given the mode a plain ``open()`` would have
    produced (``0o666`` minus the umask), not the ``0o600`` that
    :func:`tempfile.NamedTemporaryFile` uses.

    If the ``with`` block raises, the temporary file is removed, *path* is
    left untouched, and the exception propagates unchanged.
    """
    fh = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with fh:
            yield fh
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(fh.name, 0o666 & ~_umask())
        os.replace(fh.name, path)
    except BaseException:
        try:
            os.unlink(fh.name)
        except FileNotFoundError:
            pass
        raise
