"""Streaming content digests."""

from __future__ import annotations

import hashlib
import os

from .exceptions import HashError

_HASH_CHUNK_SIZE = 65536


def hash_file(path: str | os.PathLike, algorithm: str = "md5") -> str:
    """Return the hex digest of the full content of *path*.

    Content is streamed in chunks so large files are never loaded whole.
    Raises :class:`HashError` if *path* is a directory (a file was
    replaced by a directory after it was scanned) and :class:`OSError`
    if it cannot be read.
    """
    if os.path.isdir(path):
        raise HashError(f"file is a directory: {path}")
    h = hashlib.new(algorithm)
    with open(path, "rb") as f:
        while True:
            chunk = f.read(_HASH_CHUNK_SIZE)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest()
