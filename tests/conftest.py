"""Shared fixtures for smartcopy tests."""

import os
from datetime import datetime, timezone

import pytest
from click.testing import CliRunner

from smartcopy import FileRecord

T0 = datetime(2024, 1, 15, 14, 30, 0, 123456, tzinfo=timezone.utc)
T1 = datetime(2024, 3, 1, 9, 0, 0, tzinfo=timezone.utc)


def rec(name, hash="", size=1, mtime=T0):
    """Shorthand FileRecord constructor."""
    return FileRecord(name=name, size=size, mtime=mtime, hash=hash)


def write(root, rel, data, mtime_ns=None):
    """Write *data* under *root* and optionally pin its mtime (nanoseconds)."""
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, str):
        p.write_text(data)
    else:
        p.write_bytes(data)
    if mtime_ns is not None:
        os.utime(p, ns=(mtime_ns, mtime_ns))
    return p


class CountingHasher:
    """Hasher stand-in that records which paths were hashed."""

    def __init__(self):
        self.calls = []

    def __call__(self, path):
        self.calls.append(path.name)
        return "%032x" % len(path.read_bytes())


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def src_dir(tmp_path):
    """A source tree with two top-level files and one nested file."""
    d = tmp_path / "src"
    d.mkdir()
    write(d, "a.txt", "alpha")
    write(d, "b.txt", "beta")
    write(d, "sub/deep/c.txt", "gamma")
    return d


@pytest.fixture
def dest_dir(tmp_path):
    d = tmp_path / "dest"
    d.mkdir()
    return d
