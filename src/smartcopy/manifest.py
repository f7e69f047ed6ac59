"""File records and the per-root hash manifest (``smartcopy.md5``).

The manifest is a plain-text file at the top of a root, one record per
line::

    name::hexhash::size::timestamp

Lines that do not have this shape are skipped on load.  Saving always
rewrites the whole file.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from ._types import ChangeError
from .exceptions import ManifestError

MANIFEST_NAME = "smartcopy.md5"

#: Hash value used in fast mode, where file content is never read.
FAST_HASH = "FM"

_ENCODING = "utf-8"
_ERRORS = "surrogateescape"
_FRACTION_RE = re.compile(r"\.(\d+)")


@dataclass(frozen=True)
class ManifestFormat:
    """Immutable manifest settings shared by the scanner, loader and reconciler.

    Attributes:
        filename: Manifest file name at the top of each root.
        delimiter: Field separator within a line.
        algorithm: :mod:`hashlib` algorithm used for content digests.
    """
    filename: str = MANIFEST_NAME
    delimiter: str = "::"
    algorithm: str = "md5"

    @property
    def pattern(self) -> re.Pattern:
        d = re.escape(self.delimiter)
        return re.compile(rf"(.*){d}([0-9a-fA-F]+){d}(\d*){d}(.*)")

    @property
    def temp_filename(self) -> str:
        return self.filename + ".tmp"

    def path_for(self, root: str | os.PathLike) -> Path:
        """Return the manifest location inside *root*."""
        return Path(root) / self.filename

    def is_manifest_name(self, rel: str) -> bool:
        """True if relative path *rel* names the manifest (or its temp file)."""
        lower = rel.lower()
        return lower in (self.filename.lower(), self.temp_filename.lower())


DEFAULT_FORMAT = ManifestFormat()


@dataclass
class FileRecord:
    """Metadata and content hash for one file, keyed by its relative name.

    Attributes:
        name: Path relative to the scanned root (forward slashes).
        size: Size in bytes.
        mtime: Timezone-aware modification time, microsecond precision.
        hash: Hex digest, :data:`FAST_HASH`, or ``""`` when not (yet) hashed.
    """
    name: str
    size: int
    mtime: datetime
    hash: str = ""

    @property
    def is_fast(self) -> bool:
        return self.hash == FAST_HASH

    def same_stat(self, other: FileRecord) -> bool:
        """True if size and modification time both match *other* exactly."""
        return self.size == other.size and self.mtime == other.mtime


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------

def mtime_from_ns(ns: int) -> datetime:
    """Build a UTC datetime from ``st_mtime_ns`` without float rounding."""
    dt = datetime.fromtimestamp(ns // 1_000_000_000, tz=timezone.utc)
    return dt.replace(microsecond=(ns // 1000) % 1_000_000)


def format_mtime(dt: datetime) -> str:
    """RFC 3339 text for *dt*; :func:`parse_mtime` reverses it exactly."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat(timespec="microseconds")


def _fix_fraction(match: re.Match) -> str:
    digits = match.group(1)[:6]
    return "." + digits.ljust(6, "0")


def parse_mtime(text: str) -> datetime:
    """Parse an RFC 3339 timestamp.

    Accepts a trailing ``Z`` and fractional seconds of any length
    (truncated to microseconds).  Naive timestamps are taken as UTC.
    """
    raw = text.strip()
    if raw[-1:] in ("Z", "z"):
        raw = raw[:-1] + "+00:00"
    raw = _FRACTION_RE.sub(_fix_fraction, raw, count=1)
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        raise ManifestError(f"invalid timestamp: {text!r}") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ---------------------------------------------------------------------------
# Line codec
# ---------------------------------------------------------------------------

def storable_name(name: str) -> bool:
    """True if *name* fits on one manifest line (no CR or LF)."""
    return "\n" not in name and "\r" not in name


def format_manifest_line(record: FileRecord, fmt: ManifestFormat = DEFAULT_FORMAT) -> str:
    """Serialize *record* to a single manifest line (no newline).

    Raises :class:`ManifestError` for names containing a line break.
    """
    if not storable_name(record.name):
        raise ManifestError(f"name contains a line break: {record.name!r}")
    d = fmt.delimiter
    return f"{record.name}{d}{record.hash}{d}{record.size}{d}{format_mtime(record.mtime)}"


def parse_manifest_line(line: str, fmt: ManifestFormat = DEFAULT_FORMAT) -> FileRecord | None:
    """Parse one manifest line.

    Returns ``None`` when the line does not have the record shape (blank
    lines, truncated writes, records without a hash).  Raises
    :class:`ManifestError` when the shape matches but the size or
    timestamp field is invalid.
    """
    m = fmt.pattern.match(line.rstrip("\r\n"))
    if m is None:
        return None
    name, digest, size_text, mtime_text = m.groups()
    try:
        size = int(size_text)
    except ValueError:
        raise ManifestError(f"invalid size for {name}: {size_text!r}") from None
    return FileRecord(name=name, size=size, mtime=parse_mtime(mtime_text), hash=digest)


# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------

def load_manifest(
    path: str | os.PathLike,
    fmt: ManifestFormat = DEFAULT_FORMAT,
    *,
    warnings: list[ChangeError] | None = None,
) -> dict[str, FileRecord]:
    """Read a manifest file into a ``{name: FileRecord}`` mapping.

    Raises :class:`FileNotFoundError` if *path* does not exist and
    :class:`ManifestError` if it cannot be read.  Lines with an invalid
    size or timestamp are skipped; when *warnings* is given each one is
    appended as a :class:`ChangeError` located at ``file:line``.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding=_ENCODING, errors=_ERRORS)
    except FileNotFoundError:
        raise
    except OSError as exc:
        raise ManifestError(f"cannot read manifest {p}: {exc}") from exc

    records: dict[str, FileRecord] = {}
    for lineno, line in enumerate(text.split("\n"), start=1):
        try:
            record = parse_manifest_line(line, fmt)
        except ManifestError as exc:
            if warnings is not None:
                warnings.append(ChangeError(path=f"{p}:{lineno}", error=str(exc)))
            continue
        if record is not None:
            records[record.name] = record
    return records


def save_manifest(
    path: str | os.PathLike,
    records: Mapping[str, FileRecord],
    fmt: ManifestFormat = DEFAULT_FORMAT,
) -> None:
    """Rewrite the manifest at *path* with the records in *records*.

    Names that cannot be stored on one line (see :func:`storable_name`)
    are left out.

    The content goes to a temporary sibling first and is moved into place
    with :func:`os.replace`, so readers only ever see a complete file.
    """
    p = Path(path)
    tmp = p.with_name(fmt.temp_filename)
    lines = [format_manifest_line(records[name], fmt) + "\n"
             for name in sorted(records) if storable_name(name)]
    try:
        with open(tmp, "w", encoding=_ENCODING, errors=_ERRORS, newline="\n") as f:
            f.writelines(lines)
        os.replace(tmp, p)
    except OSError:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise
