"""Compare two reconciled manifests.

Each difference is one of three entry types, so which sides exist is part
of the type rather than a convention about empty records:

* :class:`Added`: only in the source.
* :class:`Removed`: only in the destination (bidirectional diffs only).
* :class:`Changed`: in both with different content; :class:`Reversed`
  is the variant where the destination copy is newer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Mapping, Union

from .manifest import FileRecord


class DiffKind(str, Enum):
    """Kind of difference: ``ADDED``, ``REMOVED``, ``CHANGED`` or ``REVERSED``."""
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    REVERSED = "reversed"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True)
class Added:
    """File present in the source only."""
    path: str
    source: FileRecord

    kind: ClassVar[DiffKind] = DiffKind.ADDED
    reverse: ClassVar[bool] = False

    @property
    def dest(self) -> None:
        return None


@dataclass(frozen=True)
class Removed:
    """File present in the destination only.

    Flagged ``reverse`` because the natural copy direction would be
    destination to source.  Never copied and never deleted.
    """
    path: str
    dest: FileRecord

    kind: ClassVar[DiffKind] = DiffKind.REMOVED
    reverse: ClassVar[bool] = True

    @property
    def source(self) -> None:
        return None


@dataclass(frozen=True)
class Changed:
    """File present on both sides with different content."""
    path: str
    source: FileRecord
    dest: FileRecord

    kind: ClassVar[DiffKind] = DiffKind.CHANGED
    reverse: ClassVar[bool] = False


@dataclass(frozen=True)
class Reversed(Changed):
    """Changed file whose destination copy is newer than the source.

    The source is still the side that gets copied; the flag only marks
    the entry for review.
    """
    kind: ClassVar[DiffKind] = DiffKind.REVERSED
    reverse: ClassVar[bool] = True


DiffEntry = Union[Added, Removed, Changed]


def _changed(path: str, a: FileRecord, b: FileRecord) -> Changed:
    if a.mtime < b.mtime:
        return Reversed(path, a, b)
    return Changed(path, a, b)


def diff_manifests(
    a: Mapping[str, FileRecord],
    b: Mapping[str, FileRecord],
    *,
    bidirectional: bool = False,
) -> dict[str, DiffEntry]:
    """Return ``{path: DiffEntry}`` for every difference from *a* to *b*.

    Equal digests mean equal files regardless of timestamps, except when
    both sides carry the fast-mode hash: those say nothing about content,
    so differing modification times count as a change.  With
    *bidirectional*, names only in *b* are reported as :class:`Removed`.
    The result has no meaningful order.
    """
    result: dict[str, DiffEntry] = {}
    for name, rec_a in a.items():
        rec_b = b.get(name)
        if rec_b is None:
            result[name] = Added(name, rec_a)
        elif rec_a.hash != rec_b.hash:
            result[name] = _changed(name, rec_a, rec_b)
        elif rec_a.is_fast and rec_b.is_fast and rec_a.mtime != rec_b.mtime:
            result[name] = _changed(name, rec_a, rec_b)
    if bidirectional:
        for name, rec_b in b.items():
            if name not in a:
                result[name] = Removed(name, rec_b)
    return result


@dataclass
class DiffSummary:
    """Per-kind counts of a diff."""
    added: int = 0
    removed: int = 0
    changed: int = 0
    reversed: int = 0

    @property
    def total(self) -> int:
        return self.added + self.removed + self.changed + self.reversed

    @property
    def in_sync(self) -> bool:
        return self.total == 0


def summarize(diff: Mapping[str, DiffEntry]) -> DiffSummary:
    """Count the entries of *diff* by kind."""
    summary = DiffSummary()
    for entry in diff.values():
        attr = entry.kind.value
        setattr(summary, attr, getattr(summary, attr) + 1)
    return summary
