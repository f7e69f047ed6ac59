"""Copy the files of a diff from the source root to the destination root."""

from __future__ import annotations

import errno
import os
import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

from ._types import ChangeError
from .diff import DiffEntry
from .exceptions import DirectoryCreateError
from .progress import CopyStats


@dataclass
class CopyEvent:
    """Progress notification sent before each file, for each new directory,
    and for each failed copy.

    Attributes:
        path: Relative path being processed.
        action: ``"create"``, ``"overwrite"``, ``"mkdir"`` or ``"error"``.
        percent: Percent of files finished before this one.
        eta: Estimated seconds left, 0 until a first file has finished.
        error: Failure message, set only for ``"error"`` events.
    """
    path: str
    action: str
    percent: float
    eta: float
    error: str = ""


@dataclass
class CopyReport:
    """Result of :func:`copy_files`.

    Attributes:
        create: Paths copied that did not exist at the destination.
        overwrite: Paths copied over an existing destination file.
        skipped: Destination-only paths, reported but left alone.
        errors: Per-file copy failures.
        stats: Timing and size samples for every attempted copy.
    """
    stats: CopyStats
    create: list[str] = field(default_factory=list)
    overwrite: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[ChangeError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def copied(self) -> int:
        return len(self.create) + len(self.overwrite)


def _ensure_dir(path: Path) -> bool:
    """Create *path* (and parents) if missing; return True if it was created."""
    if path.is_dir():
        return False
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreateError(f"could not create directory {path}: {exc}") from exc
    return True


def copy_files(
    src_root: str | os.PathLike,
    dest_root: str | os.PathLike,
    diff: Mapping[str, DiffEntry],
    *,
    copier: Callable[[Path, Path], object] | None = None,
    preserve: bool = True,
    progress: Callable[[CopyEvent], None] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> CopyReport:
    """Copy every source-side file in *diff* to *dest_root*.

    New and changed files are handled the same way; the create/overwrite
    split only feeds the report and progress labels.  Destination-only
    entries are listed in ``report.skipped``.

    A failed copy is recorded in ``report.errors``, announced with an
    ``"error"`` event and the batch goes on.  Failing to create a
    destination directory raises
    :class:`~smartcopy.exceptions.DirectoryCreateError` and stops the
    batch; the exception's ``report`` holds what was done up to then.

    *copier* defaults to :func:`shutil.copy2` (content and metadata), or
    :func:`shutil.copyfile` when *preserve* is False.  Every attempt,
    successful or not, adds its duration and size to ``report.stats``.
    """
    src_root = Path(src_root)
    dest_root = Path(dest_root)
    if copier is None:
        copier = shutil.copy2 if preserve else shutil.copyfile

    todo: list[DiffEntry] = []
    skipped: list[str] = []
    for path in sorted(diff):
        entry = diff[path]
        if entry.source is None:
            skipped.append(path)
        else:
            todo.append(entry)

    report = CopyReport(stats=CopyStats(total=len(todo)), skipped=skipped)
    stats = report.stats
    for entry in todo:
        action = "create" if entry.dest is None else "overwrite"
        if progress is not None:
            progress(CopyEvent(entry.path, action, stats.percent, stats.remaining))

        dest = dest_root / entry.path
        try:
            created = _ensure_dir(dest.parent)
        except DirectoryCreateError as exc:
            exc.report = report
            raise
        if created and progress is not None:
            rel_dir = str(Path(entry.path).parent).replace(os.sep, "/")
            progress(CopyEvent(rel_dir, "mkdir", stats.percent, stats.remaining))

        start = clock()
        try:
            if dest.is_dir() and not dest.is_symlink():
                raise IsADirectoryError(errno.EISDIR, "destination is a directory", str(dest))
            copier(src_root / entry.path, dest)
        except OSError as exc:
            report.errors.append(ChangeError(path=entry.path, error=str(exc)))
            if progress is not None:
                progress(CopyEvent(entry.path, "error", stats.percent, stats.remaining,
                                   error=str(exc)))
        else:
            (report.create if action == "create" else report.overwrite).append(entry.path)
        finally:
            stats.record(clock() - start, entry.source.size)
    return report
