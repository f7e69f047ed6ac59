"""Top-level orchestration: validate roots, analyze both trees, diff them."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dulwich.ignore import IgnoreFilter

from ._types import ChangeError
from .diff import DiffEntry, diff_manifests
from .exceptions import PathError
from .manifest import DEFAULT_FORMAT, ManifestFormat
from .reconcile import ProgressCallback, ReconcileResult, reconcile
from .scan import compile_excludes, scan_tree


@dataclass(frozen=True)
class SyncOptions:
    """Settings for one analyze/diff/copy run.

    Attributes:
        pattern: Regular expression a relative name must contain to be
            included (``None`` includes everything).
        exclude: gitignore-style exclude patterns.
        exclude_from: File with more exclude patterns, one per line.
        gitignore: Honour ``.gitignore`` files found in each tree.
        fast: Skip hashing, compare by name and modification time only.
        ignore_cache: Rehash everything and overwrite the manifests.
        bidirectional: Also report files that exist only in the destination.
        jobs: Hashing threads per root.
        follow_symlinks: Descend into symlinked directories.
        fmt: Manifest settings.
    """
    pattern: str | None = None
    exclude: tuple[str, ...] = ()
    exclude_from: str | None = None
    gitignore: bool = False
    fast: bool = False
    ignore_cache: bool = False
    bidirectional: bool = False
    jobs: int = 1
    follow_symlinks: bool = False
    fmt: ManifestFormat = field(default=DEFAULT_FORMAT)

    def make_exclude(self) -> IgnoreFilter | None:
        """Return the fixed exclude matcher, or ``None`` when none is configured."""
        return compile_excludes(self.exclude, self.exclude_from)


@dataclass
class SyncPlan:
    """Both analyzed roots and the diff between them."""
    source: Path
    dest: Path
    source_result: ReconcileResult
    dest_result: ReconcileResult
    diff: dict[str, DiffEntry]

    @property
    def errors(self) -> list[ChangeError]:
        """Hash failures from both roots, with the root prefixed to the path."""
        out = []
        for root, res in ((self.source, self.source_result), (self.dest, self.dest_result)):
            out.extend(ChangeError(path=str(root / e.path), error=e.error) for e in res.errors)
        return out


def _is_within(child: Path, parent: Path) -> bool:
    try:
        child.relative_to(parent)
    except ValueError:
        return False
    return True


def resolve_roots(
    source: str | os.PathLike,
    dest: str | os.PathLike,
    *,
    create_dest: bool = True,
) -> tuple[Path, Path]:
    """Make *source* and *dest* absolute and check they can be used.

    The destination is created when missing (unless *create_dest* is
    False).  Raises :class:`PathError` when the source is missing, the
    two are the same directory, or one contains the other.
    """
    src = Path(os.path.abspath(source))
    dst = Path(os.path.abspath(dest))
    # Compared with symlinks resolved; the returned paths keep the links.
    real_src = Path(os.path.realpath(src))
    real_dst = Path(os.path.realpath(dst))
    if real_src == real_dst:
        raise PathError("source directory and destination directory are the same")
    if _is_within(real_dst, real_src) or _is_within(real_src, real_dst):
        raise PathError("source and destination directories must not contain each other")
    if not src.is_dir():
        raise PathError(f"source directory does not exist: {src}")
    if not dst.exists():
        if not create_dest:
            raise PathError(f"destination directory does not exist: {dst}")
        try:
            dst.mkdir(parents=True)
        except OSError as exc:
            raise PathError(f"could not create destination directory {dst}: {exc}") from exc
    elif not dst.is_dir():
        raise PathError(f"destination is not a directory: {dst}")
    return src, dst


def analyze_directory(
    root: str | os.PathLike,
    options: SyncOptions = SyncOptions(),
    *,
    progress: ProgressCallback | None = None,
) -> ReconcileResult:
    """Scan *root* and reconcile it against its manifest.

    Besides the reconcile events, *progress* receives ``("analyzing",
    root)`` first and ``("found", count)`` once the scan is done.  Entries
    the scan had to leave out are listed first in the result's warnings.
    """
    if progress is not None:
        progress("analyzing", str(root))
    skipped: list[ChangeError] = []
    scanned = scan_tree(
        root,
        pattern=options.pattern,
        exclude=options.make_exclude(),
        gitignore=options.gitignore,
        fmt=options.fmt,
        follow_symlinks=options.follow_symlinks,
        skipped=skipped,
    )
    if progress is not None:
        progress("found", str(len(scanned)))
    result = reconcile(
        root,
        scanned,
        fast=options.fast,
        ignore_cache=options.ignore_cache,
        fmt=options.fmt,
        jobs=options.jobs,
        progress=progress,
    )
    result.warnings[:0] = skipped
    return result


def plan_sync(
    source: str | os.PathLike,
    dest: str | os.PathLike,
    options: SyncOptions = SyncOptions(),
    *,
    progress: ProgressCallback | None = None,
) -> SyncPlan:
    """Validate the roots, analyze source then destination, and diff them."""
    src, dst = resolve_roots(source, dest)
    src_result = analyze_directory(src, options, progress=progress)
    dst_result = analyze_directory(dst, options, progress=progress)
    diff = diff_manifests(src_result.manifest, dst_result.manifest,
                          bidirectional=options.bidirectional)
    return SyncPlan(src, dst, src_result, dst_result, diff)
