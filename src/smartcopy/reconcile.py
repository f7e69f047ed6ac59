"""Hash reconciliation: reuse cached digests, rehash only what changed.

A file keeps its cached digest when its size and modification time both
match the manifest entry exactly; anything else is hashed again.  In
normal mode the manifest is rewritten after every digest, so an
interrupted run loses at most the file being hashed.
"""

from __future__ import annotations

import functools
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Iterable

from ._types import ChangeError
from .exceptions import HashError, ManifestError
from .hashing import hash_file
from .manifest import (
    DEFAULT_FORMAT,
    FAST_HASH,
    FileRecord,
    ManifestFormat,
    load_manifest,
    save_manifest,
    storable_name,
)

#: ``progress(event, name)``; events are ``reading``, ``hashing``,
#: ``fast``, ``deleted`` and ``error``.
ProgressCallback = Callable[[str, str], None]


@dataclass
class ReconcileResult:
    """Outcome of :func:`reconcile` for one root.

    Attributes:
        manifest: ``{name: FileRecord}`` for every scanned file.
        hashed: Names whose digest was computed this run.
        reused: Names whose cached digest was kept.
        deleted: Names present in the old manifest but no longer on disk.
        errors: Files that could not be hashed (kept with an empty hash).
        warnings: Manifest read/write problems; never fatal.
    """
    manifest: dict[str, FileRecord] = field(default_factory=dict)
    hashed: list[str] = field(default_factory=list)
    reused: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    errors: list[ChangeError] = field(default_factory=list)
    warnings: list[ChangeError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def _emit(progress: ProgressCallback | None, event: str, name: str) -> None:
    if progress is not None:
        progress(event, name)


def _hash_one(hasher, path: Path) -> tuple[str | None, Exception | None]:
    try:
        return hasher(path), None
    except (HashError, OSError) as exc:
        return None, exc


def _load_cache(
    manifest_path: Path,
    scanned: list[FileRecord],
    fmt: ManifestFormat,
    result: ReconcileResult,
    progress: ProgressCallback | None,
) -> dict[str, FileRecord]:
    """Load the prior manifest and split it into kept and deleted entries."""
    _emit(progress, "reading", fmt.filename)
    try:
        prior = load_manifest(manifest_path, fmt, warnings=result.warnings)
    except (FileNotFoundError, ManifestError) as exc:
        result.warnings.append(ChangeError(path=str(manifest_path), error=str(exc)))
        return {}

    kept: dict[str, FileRecord] = {}
    for rec in scanned:
        if rec.name in prior:
            kept[rec.name] = prior.pop(rec.name)
    result.deleted = sorted(prior)
    for name in result.deleted:
        _emit(progress, "deleted", name)
    return kept


def reconcile(
    root: str | os.PathLike,
    scanned: Iterable[FileRecord],
    *,
    fast: bool = False,
    ignore_cache: bool = False,
    fmt: ManifestFormat = DEFAULT_FORMAT,
    hasher: Callable[[Path], str] | None = None,
    jobs: int = 1,
    progress: ProgressCallback | None = None,
) -> ReconcileResult:
    """Build the manifest for *root* from freshly *scanned* records.

    Args:
        root: Absolute root directory the records are relative to.
        scanned: Records from :func:`~smartcopy.scan.scan_tree`; they are
            not modified.
        fast: Assign :data:`~smartcopy.manifest.FAST_HASH` to every file
            without reading it.  Nothing is loaded or persisted.
        ignore_cache: Do not read the existing manifest; hash everything
            and overwrite it.
        fmt: Manifest settings (file name, delimiter, digest algorithm).
        hasher: ``hasher(path) -> hexdigest``; defaults to
            :func:`~smartcopy.hashing.hash_file` with ``fmt.algorithm``.
        jobs: Number of hashing threads.  The calling thread remains the
            only one that touches the manifest.
        progress: Optional ``progress(event, name)`` callback.
    """
    root = Path(root)
    scanned = list(scanned)
    result = ReconcileResult()
    manifest = result.manifest

    if fast:
        for rec in scanned:
            _emit(progress, "fast", rec.name)
            manifest[rec.name] = replace(rec, hash=FAST_HASH)
        return result

    if hasher is None:
        hasher = functools.partial(hash_file, algorithm=fmt.algorithm)
    manifest_path = fmt.path_for(root)
    if not ignore_cache and manifest_path.exists():
        manifest.update(_load_cache(manifest_path, scanned, fmt, result, progress))

    for rec in scanned:
        if not storable_name(rec.name):
            result.warnings.append(ChangeError(
                path=rec.name, error="name contains a line break; hashed but not cached"))

    pending: list[FileRecord] = []
    for rec in scanned:
        cached = manifest.get(rec.name)
        if cached is not None and cached.same_stat(rec):
            result.reused.append(rec.name)
        else:
            pending.append(rec)

    save_failed = False

    def persist() -> None:
        nonlocal save_failed
        try:
            save_manifest(manifest_path, manifest, fmt)
        except OSError as exc:
            if not save_failed:
                result.warnings.append(ChangeError(path=str(manifest_path), error=str(exc)))
            save_failed = True

    def store(rec: FileRecord, digest: str | None, exc: Exception | None) -> None:
        if exc is not None:
            result.errors.append(ChangeError(path=rec.name, error=str(exc)))
            _emit(progress, "error", rec.name)
            manifest[rec.name] = replace(rec, hash="")
        else:
            result.hashed.append(rec.name)
            manifest[rec.name] = replace(rec, hash=digest)
        persist()

    if jobs > 1 and len(pending) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            futures = {}
            for rec in pending:
                _emit(progress, "hashing", rec.name)
                futures[pool.submit(_hash_one, hasher, root / rec.name)] = rec
            for future in as_completed(futures):
                store(futures[future], *future.result())
    else:
        for rec in pending:
            _emit(progress, "hashing", rec.name)
            store(rec, *_hash_one(hasher, root / rec.name))

    persist()
    return result
