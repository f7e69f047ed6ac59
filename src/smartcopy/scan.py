"""Directory scanning: enumerate the files under a root as unhashed records.

Besides the include regex, a scan can drop paths with gitignore-style
rules: a fixed set given up front (see :func:`compile_excludes`) and,
when asked, the ``.gitignore`` files met during the walk.  Matching is
done by ``dulwich.ignore.IgnoreFilter``.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Sequence

from dulwich.ignore import IgnoreFilter

from ._types import ChangeError
from .exceptions import PathError
from .manifest import DEFAULT_FORMAT, FileRecord, ManifestFormat, mtime_from_ns

GITIGNORE = ".gitignore"


def compile_excludes(
    patterns: Sequence[str] = (),
    exclude_from: str | os.PathLike | None = None,
) -> IgnoreFilter | None:
    """Merge *patterns* and the lines of *exclude_from* into one matcher.

    Blank lines and ``#`` comments in the file are ignored.  Returns
    ``None`` when there is nothing to exclude.
    """
    lines = [p.encode("utf-8") for p in patterns]
    if exclude_from is not None:
        for raw in Path(exclude_from).read_bytes().splitlines():
            line = raw.strip()
            if line and not line.startswith(b"#"):
                lines.append(line)
    return IgnoreFilter(lines) if lines else None


def _gitignore_says(ignores: dict[str, IgnoreFilter], rel: str, is_dir: bool) -> bool:
    # Walk from the file's own directory up to the root; the first
    # .gitignore with an opinion decides, matching against the path
    # relative to that .gitignore's directory.
    parts = rel.split("/")
    for depth in range(len(parts) - 1, -1, -1):
        rules = ignores.get("/".join(parts[:depth]))
        if rules is None:
            continue
        tail = "/".join(parts[depth:])
        verdict = rules.is_ignored(tail + "/" if is_dir else tail)
        if verdict is not None:
            return verdict
    return False


def _rel(base: Path, dirpath: str, name: str) -> str:
    return str((Path(dirpath) / name).relative_to(base)).replace(os.sep, "/")


def scan_tree(
    root: str | os.PathLike,
    *,
    pattern: str | re.Pattern | None = None,
    exclude: IgnoreFilter | None = None,
    gitignore: bool = False,
    fmt: ManifestFormat = DEFAULT_FORMAT,
    follow_symlinks: bool = False,
    skipped: list[ChangeError] | None = None,
) -> list[FileRecord]:
    """Return a :class:`FileRecord` (empty hash) for every file under *root*.

    *root* must be absolute.  Names are relative to *root* with forward
    slashes; directories are never emitted and the order is unspecified.
    *pattern* is a regular expression searched (not anchored) in each
    relative name.  The root's own manifest is always left out.

    *exclude* drops matching files and prunes matching directories.  With
    *gitignore*, each directory's ``.gitignore`` applies to everything
    below it (the nearest one wins) and the ``.gitignore`` files
    themselves are left out.

    Symlinked directories are skipped unless *follow_symlinks* is True, in
    which case they are walked with cycle detection.  File symlinks are
    recorded with the size and mtime of their target.  Entries that
    cannot be stat'ed (dangling links, files removed mid-scan) are left
    out and, when *skipped* is given, appended to it.
    """
    if not os.path.isabs(root):
        raise PathError(f"path is not absolute: {root}")
    base = Path(root)
    if not base.is_dir():
        raise PathError(f"not a directory: {root}")
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    ignores: dict[str, IgnoreFilter] = {}

    def excluded(rel: str, is_dir: bool = False) -> bool:
        if exclude is not None and exclude.is_ignored(rel + "/" if is_dir else rel) is True:
            return True
        return gitignore and _gitignore_says(ignores, rel, is_dir)

    records: list[FileRecord] = []
    seen_realpaths: set[str] = set()
    for dirpath, dirnames, filenames in os.walk(base, followlinks=follow_symlinks):
        if follow_symlinks:
            real = os.path.realpath(dirpath)
            if real in seen_realpaths:
                dirnames.clear()
                continue
            seen_realpaths.add(real)

        dp = Path(dirpath)
        if gitignore and GITIGNORE in filenames:
            rel_dir = "" if dp == base else str(dp.relative_to(base)).replace(os.sep, "/")
            ignores[rel_dir] = IgnoreFilter.from_path(str(dp / GITIGNORE))

        dirnames[:] = [
            d for d in dirnames
            if (follow_symlinks or not (dp / d).is_symlink())
            and not excluded(_rel(base, dirpath, d), is_dir=True)
        ]

        for fname in filenames:
            if gitignore and fname == GITIGNORE:
                continue
            rel = _rel(base, dirpath, fname)
            if fmt.is_manifest_name(rel):
                continue
            if regex is not None and not regex.search(rel):
                continue
            if excluded(rel):
                continue
            try:
                st = (dp / fname).stat()
            except OSError as exc:
                if skipped is not None:
                    skipped.append(ChangeError(path=rel, error=f"skipped: {exc.strerror or exc}"))
                continue
            records.append(FileRecord(name=rel, size=st.st_size, mtime=mtime_from_ns(st.st_mtime_ns)))
    return records
