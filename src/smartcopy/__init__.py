from .manifest import (
    DEFAULT_FORMAT, FAST_HASH, MANIFEST_NAME, FileRecord, ManifestFormat,
    format_manifest_line, parse_manifest_line, load_manifest, save_manifest,
)
from .exceptions import SmartCopyError, PathError, ManifestError, HashError, DirectoryCreateError
from .scan import compile_excludes, scan_tree
from .hashing import hash_file
from .reconcile import ReconcileResult, reconcile
from .diff import Added, Removed, Changed, Reversed, DiffEntry, DiffKind, DiffSummary, diff_manifests, summarize
from .progress import CopyStats, format_duration, format_size
from .copy import CopyEvent, CopyReport, copy_files
from .sync import SyncOptions, SyncPlan, resolve_roots, analyze_directory, plan_sync
from ._types import ChangeError

__all__ = [
    "DEFAULT_FORMAT", "FAST_HASH", "MANIFEST_NAME", "FileRecord", "ManifestFormat",
    "format_manifest_line", "parse_manifest_line", "load_manifest", "save_manifest",
    "SmartCopyError", "PathError", "ManifestError", "HashError", "DirectoryCreateError",
    "compile_excludes", "scan_tree", "hash_file", "ReconcileResult", "reconcile",
    "Added", "Removed", "Changed", "Reversed", "DiffEntry", "DiffKind", "DiffSummary",
    "diff_manifests", "summarize",
    "CopyStats", "format_duration", "format_size",
    "CopyEvent", "CopyReport", "copy_files",
    "SyncOptions", "SyncPlan", "resolve_roots", "analyze_directory", "plan_sync",
    "ChangeError",
]
