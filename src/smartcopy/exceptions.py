"""Exceptions for smartcopy."""


class SmartCopyError(Exception):
    """Base class for all smartcopy errors."""


class PathError(SmartCopyError):
    """Raised for unusable roots: relative, missing, or source == destination.

    Always fatal; raised before any scanning starts.
    """


class ManifestError(SmartCopyError):
    """Raised when a manifest file cannot be read or a line cannot be parsed.

    Callers recover by reconciling as if no cache existed.
    """


class HashError(SmartCopyError):
    """Raised when a file cannot be hashed (e.g. it became a directory)."""


class DirectoryCreateError(SmartCopyError):
    """Raised when a destination directory cannot be created during a copy.

    Aborts the remaining copy batch.  When raised by
    :func:`~smartcopy.copy.copy_files`, ``report`` is the partial
    :class:`~smartcopy.copy.CopyReport` up to the abort.
    """
    report = None
