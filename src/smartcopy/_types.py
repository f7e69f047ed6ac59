"""Shared report data structures."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ChangeError:
    """A file that failed (or was skipped) during an operation.

    Attributes:
        path: The relative path (or ``file:line`` location) concerned.
        error: Human-readable error message.
    """
    path: str
    error: str
