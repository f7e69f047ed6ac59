"""The analyze command."""

from __future__ import annotations

import os

import click

from ..exceptions import PathError
from ..sync import analyze_directory
from ._helpers import (
    main,
    RULE,
    PathFailed,
    PartialFailure,
    _analyze_progress,
    _build_options,
    _print_problems,
    _scan_options,
)


@main.command("analyze")
@click.argument("root", envvar="SMARTCOPY_SOURCE",
                type=click.Path(exists=True, file_okay=False))
@_scan_options
@click.pass_context
def analyze_cmd(ctx, root, pattern, exclude, exclude_from, use_gitignore, fast,
                ignore_cache, jobs, follow_symlinks):
    """Hash ROOT and update its smartcopy.md5 without copying anything.

    Useful to prime the manifest of a large tree ahead of the first copy.
    """
    options = _build_options(
        pattern=pattern, exclude=exclude, exclude_from=exclude_from,
        use_gitignore=use_gitignore, fast=fast, ignore_cache=ignore_cache,
        jobs=jobs, follow_symlinks=follow_symlinks,
    )
    try:
        result = analyze_directory(os.path.abspath(root), options,
                                   progress=_analyze_progress(ctx))
    except PathError as exc:
        raise PathFailed(str(exc))

    _print_problems(result.errors, result.warnings)
    click.echo(RULE)
    click.echo(
        f"{len(result.manifest)} files: {len(result.hashed)} hashed, "
        f"{len(result.reused)} cached, {len(result.deleted)} deleted"
    )
    if result.errors:
        raise PartialFailure(f"{len(result.errors)} file(s) could not be hashed")
