"""The diff command."""

from __future__ import annotations

import json

import click

from ..diff import DiffKind, summarize
from ..exceptions import PathError
from ..sync import plan_sync
from ._helpers import (
    main,
    RULE,
    PathFailed,
    PartialFailure,
    _analyze_progress,
    _build_options,
    _print_problems,
    _roots_arguments,
    _scan_options,
)

_LABELS = {
    DiffKind.ADDED: "new",
    DiffKind.REMOVED: "dest-only",
    DiffKind.CHANGED: "change",
    DiffKind.REVERSED: "change",
}


def _diff_entry_dict(entry) -> dict:
    return {
        "path": entry.path,
        "kind": str(entry.kind),
        "reverse": entry.reverse,
        "source_hash": entry.source.hash if entry.source is not None else None,
        "dest_hash": entry.dest.hash if entry.dest is not None else None,
    }


def _print_diff(diff, *, as_json: bool = False) -> None:
    """Print a diff mapping sorted by path, as text lines or JSON."""
    entries = [diff[p] for p in sorted(diff)]
    if as_json:
        click.echo(json.dumps([_diff_entry_dict(e) for e in entries], indent=2))
        return
    click.echo(RULE)
    s = summarize(diff)
    click.echo(f"found {s.total} diff files ({s.added} new, {s.changed} changed, "
               f"{s.reversed} reversed, {s.removed} dest-only)")
    for e in entries:
        arrow = "<-" if e.reverse else "->"
        a = e.source.hash if e.source is not None else ""
        b = e.dest.hash if e.dest is not None else ""
        click.echo(f"({_LABELS[e.kind]}): {e.path}: {a} {arrow} {b}")


def _plan(ctx, source, dest, options, *, quiet=False):
    """Run plan_sync, mapping path problems to exit code 3."""
    try:
        plan = plan_sync(source, dest, options,
                         progress=None if quiet else _analyze_progress(ctx))
    except PathError as exc:
        raise PathFailed(str(exc))
    _print_problems(plan.errors,
                    plan.source_result.warnings + plan.dest_result.warnings)
    return plan


@main.command("diff")
@_roots_arguments
@_scan_options
@click.option("--bidirectional", "-b", is_flag=True, default=False,
              help="Also report files that exist only in DEST.")
@click.option("--json", "as_json", is_flag=True, default=False,
              help="Print the diff as JSON.")
@click.pass_context
def diff_cmd(ctx, source, dest, pattern, exclude, exclude_from, use_gitignore,
             fast, ignore_cache, jobs, follow_symlinks, bidirectional, as_json):
    """Show which files differ between SOURCE and DEST.

    '->' marks a source file that is newer (or new); '<-' marks one where
    DEST holds the newer copy.  Nothing is copied or deleted.
    """
    options = _build_options(
        pattern=pattern, exclude=exclude, exclude_from=exclude_from,
        use_gitignore=use_gitignore, fast=fast, ignore_cache=ignore_cache,
        jobs=jobs, follow_symlinks=follow_symlinks, bidirectional=bidirectional,
    )
    plan = _plan(ctx, source, dest, options, quiet=as_json)
    _print_diff(plan.diff, as_json=as_json)
    if plan.errors:
        raise PartialFailure(f"{len(plan.errors)} file(s) could not be hashed")
