"""The copy command."""

from __future__ import annotations

import click

from ..copy import copy_files
from ..diff import summarize
from ..exceptions import DirectoryCreateError
from ..progress import format_duration, format_size
from ._diff import _plan, _print_diff
from ._helpers import (
    main,
    RULE,
    CopyAborted,
    PartialFailure,
    _build_options,
    _roots_arguments,
    _scan_options,
)


def _on_copy_progress(event):
    if event.action == "mkdir":
        click.echo(f"directory created: {event.path}")
        return
    if event.action == "error":
        click.echo(f"ERROR: {event.path}: {event.error}", err=True)
        return
    pct = f"{event.percent:.1f}%"
    eta = format_duration(event.eta)
    verb = "creating" if event.action == "create" else "overwriting"
    click.echo(f"[{pct:>6}] [{eta:>8}] {verb} file: {event.path}")


def _print_copy_stats(report, *, finished=True):
    stats = report.stats
    if finished:
        click.echo(f"all files copied [{format_duration(stats.elapsed):>8}]")
    else:
        click.echo(f"copy stopped after {stats.done} of {stats.total} files "
                   f"[{format_duration(stats.elapsed):>8}]")
    click.echo(f"{report.copied} copied, {len(report.errors)} failed, "
               f"{format_size(stats.total_size)} total, "
               f"{format_size(stats.average_size)} average")


@main.command("copy")
@_roots_arguments
@_scan_options
@click.option("--bidirectional", "-b", is_flag=True, default=False,
              help="Also report files that exist only in DEST (never copied or deleted).")
@click.option("--no-preserve", "no_preserve", is_flag=True, default=False,
              help="Copy file content only, not permissions and timestamps.")
@click.option("--dry-run", "-n", is_flag=True, default=False,
              help="Show what would be copied without copying.")
@click.pass_context
def copy_cmd(ctx, source, dest, pattern, exclude, exclude_from, use_gitignore,
             fast, ignore_cache, jobs, follow_symlinks, bidirectional,
             no_preserve, dry_run):
    """Copy new and changed files from SOURCE to DEST.

    Files only present in DEST are never removed.  DEST is created if it
    does not exist.  Copy failures are printed as they happen.
    """
    options = _build_options(
        pattern=pattern, exclude=exclude, exclude_from=exclude_from,
        use_gitignore=use_gitignore, fast=fast, ignore_cache=ignore_cache,
        jobs=jobs, follow_symlinks=follow_symlinks, bidirectional=bidirectional,
    )
    plan = _plan(ctx, source, dest, options)
    failures = len(plan.errors)

    if dry_run:
        _print_diff(plan.diff)
    else:
        click.echo(RULE)
        summary = summarize(plan.diff)
        count = summary.total - summary.removed
        if count == 0:
            click.echo("no files to copy")
        else:
            click.echo(f"copying {count} files ({summary.added} new, "
                       f"{summary.changed + summary.reversed} changed)")
        try:
            report = copy_files(plan.source, plan.dest, plan.diff,
                                preserve=not no_preserve,
                                progress=_on_copy_progress)
        except DirectoryCreateError as exc:
            if exc.report is not None:
                _print_copy_stats(exc.report, finished=False)
            raise CopyAborted(str(exc))
        for path in report.skipped:
            click.echo(f"WARNING: {path}: only in destination, not copied", err=True)
        if count:
            _print_copy_stats(report)
        failures += len(report.errors)

    if failures:
        raise PartialFailure(f"{failures} file(s) could not be hashed or copied")
