"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import re

import click

from ..sync import SyncOptions

RULE = "-" * 40


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class PathFailed(click.ClickException):
    """Unusable source/destination root (exit 3)."""
    exit_code = 3


class CopyAborted(click.ClickException):
    """A destination directory could not be created (exit 4)."""
    exit_code = 4


class PartialFailure(click.ClickException):
    """The run finished but some files could not be hashed or copied (exit 5)."""
    exit_code = 5


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _check_regexp(ctx, param, value):
    """Click callback: reject patterns that do not compile."""
    if value is None:
        return value
    try:
        re.compile(value)
    except re.error as exc:
        raise click.BadParameter(f"invalid regular expression: {exc}")
    return value


def _analyze_progress(ctx):
    """Return a reconcile progress callback printing the console lines."""
    def _on_event(event, name):
        if event == "analyzing":
            click.echo(RULE)
            click.echo(f"analyzing directory: {name}")
        elif event == "found":
            click.echo(f"found {name} files")
        elif event == "reading":
            click.echo(f"reading {name}")
        elif event == "deleted":
            click.echo(f"file deleted: {name}")
        elif event == "hashing":
            _status(ctx, f"hashing file: {name}")
        elif event == "error":
            click.echo(f"ERROR: {name}: could not be hashed", err=True)
        elif event == "fast":
            _status(ctx, f"setting file: {name}")
    return _on_event


def _print_problems(errors, warnings=()):
    for w in warnings:
        click.echo(f"WARNING: {w.path}: {w.error}", err=True)
    for e in errors:
        click.echo(f"ERROR: {e.path}: {e.error}", err=True)


# ---------------------------------------------------------------------------
# Option decorators
# ---------------------------------------------------------------------------

def _scan_options(f):
    """Options shared by every command that analyzes a tree."""
    f = click.option("--follow-symlinks", is_flag=True, default=False,
                     help="Descend into symlinked directories.")(f)
    f = click.option("--jobs", "-j", type=click.IntRange(min=1), default=1,
                     envvar="SMARTCOPY_JOBS", show_default=True,
                     help="Hashing threads per directory (or set SMARTCOPY_JOBS).")(f)
    f = click.option("--ignore-cache", "--ignoremd5", "ignore_cache", is_flag=True,
                     default=False,
                     help="Ignore smartcopy.md5, rehash every file and rewrite it.")(f)
    f = click.option("--fast", is_flag=True, default=False,
                     help="Fast mode: no hashing, compare names and times only.")(f)
    f = click.option("--gitignore", "use_gitignore", is_flag=True, default=False,
                     help="Honour .gitignore files found in the trees.")(f)
    f = click.option("--exclude-from", "exclude_from", type=click.Path(exists=True, dir_okay=False),
                     help="Read exclude patterns from file.")(f)
    f = click.option("--exclude", multiple=True,
                     help="Exclude files matching pattern (gitignore syntax, repeatable).")(f)
    f = click.option("--regexp", "pattern", default=".*", show_default=True,
                     callback=_check_regexp,
                     help="Only include files whose relative path matches this regex.")(f)
    return f


def _build_options(*, pattern, exclude, exclude_from, use_gitignore, fast,
                   ignore_cache, jobs, follow_symlinks, bidirectional=False) -> SyncOptions:
    return SyncOptions(
        pattern=None if pattern in (None, ".*") else pattern,
        exclude=tuple(exclude),
        exclude_from=exclude_from,
        gitignore=use_gitignore,
        fast=fast,
        ignore_cache=ignore_cache,
        bidirectional=bidirectional,
        jobs=jobs,
        follow_symlinks=follow_symlinks,
    )


def _roots_arguments(f):
    """SOURCE and DEST positional arguments with environment fallbacks."""
    f = click.argument("dest", envvar="SMARTCOPY_DEST", type=click.Path(file_okay=False))(f)
    f = click.argument("source", envvar="SMARTCOPY_SOURCE", type=click.Path(file_okay=False))(f)
    return f


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, verbose):
    """smartcopy: copy only the files that differ.

    Each directory keeps a smartcopy.md5 manifest of content hashes, so
    files whose size and modification time are unchanged are not read
    again on the next run.

    \b
    Quick start:
      smartcopy diff ./photos /mnt/backup/photos
      smartcopy copy ./photos /mnt/backup/photos
      smartcopy analyze ./photos

    \b
    Exit codes:
      2  bad usage
      3  invalid source/destination directory
      4  copy aborted: a destination directory could not be created
      5  finished, but some files could not be hashed or copied
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
