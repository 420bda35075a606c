"""Basic commands: init, cat, ls, write, exists, log, index."""

from __future__ import annotations

import os
import sys

import click

from ..exceptions import (
    CannotCreateError,
    IsDirError,
    IsFileError,
    NotFoundError,
    StaleHeadError,
)
from ..item import EditOutcome
from ..path import Path
from ._helpers import (
    main,
    _display,
    _index_name,
    _max_upload_size,
    _open_repo,
    _parse_repo_path,
    _repo_option,
    _require_repo,
    _status,
)


def _read_content(item, shown: str) -> bytes:
    try:
        return item.content()
    except NotFoundError:
        raise click.ClickException(f"File not found: {shown}")
    except IsDirError:
        raise click.ClickException(f"{shown} is a directory, not a file")


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.pass_context
def init(ctx):
    """Create a new bare git repository with an empty root commit."""
    repo_path = _require_repo(ctx)
    if os.path.exists(repo_path):
        raise click.ClickException(f"Repository already exists: {repo_path}")
    repo = _open_repo(ctx, create=True)
    head = repo.head()
    _status(ctx, f"Initialized {repo_path} at {head.commit_hash[:7]}")


# ---------------------------------------------------------------------------
# cat
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.argument("path")
@click.pass_context
def cat(ctx, path):
    """Write the content of the file at PATH to stdout."""
    repo = _open_repo(ctx)
    repo_path = _parse_repo_path(path)
    data = _read_content(repo.item(repo_path), _display(repo_path))
    sys.stdout.buffer.write(data)


# ---------------------------------------------------------------------------
# ls
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.argument("path", required=False)
@click.pass_context
def ls(ctx, path):
    """List the directory at PATH (or the root), sorted by name.

    Directories are shown with a trailing '/'.
    """
    repo = _open_repo(ctx)
    repo_path = _parse_repo_path(path)
    try:
        children = repo.item(repo_path).list()
    except NotFoundError:
        raise click.ClickException(f"Directory not found: {_display(repo_path)}")
    except IsFileError:
        raise click.ClickException(f"{_display(repo_path)} is a file, not a directory")
    for child in sorted(children, key=lambda c: c.name):
        suffix = "/" if child.is_dir() else ""
        click.echo(Path(child.name).percent_encode() + suffix)


# ---------------------------------------------------------------------------
# write
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.argument("path")
@click.option("-m", "--message", required=True, help="Commit message.")
@click.pass_context
def write(ctx, path, message):
    """Write stdin to the file at PATH and commit it."""
    repo = _open_repo(ctx, create=True)
    repo_path = _parse_repo_path(path)
    shown = _display(repo_path)

    limit = _max_upload_size(ctx)
    data = sys.stdin.buffer.read(limit + 1)
    if len(data) > limit:
        raise click.ClickException(f"Input exceeds the maximum upload size of {limit} bytes")

    try:
        outcome = repo.item(repo_path).edit(data, message)
    except IsDirError:
        raise click.ClickException(f"{shown} is a directory, not a file")
    except CannotCreateError as exc:
        raise click.ClickException(f"Cannot create {shown}: {exc}")
    except StaleHeadError as exc:
        raise click.ClickException(str(exc))

    if outcome is EditOutcome.COMMITTED:
        click.echo("committed")
        _status(ctx, f"HEAD is now {repo.head().commit_hash[:7]}")
    else:
        click.echo("unchanged")


# ---------------------------------------------------------------------------
# exists
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.argument("path")
@click.option("--can-exist", "can_exist", is_flag=True, default=False,
              help="Check whether PATH could be written instead.")
@click.pass_context
def exists(ctx, path, can_exist):
    """Exit with status 0 if PATH exists (or could exist), 1 otherwise."""
    repo = _open_repo(ctx)
    item = repo.item(_parse_repo_path(path))
    found = item.can_exist() if can_exist else item.exists()
    ctx.exit(0 if found else 1)


# ---------------------------------------------------------------------------
# log
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.option("-n", "--max-count", type=int, default=None,
              help="Show at most this many snapshots.")
@click.pass_context
def log(ctx, max_count):
    """Show the snapshot history, newest first."""
    repo = _open_repo(ctx)
    for i, snap in enumerate(repo.log()):
        if max_count is not None and i >= max_count:
            break
        click.echo(f"{snap.commit_hash[:7]} {snap.time.isoformat()} {snap.message}")


# ---------------------------------------------------------------------------
# index
# ---------------------------------------------------------------------------

@main.command()
@_repo_option
@click.pass_context
def index(ctx):
    """Print the configured index document."""
    repo = _open_repo(ctx)
    name = _index_name(ctx)
    item = repo.item(name)
    sys.stdout.buffer.write(_read_content(item, _display(item.path)))
