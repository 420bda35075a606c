"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import logging

import click

from ..config import DEFAULT_INDEX, DEFAULT_MAX_UPLOAD_SIZE, Config
from ..exceptions import ConfigError, StoreError
from ..path import Path
from ..repo import Repository


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _strip_colon(raw: str) -> str:
    """Strip an optional leading ':' from a repo-side path."""
    return raw[1:] if raw.startswith(":") else raw


def _parse_repo_path(raw: str | None) -> Path:
    """Percent-decode a repo-side path argument (``None`` is the root)."""
    if raw is None:
        return Path()
    return Path.from_percent_encoded(_strip_colon(raw))


def _display(path: Path) -> str:
    return path.percent_encode() or "/"


def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _store_repo(ctx, param, value):
    """Click callback: store --repo value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["repo_path"] = value
    return value


def _store_config(ctx, param, value):
    """Click callback: load --config into the context."""
    ctx.ensure_object(dict)
    if value is not None:
        try:
            ctx.obj["config"] = Config.load(value)
        except ConfigError as exc:
            raise click.BadParameter(str(exc), ctx=ctx, param=param)
    return value


def _repo_option(f):
    """Shared --repo/-r option decorator for all commands."""
    return click.option(
        "--repo", "-r", type=click.Path(), envvar="WIKISTORE_REPO",
        help="Path to bare git repository (or set WIKISTORE_REPO).",
        expose_value=False, callback=_store_repo, is_eager=True,
    )(f)


def _config(ctx) -> Config | None:
    return ctx.obj.get("config")


def _require_repo(ctx) -> str:
    """Get the repo path from --repo or the config file."""
    repo = ctx.obj.get("repo_path")
    if not repo:
        config = _config(ctx)
        if config is not None:
            repo = str(config.repo)
    if not repo:
        raise click.ClickException(
            "No repository specified. Use --repo, --config or set WIKISTORE_REPO."
        )
    return repo


def _max_upload_size(ctx) -> int:
    config = _config(ctx)
    return config.max_upload_size if config is not None else DEFAULT_MAX_UPLOAD_SIZE


def _index_name(ctx) -> str:
    config = _config(ctx)
    return config.index if config is not None else DEFAULT_INDEX


def _open_repo(ctx, *, create: bool = False) -> Repository:
    config = _config(ctx)
    identity = {}
    if config is not None:
        identity = {"author": config.author, "email": config.email}
    try:
        return Repository.open(_require_repo(ctx), create=create, **identity)
    except (FileNotFoundError, StoreError) as exc:
        raise click.ClickException(str(exc))


class _EchoHandler(logging.Handler):
    """Logging handler that writes through click, to whatever stderr is current."""

    def emit(self, record):
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


_log_handler = _EchoHandler()
_log_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))


def _configure_logging(verbose: bool) -> None:
    """Attach the stderr handler; verbose mode lowers it to DEBUG.

    Without -v the logger's own level is left as the host configured it.
    """
    pkg_logger = logging.getLogger("wikistore")
    if _log_handler not in pkg_logger.handlers:
        pkg_logger.addHandler(_log_handler)
    _log_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if verbose:
        pkg_logger.setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--repo", "-r", type=click.Path(), envvar="WIKISTORE_REPO",
              help="Path to bare git repository (or set WIKISTORE_REPO).",
              expose_value=False, callback=_store_repo, is_eager=True)
@click.option("--config", "-c", type=click.Path(dir_okay=False), envvar="WIKISTORE_CONFIG",
              help="TOML config file (or set WIKISTORE_CONFIG).",
              expose_value=False, callback=_store_config, is_eager=True)
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, verbose):
    """wikistore: a versioned document store in a bare git repository.

    Every write is a commit; reading never changes the repository.

    \b
    Quick start:
      wikistore init -r wiki.git
      echo hello | wikistore write :index.md -m init
      wikistore cat :index.md
      wikistore ls

    \b
    Repo paths are percent-decoded and may be prefixed with ':'
    (e.g. :docs/my%20page.md).
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)
