"""Configuration file for the wikistore command line."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path

from .exceptions import ConfigError

__all__ = ["Config"]

DEFAULT_INDEX = "index.md"
DEFAULT_MAX_UPLOAD_SIZE = 1024 * 1024


@dataclass(frozen=True)
class Config:
    """Settings read from a TOML file.

    Example::

        repo = "wiki.git"
        index = "index.md"
        max_upload_size = 1048576
        author = "alice"
        email = "alice@example.com"

    A relative *repo* is resolved against the directory of the file.
    """

    repo: Path
    index: str = DEFAULT_INDEX
    max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE
    author: str = "wikistore"
    email: str = "wikistore@localhost"

    @classmethod
    def load(cls, path: str | os.PathLike[str]) -> Config:
        """Read and validate the TOML file at *path*.

        Raises:
            ConfigError: If the file can't be read or has invalid contents.
        """
        path = Path(path)
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except OSError as exc:
            raise ConfigError(f"Cannot read config {path}: {exc}") from exc
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
        return cls.from_dict(data, base_dir=path.parent)

    @classmethod
    def from_dict(cls, data: dict, *, base_dir: Path | None = None) -> Config:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        if "repo" not in data:
            raise ConfigError("Missing required config key: repo")

        for key in ("repo", "index", "author", "email"):
            if key in data and not isinstance(data[key], str):
                raise ConfigError(f"Config key {key!r} must be a string")
        size = data.get("max_upload_size", DEFAULT_MAX_UPLOAD_SIZE)
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ConfigError("Config key 'max_upload_size' must be a positive integer")

        repo = Path(data["repo"])
        if base_dir is not None and not repo.is_absolute():
            repo = base_dir / repo
        values = dict(data, repo=repo, max_upload_size=size)
        return cls(**values)
