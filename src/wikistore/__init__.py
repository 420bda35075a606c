from .path import Path
from .repo import Repository, Snapshot
from .item import Item, EditOutcome, ResolvedBlob, ResolvedTree, Absent
from .filetype import Filetype
from .config import Config
from .exceptions import (
    WikiStoreError,
    NotFoundError,
    ParentIsFileError,
    IsDirError,
    IsFileError,
    NoParentError,
    CannotCreateError,
    StoreError,
    StaleHeadError,
    ConfigError,
)

__all__ = [
    "Path", "Repository", "Snapshot", "Item", "EditOutcome",
    "ResolvedBlob", "ResolvedTree", "Absent", "Filetype", "Config",
    "WikiStoreError", "NotFoundError", "ParentIsFileError", "IsDirError",
    "IsFileError", "NoParentError", "CannotCreateError", "StoreError",
    "StaleHeadError", "ConfigError",
]
