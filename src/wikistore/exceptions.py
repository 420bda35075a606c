"""Exceptions for wikistore.

Each error also derives from the closest built-in, so callers may catch
``FileNotFoundError`` or ``IsADirectoryError`` without importing this module.
"""


class WikiStoreError(Exception):
    """Base class for all wikistore errors."""


class NotFoundError(WikiStoreError, FileNotFoundError):
    """Nothing exists at the requested path."""


class ParentIsFileError(NotFoundError):
    """An ancestor of the requested path is a file, so the path cannot exist.

    The offending ancestor is available as :attr:`blocked_by`.
    """

    def __init__(self, path, blocked_by):
        super().__init__(f"{path}: {blocked_by} is a file")
        self.path = path
        self.blocked_by = blocked_by


class IsDirError(WikiStoreError, IsADirectoryError):
    """A file operation was invoked on a directory."""


class IsFileError(WikiStoreError, NotADirectoryError):
    """A directory operation was invoked on a file."""


class NoParentError(WikiStoreError, ValueError):
    """The root has no parent."""


class CannotCreateError(WikiStoreError, NotADirectoryError):
    """A write is blocked because an ancestor of the path is a file."""


class StoreError(WikiStoreError):
    """The underlying git object store failed."""


class StaleHeadError(StoreError):
    """HEAD moved between reading the snapshot and committing on top of it."""


class ConfigError(WikiStoreError, ValueError):
    """The configuration file is missing, unreadable or invalid."""
