"""Item: a path bound to a repository, with filesystem-style queries and edits."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dulwich.objects import Blob as _DBlob
from dulwich.objects import Tree as _DTree

from .exceptions import (
    IsDirError,
    IsFileError,
    NoParentError,
    NotFoundError,
    ParentIsFileError,
    StoreError,
)
from .filetype import Filetype
from .path import Path
from .tree import GIT_OBJECT_TREE, insert_into_tree

if TYPE_CHECKING:
    from .repo import Repository

__all__ = ["Item", "EditOutcome", "ResolvedBlob", "ResolvedTree", "Absent", "Resolution"]

logger = logging.getLogger(__name__)


class EditOutcome(enum.Enum):
    """Result of a successful :meth:`Item.edit`."""

    COMMITTED = "committed"
    NO_CHANGE = "no_change"


@dataclass(frozen=True)
class ResolvedBlob:
    """The path holds a file."""

    blob: _DBlob


@dataclass(frozen=True)
class ResolvedTree:
    """The path holds a directory."""

    tree: _DTree


@dataclass(frozen=True)
class Absent:
    """Nothing exists at the path.

    *blocked_by* is the ancestor that turned out to be a file, if the walk
    stopped at one before reaching the last segment.
    """

    blocked_by: Path | None = None


Resolution = ResolvedBlob | ResolvedTree | Absent


def _classify(obj) -> Resolution:
    if obj.type_num == GIT_OBJECT_TREE:
        return ResolvedTree(obj)
    return ResolvedBlob(obj)


class Item:
    """A path in a :class:`~wikistore.repo.Repository`.

    Items are cheap and hold no snapshot: every query resolves the path
    against the current HEAD.
    """

    def __init__(self, repo: Repository, path: Path | bytes | str = b""):
        self._repo = repo
        self._path = path.copy() if isinstance(path, Path) else Path(path)

    def __repr__(self) -> str:
        return f"Item({self._path.percent_encode()!r})"

    def __eq__(self, other):
        if isinstance(other, Item):
            return self._repo is other._repo and self._path == other._path
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    @property
    def repo(self) -> Repository:
        return self._repo

    @property
    def path(self) -> Path:
        """A copy of this item's path."""
        return self._path.copy()

    @property
    def name(self) -> bytes | None:
        """The filename, or ``None`` for the root."""
        return self._path.filename()

    def parent(self) -> Item:
        """The item one level up.

        Raises:
            NoParentError: If this is the root.
        """
        parent = self._path.parent()
        if parent is None:
            raise NoParentError("The root has no parent")
        return Item(self._repo, parent)

    def filetype(self) -> Filetype:
        return Filetype.from_path(self._path)

    # --- Resolution ---

    def resolve(self) -> Resolution:
        """Look this path up in the current HEAD snapshot."""
        return self._resolve_in(self._repo.current_root_tree(), self._path)

    def _resolve_in(self, root: _DTree, path: Path) -> Resolution:
        if path.is_empty():
            return ResolvedTree(root)

        parent = self._resolve_in(root, path.parent())
        if isinstance(parent, Absent):
            return parent
        if isinstance(parent, ResolvedBlob):
            return Absent(blocked_by=path.parent())

        name = path.filename()
        for entry in parent.tree.iteritems():
            if entry.path == name:
                return _classify(self._repo.get_object(entry.sha))
        return Absent()

    def _require(self) -> ResolvedBlob | ResolvedTree:
        found = self.resolve()
        if isinstance(found, Absent):
            if found.blocked_by is not None:
                raise ParentIsFileError(str(self._path), str(found.blocked_by))
            raise NotFoundError(str(self._path))
        return found

    # --- Queries ---

    def content(self) -> bytes:
        """Return the file's bytes.

        Raises:
            NotFoundError: If nothing exists at the path.
            IsDirError: If the path is a directory.
        """
        found = self._require()
        if isinstance(found, ResolvedTree):
            raise IsDirError(str(self._path))
        return found.blob.data

    def list(self) -> list[Item]:
        """Return the children of a directory in tree order.

        Raises:
            NotFoundError: If nothing exists at the path.
            IsFileError: If the path is a file.
        """
        found = self._require()
        if isinstance(found, ResolvedBlob):
            raise IsFileError(str(self._path))
        return [Item(self._repo, self._path / entry.path) for entry in found.tree.iteritems()]

    def exists(self) -> bool:
        try:
            self._require()
        except NotFoundError:
            return False
        return True

    def is_dir(self) -> bool:
        """Whether the path is a directory.

        Raises:
            NotFoundError: If nothing exists at the path.
        """
        return isinstance(self._require(), ResolvedTree)

    def is_file(self) -> bool:
        """Whether the path is a file.

        Raises:
            NotFoundError: If nothing exists at the path.
        """
        return isinstance(self._require(), ResolvedBlob)

    def can_exist(self) -> bool:
        """Whether a file could be written here without hitting a file ancestor.

        Independent of whether anything exists at the path itself.
        """
        root = self._repo.current_root_tree()
        if self._path.depth() <= 1:
            if not isinstance(self._resolve_in(root, Path()), ResolvedTree):
                raise StoreError("Root of the current snapshot is not a tree")
            return True
        ancestor = self._path.parent()
        while ancestor.depth() >= 1:
            if isinstance(self._resolve_in(root, ancestor), ResolvedBlob):
                return False
            ancestor = ancestor.parent()
        return True

    # --- Edit ---

    def edit(self, content: bytes, message: str) -> EditOutcome:
        """Write *content* to this path and commit it with *message*.

        Intermediate directories are created as needed.  Writing the bytes
        the file already holds creates no commit and no objects.

        Returns:
            :attr:`EditOutcome.COMMITTED` or :attr:`EditOutcome.NO_CHANGE`.

        Raises:
            IsDirError: If the path is the root or an existing directory.
            CannotCreateError: If an ancestor of the path is a file.
            StaleHeadError: If HEAD was moved by another writer.
            StoreError: If the object store fails.
        """
        if self._path.is_empty():
            raise IsDirError("Cannot write to the root")
        blob = _DBlob.from_string(bytes(content))

        repo = self._repo
        with repo.lock():
            head = repo._read_head()
            if head is None:
                head = repo._create_root_commit()
            root = repo.get_object(repo.get_object(head).tree)
            builder = repo.tree_builder(root)
            if not insert_into_tree(repo, builder, self._path.copy(), blob):
                logger.debug("Edit of %s left content unchanged", self._path)
                return EditOutcome.NO_CHANGE
            repo.commit(head, builder.write(), message)
        return EditOutcome.COMMITTED
