"""Low-level tree manipulation for wikistore.

Provides a scratch :class:`TreeBuilder` and the path-insertion rebuild used
by :meth:`wikistore.item.Item.edit`, on top of dulwich's tree objects.
"""

from __future__ import annotations

import stat
from typing import TYPE_CHECKING, NamedTuple

from dulwich.objects import Blob as _DBlob
from dulwich.objects import Tree as _DTree

from .exceptions import CannotCreateError, IsDirError
from .path import Path

if TYPE_CHECKING:
    from .repo import Repository

GIT_FILEMODE_TREE = 0o040000
GIT_FILEMODE_BLOB = 0o100644
GIT_FILEMODE_BLOB_EXECUTABLE = 0o100755
GIT_OBJECT_TREE = _DTree.type_num
GIT_OBJECT_BLOB = _DBlob.type_num


class TreeEntry(NamedTuple):
    """One entry of a tree: raw *name*, git *mode* and object *sha*."""

    name: bytes
    mode: int
    sha: bytes

    @property
    def is_tree(self) -> bool:
        return stat.S_ISDIR(self.mode)


class TreeBuilder:
    """Mutable copy of a tree's entries, written out as a new immutable tree."""

    def __init__(self, repo: Repository, base_tree: _DTree | None = None):
        self._repo = repo
        self._entries: dict[bytes, tuple[int, bytes]] = {}
        if base_tree is not None:
            for entry in base_tree.iteritems():
                self._entries[entry.path] = (entry.mode, entry.sha)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: bytes) -> TreeEntry | None:
        try:
            mode, sha = self._entries[name]
        except KeyError:
            return None
        return TreeEntry(name, mode, sha)

    def insert(self, name: bytes, sha: bytes, mode: int) -> None:
        if not name or b"/" in name:
            raise ValueError(f"Invalid tree entry name: {name!r}")
        self._entries[name] = (mode, sha)

    def remove(self, name: bytes) -> None:
        try:
            del self._entries[name]
        except KeyError:
            raise KeyError(name) from None

    def write(self) -> bytes:
        """Store the tree and return its sha."""
        tree = _DTree()
        for name, (mode, sha) in self._entries.items():
            tree.add(name, mode, sha)
        self._repo.add_object(tree)
        return tree.id


def iter_entries(tree: _DTree) -> list[TreeEntry]:
    """Return the entries of *tree* in git order."""
    return [TreeEntry(e.path, e.mode, e.sha) for e in tree.iteritems()]


def insert_into_tree(
    repo: Repository,
    builder: TreeBuilder,
    path: Path,
    blob: _DBlob,
    *,
    _prefix: Path | None = None,
) -> bool:
    """Insert *blob* at *path* below *builder*, rebuilding subtrees on the way.

    *path* is consumed segment by segment (it is mutated).  Subtrees not on
    the path keep their shas.  Returns ``False`` without writing anything
    when the leaf already holds an identical blob.

    Raises:
        IsDirError: The leaf is an existing directory.
        CannotCreateError: A segment before the leaf is an existing file.
    """
    first = path.pop_first()
    if first is None:
        raise ValueError("Cannot insert at the root")
    name = bytes(first)
    here = first if _prefix is None else _prefix / first

    existing = builder.get(name)

    if path.is_empty():
        if existing is not None:
            if existing.is_tree:
                raise IsDirError(str(here))
            if existing.sha == blob.id:
                return False
        repo.add_object(blob)
        builder.insert(name, blob.id, GIT_FILEMODE_BLOB)
        return True

    if existing is None:
        sub_builder = repo.tree_builder()
    elif existing.is_tree:
        sub_builder = repo.tree_builder(repo.get_object(existing.sha))
    else:
        raise CannotCreateError(f"{here / path}: {here} is a file")

    if not insert_into_tree(repo, sub_builder, path, blob, _prefix=here):
        return False
    builder.insert(name, sub_builder.write(), GIT_FILEMODE_TREE)
    return True
