"""Repository: the git object store and its single HEAD pointer."""

from __future__ import annotations

import logging
import os
import time as _time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path as _FsPath
from typing import TYPE_CHECKING

from dulwich.errors import NotGitRepository
from dulwich.objects import Blob as _DBlob
from dulwich.objects import Commit as _DCommit
from dulwich.objects import ShaFile
from dulwich.objects import Tree as _DTree
from dulwich.repo import Repo as _DRepo

from ._lock import repo_lock
from .exceptions import StaleHeadError, StoreError
from .tree import TreeBuilder

if TYPE_CHECKING:
    from .item import Item
    from .path import Path

__all__ = ["Repository", "Snapshot"]

logger = logging.getLogger(__name__)

HEAD = b"HEAD"
ROOT_COMMIT_MESSAGE = "Root commit"


@dataclass(frozen=True)
class Snapshot:
    """Metadata of one commit in the store's history."""

    commit_hash: str
    tree_hash: str
    parent_hash: str | None
    message: str
    author_name: str
    author_email: str
    time: datetime


def _split_identity(identity: bytes) -> tuple[str, str]:
    name, _, email_part = identity.decode("utf-8", errors="replace").partition(" <")
    return name, email_part.rstrip(">")


@contextmanager
def _store_errors(action: str):
    """Re-raise low-level storage failures as :class:`StoreError`."""
    try:
        yield
    except KeyError as exc:
        raise StoreError(f"{action}: missing object {exc.args[0]!r}") from exc
    except OSError as exc:
        raise StoreError(f"{action}: {exc}") from exc


class Repository:
    """A versioned document store backed by a bare git repository.

    HEAD always points at the newest snapshot.  The first time a snapshot is
    needed on a fresh repository, an empty root commit is created.
    """

    def __init__(self, dulwich_repo: _DRepo, author: str = "wikistore", email: str = "wikistore@localhost"):
        self._drepo = dulwich_repo
        self._identity = f"{author} <{email}>".encode()

    def __repr__(self) -> str:
        return f"Repository({self.path!r})"

    @classmethod
    def open(
        cls,
        path: str | os.PathLike[str],
        *,
        create: bool = True,
        author: str = "wikistore",
        email: str = "wikistore@localhost",
    ) -> Repository:
        """Open or create a bare git repository.

        Args:
            path: Directory of the bare repository.
            create: If True (default), initialise the repository when the
                    directory doesn't exist or is empty.  If False, raise
                    FileNotFoundError for a missing directory instead.
            author: Author and committer name for new commits.
            email: Author and committer email for new commits.

        Raises:
            FileNotFoundError: *path* is missing and *create* is False.
            StoreError: *path* is a non-empty directory that is not a git
                repository.
        """
        path = _FsPath(path)

        empty_dir = path.is_dir() and not any(path.iterdir())
        if path.exists() and not (create and empty_dir):
            try:
                drepo = _DRepo(str(path))
            except NotGitRepository as exc:
                raise StoreError(f"Not a git repository: {path}") from exc
            return cls(drepo, author, email)

        if not create:
            raise FileNotFoundError(f"Repository not found: {path}")

        with _store_errors("init"):
            drepo = _DRepo.init_bare(str(path), mkdir=not path.exists())
        logger.debug("Initialized bare repository at %s", path)
        return cls(drepo, author, email)

    @property
    def path(self) -> str:
        """Filesystem path of the bare repository."""
        return self._drepo.path

    @property
    def author_name(self) -> str:
        return _split_identity(self._identity)[0]

    @property
    def author_email(self) -> str:
        return _split_identity(self._identity)[1]

    def close(self) -> None:
        """Release file handles held by the underlying object store."""
        self._drepo.close()

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # --- Locking ---

    @contextmanager
    def lock(self):
        """Serialize HEAD read-modify-write sequences with other writers."""
        with repo_lock(self.path):
            yield

    # --- Objects ---

    def get_object(self, sha: bytes) -> ShaFile:
        """Return the stored object with hex *sha*.

        Raises:
            StoreError: If the object is missing or unreadable.
        """
        with _store_errors("read"):
            return self._drepo.object_store[sha]

    def add_object(self, obj: ShaFile) -> None:
        with _store_errors("write"):
            self._drepo.object_store.add_object(obj)

    def contains(self, sha: bytes) -> bool:
        return sha in self._drepo.object_store

    @staticmethod
    def blob_id(data: bytes) -> bytes:
        """Return the sha *data* would be stored under, without storing it."""
        return _DBlob.from_string(data).id

    def write_blob(self, data: bytes) -> bytes:
        """Store *data* as a blob and return its sha."""
        blob = _DBlob.from_string(data)
        self.add_object(blob)
        return blob.id

    def tree_builder(self, seed: _DTree | None = None) -> TreeBuilder:
        """Return a builder pre-filled with the entries of *seed* (if any)."""
        return TreeBuilder(self, seed)

    # --- HEAD ---

    def _read_head(self) -> bytes | None:
        with _store_errors("read HEAD"):
            try:
                return self._drepo.refs[HEAD]
            except KeyError:
                return None

    def current_commit_id(self) -> bytes:
        """Return the sha of the HEAD commit, creating the root commit if HEAD is unborn."""
        sha = self._read_head()
        if sha is not None:
            return sha
        with self.lock():
            sha = self._read_head()
            if sha is None:
                sha = self._create_root_commit()
        return sha

    def _create_root_commit(self) -> bytes:
        tree_sha = self.tree_builder().write()
        commit = self._make_commit(tree_sha, [], ROOT_COMMIT_MESSAGE)
        self.add_object(commit)
        with _store_errors("create HEAD"):
            created = self._drepo.refs.add_if_new(
                HEAD, commit.id, committer=self._identity,
                message=f"commit (initial): {ROOT_COMMIT_MESSAGE}".encode(),
            )
        if not created:
            raise StaleHeadError("HEAD was created concurrently")
        logger.debug("Created root commit %s", commit.id.decode())
        return commit.id

    def current_commit(self) -> _DCommit:
        return self.get_object(self.current_commit_id())

    def current_root_tree(self) -> _DTree:
        """Return the root tree of the HEAD snapshot."""
        return self.get_object(self.current_commit().tree)

    def _make_commit(self, tree: bytes, parents: list[bytes], message: str) -> _DCommit:
        c = _DCommit()
        c.tree = tree
        c.parents = parents
        c.author = c.committer = self._identity
        now = int(_time.time())
        c.author_time = c.commit_time = now
        c.author_timezone = c.commit_timezone = 0
        msg = message.encode("utf-8")
        if not msg.endswith(b"\n"):
            msg += b"\n"
        c.message = msg
        c.encoding = b"UTF-8"
        return c

    def commit(self, parent: bytes, tree: bytes, message: str) -> bytes:
        """Create a commit of *tree* on top of *parent* and advance HEAD to it.

        The HEAD update is a compare-and-swap against *parent*; callers that
        read *parent* should hold :meth:`lock` until this returns.

        Raises:
            StaleHeadError: HEAD no longer points at *parent*.
        """
        c = self._make_commit(tree, [parent], message)
        self.add_object(c)
        first_line = message.splitlines()[0] if message else ""
        with _store_errors("update HEAD"):
            moved = self._drepo.refs.set_if_equals(
                HEAD, parent, c.id, committer=self._identity,
                message=f"commit: {first_line}".encode(),
            )
        if not moved:
            raise StaleHeadError("HEAD has advanced since the snapshot was read")
        logger.debug("Committed %s on top of %s", c.id.decode(), parent.decode())
        return c.id

    # --- History ---

    def _snapshot(self, commit: _DCommit) -> Snapshot:
        name, email = _split_identity(commit.author)
        return Snapshot(
            commit_hash=commit.id.decode(),
            tree_hash=commit.tree.decode(),
            parent_hash=commit.parents[0].decode() if commit.parents else None,
            message=commit.message.decode("utf-8", errors="replace").rstrip("\n"),
            author_name=name,
            author_email=email,
            time=datetime.fromtimestamp(commit.commit_time, tz=timezone.utc),
        )

    def head(self) -> Snapshot:
        """Return the :class:`Snapshot` HEAD points at."""
        return self._snapshot(self.current_commit())

    def log(self) -> Iterator[Snapshot]:
        """Yield snapshots from HEAD back to the root commit, newest first."""
        commit = self.current_commit()
        while True:
            yield self._snapshot(commit)
            if not commit.parents:
                return
            commit = self.get_object(commit.parents[0])

    # --- Items ---

    def item(self, path: Path | bytes | str = b"") -> Item:
        """Return an :class:`~wikistore.item.Item` for *path* in this repository."""
        from .item import Item
        return Item(self, path)
