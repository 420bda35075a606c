"""Tests for Item resolution and queries."""

import os

import pytest

from wikistore import (
    Absent,
    IsDirError,
    IsFileError,
    Item,
    NoParentError,
    NotFoundError,
    ParentIsFileError,
    Path,
    ResolvedBlob,
    ResolvedTree,
    StoreError,
)
from wikistore.filetype import Filetype


@pytest.fixture
def populated(repo):
    """Repo with index.md, dir/file.md and a/b/c.md (empty)."""
    repo.item("index.md").edit(b"hello", "index")
    repo.item("dir/file.md").edit(b"nested", "nested")
    repo.item("a/b/c.md").edit(b"", "empty")
    return repo


class TestRoot:
    def test_root_always_exists(self, repo):
        root = repo.item(Path())
        assert root.exists()
        assert root.is_dir()
        assert not root.is_file()

    def test_root_of_populated_repo(self, populated):
        root = populated.item("")
        assert root.is_dir()
        assert not root.is_file()

    def test_root_content_is_dir(self, repo):
        with pytest.raises(IsDirError):
            repo.item("").content()

    def test_root_has_no_parent(self, repo):
        with pytest.raises(NoParentError):
            repo.item("").parent()

    def test_root_can_exist(self, repo):
        assert repo.item("").can_exist()


class TestResolve:
    def test_blob(self, populated):
        found = populated.item("index.md").resolve()
        assert isinstance(found, ResolvedBlob)
        assert found.blob.data == b"hello"

    def test_tree(self, populated):
        assert isinstance(populated.item("dir").resolve(), ResolvedTree)

    def test_absent(self, populated):
        assert populated.item("missing.md").resolve() == Absent()

    def test_absent_below_missing_dir(self, populated):
        assert populated.item("nope/deeper/x.md").resolve() == Absent()

    def test_absent_below_file_names_the_file(self, populated):
        found = populated.item("a/b/c.md/d/e.md").resolve()
        assert isinstance(found, Absent)
        assert found.blocked_by == Path("a/b/c.md")

    def test_names_are_case_sensitive(self, populated):
        assert not populated.item("INDEX.md").exists()

    def test_binary_filenames(self, repo):
        repo.item(b"bin/\xff\xfe.dat").edit(b"x", "binary name")
        assert repo.item(b"bin/\xff\xfe.dat").content() == b"x"
        assert [c.name for c in repo.item("bin").list()] == [b"\xff\xfe.dat"]


class TestContent:
    def test_reads_file(self, populated):
        assert populated.item("dir/file.md").content() == b"nested"

    def test_missing(self, repo):
        with pytest.raises(NotFoundError):
            repo.item("index.md").content()

    def test_missing_is_file_not_found(self, repo):
        with pytest.raises(FileNotFoundError):
            repo.item("index.md").content()

    def test_directory(self, populated):
        with pytest.raises(IsDirError):
            populated.item("dir").content()

    def test_below_file(self, populated):
        with pytest.raises(ParentIsFileError) as excinfo:
            populated.item("a/b/c.md/d.md").content()
        assert excinfo.value.blocked_by == "a/b/c.md"

    def test_below_file_is_not_found(self, populated):
        with pytest.raises(NotFoundError):
            populated.item("index.md/x").content()


class TestList:
    def test_root_listing(self, repo):
        repo.item("dir/file.md").edit(b"x", "add")
        children = repo.item("").list()
        assert len(children) == 1
        assert children[0].path == Path("dir")
        assert children[0].is_dir()

    def test_dir_listing(self, repo):
        repo.item("dir/file.md").edit(b"x", "add")
        children = repo.item("dir").list()
        assert len(children) == 1
        assert children[0].path == Path("dir/file.md")
        assert children[0].name == b"file.md"
        assert children[0].is_file()

    def test_multiple_entries(self, populated):
        names = sorted(c.name for c in populated.item("").list())
        assert names == [b"a", b"dir", b"index.md"]

    def test_empty_root(self, repo):
        assert repo.item("").list() == []

    def test_file_raises(self, populated):
        with pytest.raises(IsFileError):
            populated.item("index.md").list()

    def test_missing_raises(self, repo):
        with pytest.raises(NotFoundError):
            repo.item("nope").list()


class TestExists:
    def test_file(self, populated):
        assert populated.item("index.md").exists()

    def test_dir(self, populated):
        assert populated.item("a/b").exists()

    def test_missing(self, populated):
        assert not populated.item("missing").exists()

    def test_below_file(self, populated):
        assert not populated.item("index.md/child").exists()


class TestIsDirIsFile:
    def test_file(self, populated):
        item = populated.item("index.md")
        assert item.is_file()
        assert not item.is_dir()

    def test_dir(self, populated):
        item = populated.item("a")
        assert item.is_dir()
        assert not item.is_file()

    def test_missing_raises(self, repo):
        with pytest.raises(NotFoundError):
            repo.item("nope").is_dir()
        with pytest.raises(NotFoundError):
            repo.item("nope").is_file()


class TestCanExist:
    def test_top_level_always(self, populated):
        assert populated.item("index.md").can_exist()
        assert populated.item("new.md").can_exist()

    def test_existing_nested_file(self, populated):
        assert populated.item("a/b/c.md").can_exist()

    def test_missing_ancestors(self, repo):
        assert repo.item("x/y/z.md").can_exist()

    def test_below_file(self, populated):
        assert not populated.item("a/b/c.md/d.md").can_exist()

    def test_deep_below_file(self, populated):
        assert not populated.item("index.md/x/y/z").can_exist()

    @pytest.mark.parametrize("raw", [
        "a/b/c.md/d.md",
        "a/b/c.md/x/y",
        "index.md/z",
        "dir/file.md/q",
        "a/x",
        "a/b/new.md",
        "fresh/dir/file",
        "dir/other.md",
    ])
    def test_false_iff_an_ancestor_is_a_file(self, populated, raw):
        path = Path(raw)
        ancestor_is_file = False
        ancestor = path.parent()
        while ancestor.depth() >= 1:
            item = populated.item(ancestor)
            if item.exists() and item.is_file():
                ancestor_is_file = True
            ancestor = ancestor.parent()
        assert populated.item(path).can_exist() is not ancestor_is_file


class TestItemMisc:
    def test_path_is_a_copy(self, repo):
        item = repo.item("a/b")
        path = item.path
        path.push("c")
        assert item.path == Path("a/b")

    def test_item_does_not_share_callers_path(self, repo):
        path = Path("a")
        item = Item(repo, path)
        path.push("b")
        assert item.path == Path("a")

    def test_parent(self, repo):
        assert repo.item("a/b").parent() == repo.item("a")

    def test_repr(self, repo):
        assert repr(repo.item("my page.md")) == "Item('my%20page.md')"

    def test_filetype(self, repo):
        assert repo.item("index.md").filetype() is Filetype.MARKDOWN
        assert repo.item("notes.txt").filetype() is Filetype.RAW

    def test_queries_see_later_commits(self, repo):
        item = repo.item("later.md")
        assert not item.exists()
        repo.item("later.md").edit(b"now", "later")
        assert item.content() == b"now"


class TestStoreFailures:
    @pytest.fixture
    def damaged(self, populated):
        """Delete the loose object of the ``dir`` tree."""
        _mode, sha = populated.current_root_tree()[b"dir"]
        hexsha = sha.decode()
        os.remove(os.path.join(populated.path, "objects", hexsha[:2], hexsha[2:]))
        return populated

    def test_exists_propagates(self, damaged):
        with pytest.raises(StoreError):
            damaged.item("dir/file.md").exists()

    def test_can_exist_propagates(self, damaged):
        with pytest.raises(StoreError):
            damaged.item("dir/file.md/x").can_exist()

    def test_content_propagates(self, damaged):
        with pytest.raises(StoreError):
            damaged.item("dir/file.md").content()

    def test_unaffected_paths_still_resolve(self, damaged):
        assert damaged.item("index.md").content() == b"hello"
