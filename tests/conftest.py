"""Shared fixtures for wikistore tests."""

import pytest
from click.testing import CliRunner

from wikistore import Repository


@pytest.fixture
def repo(tmp_path):
    """A fresh repository with an unborn HEAD."""
    r = Repository.open(tmp_path / "test.git")
    yield r
    r.close()


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def repo_path(tmp_path):
    """Return a path to a not-yet-created repo."""
    return str(tmp_path / "test.git")
