"""Test fixtures for git access."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pygit2
import pytest

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def unborn_repo(tmp_path: Path) -> Generator[pygit2.Repository, None, None]:
    """Freshly initialized repository without commits."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    yield pygit2.init_repository(str(repo_path), initial_head="main")


@pytest.fixture
def temp_repo(unborn_repo: pygit2.Repository) -> pygit2.Repository:
    """Repository with one commit on main and a lightweight v1 tag."""
    repo = unborn_repo
    workdir = Path(repo.workdir)
    (workdir / "pkg").mkdir()
    (workdir / "pkg" / "mod.py").write_text("def f():\n    return 1\n")
    (workdir / "README.md").write_text("# Test Repo\n")
    repo.index.add("README.md")
    repo.index.add("pkg/mod.py")
    repo.index.write()
    tree = repo.index.write_tree()
    sig = pygit2.Signature("Test User", "test@example.com", 1_700_000_000, 120)
    oid = repo.create_commit("refs/heads/main", sig, sig, "Initial commit\n", tree, [])
    repo.set_head("refs/heads/main")
    repo.references.create("refs/tags/v1", oid)
    return repo
