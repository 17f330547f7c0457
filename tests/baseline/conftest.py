"""Test fixtures for baseline sources."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pygit2
import pytest

if TYPE_CHECKING:
    from collections.abc import Generator

BASE_TIME = 1_700_000_000

INITIAL_APP = "class App {\n}\n"
UPDATED_APP = "class App {\n  method run() {\n  }\n}\n"
BINARY_BLOB = b"\x89PNG\r\n\x1a\n\xff\x00"


def commit_files(
    repo: pygit2.Repository,
    files: dict[str, str | bytes],
    message: str,
    offset: int = 0,
) -> str:
    """Write ``files`` into the workdir, stage them and commit on HEAD."""
    workdir = Path(repo.workdir)
    for rel, content in files.items():
        target = workdir / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)
        repo.index.add(rel)
    repo.index.write()
    tree = repo.index.write_tree()
    sig = pygit2.Signature("Test User", "test@example.com", BASE_TIME + offset, 0)
    if repo.head_is_unborn:
        oid = repo.create_commit("refs/heads/main", sig, sig, message, tree, [])
        repo.set_head("refs/heads/main")
    else:
        oid = repo.create_commit("HEAD", sig, sig, message, tree, [repo.head.target])
    return str(oid)


@pytest.fixture
def temp_repo(tmp_path: Path) -> Generator[pygit2.Repository, None, None]:
    """Repository with a single commit on main."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()

    repo = pygit2.init_repository(str(repo_path), initial_head="main")
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"

    commit_files(repo, {"README.md": "# Test Repo\n", "src/app.ts": INITIAL_APP}, "Initial commit")
    yield repo


@pytest.fixture
def history_repo(temp_repo: pygit2.Repository) -> tuple[pygit2.Repository, list[str]]:
    """Repository with two commits; returns the repo and SHAs oldest first."""
    first = str(temp_repo.head.target)
    second = commit_files(
        temp_repo,
        {
            "src/app.ts": UPDATED_APP,
            "src/util/helper.ts": "export function helper() {\n}\n",
            "assets/logo.png": BINARY_BLOB,
        },
        "Add run method",
        offset=60,
    )
    return temp_repo, [first, second]


@pytest.fixture
def repo_root(temp_repo: pygit2.Repository) -> Path:
    return Path(temp_repo.workdir)
