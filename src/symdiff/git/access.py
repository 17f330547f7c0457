"""Repository access layer - owns pygit2.Repository and exposes read-only facts."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pygit2

from symdiff.git.errors import GitError, NotARepositoryError, RefNotFoundError

SORT_TIME = pygit2.GIT_SORT_TIME


@dataclass(frozen=True, slots=True)
class CommitSummary:
    """Commit facts surfaced to baseline pickers."""

    sha: str
    message: str
    date: str  # ISO-8601, UTC offset of the committer


@dataclass(frozen=True, slots=True)
class WorktreeEntry:
    path: str
    name: str
    branch: str | None
    is_main: bool


class RepoAccess:
    """Owns pygit2.Repository and provides normalized read access to repo state."""

    def __init__(self, repo_path: Path | str) -> None:
        self._path = Path(repo_path)
        try:
            self._repo = pygit2.Repository(str(self._path))
        except pygit2.GitError as e:
            raise NotARepositoryError(str(self._path)) from e

    @property
    def repo(self) -> pygit2.Repository:
        return self._repo

    @property
    def path(self) -> Path:
        return Path(self._repo.workdir) if self._repo.workdir else self._path

    @property
    def is_unborn(self) -> bool:
        return self._repo.head_is_unborn

    def current_branch_name(self) -> str | None:
        if self.is_unborn or self._repo.head_is_detached:
            return None
        return self._repo.head.shorthand

    # =========================================================================
    # Resolution Helpers
    # =========================================================================

    def resolve_ref_oid(self, ref: str) -> pygit2.Oid:
        try:
            obj, _ = self._repo.resolve_refish(ref)
            return obj.id
        except (pygit2.GitError, KeyError, ValueError) as e:
            raise RefNotFoundError(ref) from e

    def resolve_commit(self, ref: str) -> pygit2.Commit:
        obj: pygit2.Object | None = self._repo.get(self.resolve_ref_oid(ref))
        if isinstance(obj, pygit2.Tag):
            obj = obj.peel(pygit2.Commit)  # type: ignore[assignment]
        if not isinstance(obj, pygit2.Commit):
            raise RefNotFoundError(f"{ref} is not a commit")
        return obj

    def normalize_path(self, path: str | Path) -> str:
        p = Path(path)
        if p.is_absolute():
            with contextlib.suppress(ValueError):
                p = p.relative_to(self.path)
        return p.as_posix()

    # =========================================================================
    # Tree Access
    # =========================================================================

    def read_blob(self, ref: str, path: str | Path) -> bytes | None:
        """Raw blob bytes at ref:path, or None if the path is not a file there."""
        commit = self.resolve_commit(ref)
        try:
            entry = commit.tree[self.normalize_path(path)]
        except KeyError:
            return None
        blob = self._repo[entry.id]
        if not isinstance(blob, pygit2.Blob):
            return None
        return blob.data

    def iter_tree_files(self, ref: str) -> Iterator[str]:
        """Yield every blob path in the commit tree at ref, slash-separated."""
        yield from self._walk_tree(self.resolve_commit(ref).tree, "")

    def _walk_tree(self, tree: pygit2.Tree, prefix: str) -> Iterator[str]:
        for entry in tree:
            name = f"{prefix}{entry.name}"
            if entry.type_str == "tree":
                subtree = self._repo[entry.id]
                if isinstance(subtree, pygit2.Tree):
                    yield from self._walk_tree(subtree, f"{name}/")
            elif entry.type_str == "blob":
                yield name

    def index_paths(self) -> list[str]:
        """Paths tracked in this repository's index (git ls-files)."""
        index = self._repo.index
        index.read()
        return [entry.path for entry in index]

    # =========================================================================
    # History and Branches
    # =========================================================================

    def recent_commits(self, count: int) -> list[CommitSummary]:
        if self.is_unborn or count <= 0:
            return []
        start = self._repo.head.target
        result: list[CommitSummary] = []
        for commit in self._repo.walk(start, SORT_TIME):  # type: ignore[arg-type]
            result.append(_commit_summary(commit))
            if len(result) >= count:
                break
        return result

    def local_branch_names(self) -> list[str]:
        return sorted(self._repo.branches.local)

    def has_local_branch(self, name: str) -> bool:
        return self._repo.branches.local.get(name) is not None

    # =========================================================================
    # Worktrees
    # =========================================================================

    def worktrees(self) -> list[WorktreeEntry]:
        """Main worktree first, then linked worktrees in name order."""
        result: list[WorktreeEntry] = []
        if self._repo.workdir:
            result.append(
                WorktreeEntry(
                    path=str(Path(self._repo.workdir)),
                    name=Path(self._repo.workdir).name,
                    branch=self.current_branch_name(),
                    is_main=not self.is_worktree(),
                )
            )
        for name in sorted(self._repo.list_worktrees()):
            try:
                wt = self._repo.lookup_worktree(name)
                wt_path = Path(wt.path)
            except (pygit2.GitError, KeyError):
                continue
            if any(e.path == str(wt_path) for e in result):
                continue
            result.append(
                WorktreeEntry(
                    path=str(wt_path),
                    name=name,
                    branch=_branch_at(wt_path),
                    is_main=False,
                )
            )
        return result

    def is_worktree(self) -> bool:
        """True if this repository is a linked worktree, not the main checkout.

        A linked worktree's git dir lives at ``<common>/worktrees/<name>``.
        """
        return Path(self._repo.path).parent.name == "worktrees"


def _commit_summary(commit: pygit2.Commit) -> CommitSummary:
    tz = timezone(timedelta(minutes=commit.commit_time_offset))
    date = datetime.fromtimestamp(commit.commit_time, tz=tz).isoformat()
    return CommitSummary(sha=str(commit.id), message=commit.message.strip(), date=date)


def _branch_at(worktree_path: Path) -> str | None:
    try:
        repo = RepoAccess(worktree_path)
    except GitError:
        return None
    return repo.current_branch_name()
