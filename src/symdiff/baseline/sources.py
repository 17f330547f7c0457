"""Baseline content sources.

Each source answers three questions about a baseline: what is the content
of a file, does a file exist, and which files are there. Sources never
raise for absence. A missing file, a bad ref, a broken repository or an
unreadable snapshot all come back as None / False / []; the diff engine
reads "missing at baseline" as *added*, not as a failure.

Four sources:
- GitBaselineSource: commit and branch baselines, via pygit2
- SnapshotBaselineSource: directory snapshots under the snapshot root
- WorktreeBaselineSource: sibling worktrees of the same repository
- WorkingTreeBaselineSource: the "no baseline" sentinel
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from symdiff.baseline.models import (
    Baseline,
    BaselineKind,
    BaselineMetadata,
    BaselineWorktree,
    SnapshotInfo,
)
from symdiff.git import CommitSummary, GitError, RepoAccess

log = structlog.get_logger(__name__)

SNAPSHOT_META_FILE = ".snapshot-meta.json"


@runtime_checkable
class BaselineSource(Protocol):
    """Read-only content and listing contract for one kind of baseline."""

    async def get_file_content(self, path: str, baseline: Baseline) -> str | None: ...

    async def file_exists(self, path: str, baseline: Baseline) -> bool: ...

    async def list_files(self, baseline: Baseline) -> list[str]: ...


def _relative_to_root(root: Path, path: str | Path) -> str:
    p = Path(path)
    if p.is_absolute():
        try:
            p = p.relative_to(root)
        except ValueError:
            return p.as_posix()
    return p.as_posix()


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


# ============================================================================
# Commit / branch
# ============================================================================


class GitBaselineSource:
    """Reads blobs from the commit a commit or branch baseline resolves to."""

    def __init__(self, repo_root: Path | str) -> None:
        self._root = Path(repo_root)
        self._access: RepoAccess | None = None

    def _repo(self) -> RepoAccess:
        if self._access is None:
            self._access = RepoAccess(self._root)
        return self._access

    async def get_file_content(self, path: str, baseline: Baseline) -> str | None:
        rel = _relative_to_root(self._root, path)
        try:
            data = self._repo().read_blob(baseline.reference, rel)
        except GitError as e:
            log.debug("git_baseline_read_failed", path=rel, ref=baseline.reference, error=str(e))
            return None
        if data is None:
            return None
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError:
            return None

    async def file_exists(self, path: str, baseline: Baseline) -> bool:
        return await self.get_file_content(path, baseline) is not None

    async def list_files(self, baseline: Baseline) -> list[str]:
        try:
            return list(self._repo().iter_tree_files(baseline.reference))
        except GitError as e:
            log.debug("git_baseline_list_failed", ref=baseline.reference, error=str(e))
            return []

    def default_baseline(self) -> Baseline | None:
        """HEAD~1 if it exists, else the ``main`` branch, else ``master``."""
        try:
            repo = self._repo()
        except GitError:
            return None
        try:
            commit = repo.resolve_commit("HEAD~1")
        except GitError:
            pass
        else:
            return Baseline(
                kind=BaselineKind.COMMIT,
                reference=str(commit.id),
                label="HEAD~1",
                metadata=BaselineMetadata(
                    commit_message=commit.message.strip(),
                    author=commit.author.name,
                ),
            )
        for name in ("main", "master"):
            if repo.has_local_branch(name):
                return Baseline.branch(name, label=name)
        return None

    def recent_commits(self, count: int = 10) -> list[CommitSummary]:
        try:
            return self._repo().recent_commits(count)
        except GitError:
            return []

    def branches(self) -> list[str]:
        try:
            return self._repo().local_branch_names()
        except GitError:
            return []


# ============================================================================
# Snapshot directories
# ============================================================================


class SnapshotBaselineSource:
    """Reads ``<snapshot_root>/<snapshot id>/<path>``.

    Snapshots are produced elsewhere; this source only reads them.
    """

    def __init__(
        self, workspace_root: Path | str, snapshot_dir: str = ".symdiff/snapshots"
    ) -> None:
        self._root = Path(workspace_root)
        snapshot_path = Path(snapshot_dir)
        self._snapshot_root = (
            snapshot_path if snapshot_path.is_absolute() else self._root / snapshot_path
        )

    @property
    def snapshot_root(self) -> Path:
        return self._snapshot_root

    def _snapshot_path(self, baseline: Baseline) -> Path:
        return self._snapshot_root / baseline.reference

    def _resolve(self, path: str, baseline: Baseline) -> Path | None:
        base = self._snapshot_path(baseline).resolve()
        target = (base / _relative_to_root(self._root, path)).resolve()
        if not target.is_relative_to(base):
            return None
        return target

    async def get_file_content(self, path: str, baseline: Baseline) -> str | None:
        target = self._resolve(path, baseline)
        if target is None or not target.is_file():
            return None
        return _read_text(target)

    async def file_exists(self, path: str, baseline: Baseline) -> bool:
        target = self._resolve(path, baseline)
        return target is not None and target.is_file()

    async def list_files(self, baseline: Baseline) -> list[str]:
        base = self._snapshot_path(baseline)
        if not base.is_dir():
            return []
        files: list[str] = []
        for p in base.rglob("*"):
            rel = p.relative_to(base)
            if any(part.startswith(".") for part in rel.parts):
                continue
            if p.is_file():
                files.append(rel.as_posix())
        return sorted(files)

    def list_snapshots(self) -> list[SnapshotInfo]:
        """Snapshots with a valid sidecar, newest first."""
        if not self._snapshot_root.is_dir():
            return []
        snapshots: list[SnapshotInfo] = []
        for entry in self._snapshot_root.iterdir():
            if not entry.is_dir():
                continue
            info = _read_snapshot_meta(entry / SNAPSHOT_META_FILE)
            if info is not None:
                snapshots.append(info)
        snapshots.sort(key=lambda s: s.timestamp, reverse=True)
        return snapshots


def _read_snapshot_meta(meta_path: Path) -> SnapshotInfo | None:
    try:
        raw = json.loads(meta_path.read_text(encoding="utf-8"))
        timestamp = _parse_timestamp(raw["timestamp"])
        return SnapshotInfo(
            id=str(raw["id"]),
            timestamp=timestamp,
            label=raw.get("label"),
            file_count=int(raw.get("fileCount", 0)),
        )
    except (OSError, ValueError, KeyError, TypeError) as e:
        log.debug("snapshot_meta_skipped", path=str(meta_path), error=str(e))
        return None


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat() rejects a trailing Z before 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# ============================================================================
# Sibling worktrees
# ============================================================================


class WorktreeBaselineSource:
    """Reads files from another checkout of the same repository."""

    def __init__(self, repo_root: Path | str) -> None:
        self._root = Path(repo_root)

    @staticmethod
    def _worktree_path(baseline: Baseline) -> Path:
        if baseline.worktree is not None:
            return Path(baseline.worktree.path)
        return Path(baseline.reference)

    async def get_file_content(self, path: str, baseline: Baseline) -> str | None:
        target = self._worktree_path(baseline) / _relative_to_root(self._root, path)
        if not target.is_file():
            return None
        return _read_text(target)

    async def file_exists(self, path: str, baseline: Baseline) -> bool:
        target = self._worktree_path(baseline) / _relative_to_root(self._root, path)
        return target.is_file()

    async def list_files(self, baseline: Baseline) -> list[str]:
        wt_path = self._worktree_path(baseline)
        try:
            return RepoAccess(wt_path).index_paths()
        except GitError as e:
            log.debug("worktree_list_failed", path=str(wt_path), error=str(e))
            return []

    def list_worktrees(self) -> list[BaselineWorktree]:
        try:
            entries = RepoAccess(self._root).worktrees()
        except GitError:
            return []
        return [
            BaselineWorktree(path=e.path, name=e.name, branch=e.branch, is_main=e.is_main)
            for e in entries
        ]


# ============================================================================
# Working tree sentinel
# ============================================================================


class WorkingTreeBaselineSource:
    """Comparing the working tree with itself: nothing exists at baseline."""

    async def get_file_content(self, path: str, baseline: Baseline) -> str | None:  # noqa: ARG002
        return None

    async def file_exists(self, path: str, baseline: Baseline) -> bool:  # noqa: ARG002
        return False

    async def list_files(self, baseline: Baseline) -> list[str]:  # noqa: ARG002
        return []


# ============================================================================
# Dispatch
# ============================================================================


class BaselineResolver:
    """Dispatches each request to the source registered for ``baseline.kind``."""

    def __init__(self, handlers: Mapping[BaselineKind, BaselineSource] | None = None) -> None:
        self._handlers: dict[BaselineKind, BaselineSource] = dict(handlers or {})

    @classmethod
    def for_workspace(
        cls, workspace_root: Path | str, snapshot_dir: str = ".symdiff/snapshots"
    ) -> BaselineResolver:
        git = GitBaselineSource(workspace_root)
        return cls(
            {
                BaselineKind.COMMIT: git,
                BaselineKind.BRANCH: git,
                BaselineKind.SNAPSHOT: SnapshotBaselineSource(workspace_root, snapshot_dir),
                BaselineKind.WORKTREE: WorktreeBaselineSource(workspace_root),
                BaselineKind.WORKING_TREE: WorkingTreeBaselineSource(),
            }
        )

    def register(self, kind: BaselineKind, source: BaselineSource) -> None:
        """Install or replace the handler for one baseline kind."""
        self._handlers[kind] = source

    def source_for(self, kind: BaselineKind) -> BaselineSource | None:
        return self._handlers.get(kind)

    def _handler(self, baseline: Baseline) -> BaselineSource | None:
        source = self._handlers.get(baseline.kind)
        if source is None:
            log.warning("baseline_kind_unhandled", kind=baseline.kind.value)
        return source

    async def get_file_content(self, path: str, baseline: Baseline) -> str | None:
        source = self._handler(baseline)
        return await source.get_file_content(path, baseline) if source else None

    async def file_exists(self, path: str, baseline: Baseline) -> bool:
        source = self._handler(baseline)
        return await source.file_exists(path, baseline) if source else False

    async def list_files(self, baseline: Baseline) -> list[str]:
        source = self._handler(baseline)
        return await source.list_files(baseline) if source else []
