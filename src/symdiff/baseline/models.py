"""Baseline value objects.

A baseline names the reference point that current source is compared
against. Baselines are immutable; switching baselines means replacing the
whole object, which is what invalidates the diff caches bound to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class BaselineKind(str, Enum):
    """Where baseline content is read from."""

    COMMIT = "commit"
    BRANCH = "branch"
    SNAPSHOT = "snapshot"
    WORKTREE = "worktree"
    WORKING_TREE = "working-tree"


@dataclass(frozen=True, slots=True)
class BaselineWorktree:
    """A checkout of the same repository in another directory."""

    path: str
    name: str
    branch: str | None = None
    is_main: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "name": self.name,
            "branch": self.branch,
            "is_main": self.is_main,
        }


@dataclass(frozen=True, slots=True)
class BaselineMetadata:
    commit_message: str | None = None
    author: str | None = None
    snapshot_note: str | None = None
    file_count: int | None = None
    agent_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "commit_message": self.commit_message,
            "author": self.author,
            "snapshot_note": self.snapshot_note,
            "file_count": self.file_count,
            "agent_id": self.agent_id,
        }


@dataclass(frozen=True, slots=True)
class Baseline:
    """Reference point for structural comparison.

    ``reference`` is a commit SHA or refish, a branch name, a snapshot id,
    or a worktree path depending on ``kind``.
    """

    kind: BaselineKind
    reference: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    label: str | None = None
    worktree: BaselineWorktree | None = None
    metadata: BaselineMetadata | None = None

    @property
    def is_comparable(self) -> bool:
        """False for the working-tree sentinel, which compares against itself."""
        return self.kind is not BaselineKind.WORKING_TREE

    @property
    def display_label(self) -> str:
        return self.label or f"{self.kind.value}:{self.reference}"

    @classmethod
    def commit(cls, sha: str, label: str | None = None) -> Baseline:
        return cls(kind=BaselineKind.COMMIT, reference=sha, label=label)

    @classmethod
    def branch(cls, name: str, label: str | None = None) -> Baseline:
        return cls(kind=BaselineKind.BRANCH, reference=name, label=label)

    @classmethod
    def snapshot(cls, snapshot_id: str, label: str | None = None) -> Baseline:
        return cls(kind=BaselineKind.SNAPSHOT, reference=snapshot_id, label=label)

    @classmethod
    def from_worktree(cls, worktree: BaselineWorktree) -> Baseline:
        return cls(
            kind=BaselineKind.WORKTREE,
            reference=worktree.path,
            label=worktree.name,
            worktree=worktree,
        )

    @classmethod
    def working_tree(cls) -> Baseline:
        return cls(kind=BaselineKind.WORKING_TREE, reference="", label="Working tree")

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "reference": self.reference,
            "timestamp": self.timestamp.isoformat(),
            "label": self.label,
            "worktree": self.worktree.to_dict() if self.worktree else None,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }


@dataclass(frozen=True, slots=True)
class SnapshotInfo:
    """Contents of a snapshot's ``.snapshot-meta.json`` sidecar."""

    id: str
    timestamp: datetime
    label: str | None = None
    file_count: int = 0

    def to_baseline(self) -> Baseline:
        return Baseline(
            kind=BaselineKind.SNAPSHOT,
            reference=self.id,
            timestamp=self.timestamp,
            label=self.label,
            metadata=BaselineMetadata(snapshot_note=self.label, file_count=self.file_count),
        )
