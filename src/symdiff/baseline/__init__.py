"""Baselines: what current source is compared against, and where to read it."""

from symdiff.baseline.models import (
    Baseline,
    BaselineKind,
    BaselineMetadata,
    BaselineWorktree,
    SnapshotInfo,
)
from symdiff.baseline.sources import (
    BaselineResolver,
    BaselineSource,
    GitBaselineSource,
    SnapshotBaselineSource,
    WorkingTreeBaselineSource,
    WorktreeBaselineSource,
)

__all__ = [
    # Models
    "Baseline",
    "BaselineKind",
    "BaselineMetadata",
    "BaselineWorktree",
    "SnapshotInfo",
    # Sources
    "BaselineSource",
    "BaselineResolver",
    "GitBaselineSource",
    "SnapshotBaselineSource",
    "WorktreeBaselineSource",
    "WorkingTreeBaselineSource",
]
