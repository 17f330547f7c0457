"""Read-only git access used by the commit, branch and worktree baselines."""

from symdiff.git.access import CommitSummary, RepoAccess, WorktreeEntry
from symdiff.git.errors import GitError, NotARepositoryError, RefNotFoundError

__all__ = [
    # Access
    "RepoAccess",
    "CommitSummary",
    "WorktreeEntry",
    # Errors
    "GitError",
    "NotARepositoryError",
    "RefNotFoundError",
]
