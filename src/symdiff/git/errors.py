"""Git access error types.

These never cross the baseline-source boundary: sources catch them and
report absence instead.
"""


class GitError(Exception):
    """Repository read failed; baseline sources report the file as absent."""


class NotARepositoryError(GitError):
    """Workspace or worktree path has no git repository to read baselines from."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Not a git repository: {path}")
        self.path = path


class RefNotFoundError(GitError):
    """Commit or branch baseline reference does not resolve in this repository."""

    def __init__(self, ref: str) -> None:
        super().__init__(f"Reference not found: {ref}")
        self.ref = ref
