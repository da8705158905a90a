import subprocess
from typing import List, Sequence

from utils.errors import CollectorError, CommitCraftException


def _run_git(args: List[str], allowed_codes: Sequence[int] = (0,)) -> subprocess.CompletedProcess:
    """
    Runs a git command and returns the completed process.

    Raises:
        CollectorError: If git is missing or exits with an unexpected code.
    """
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            encoding="utf-8",
        )
    except FileNotFoundError:
        raise CollectorError("Git is not installed or not in PATH.")

    if result.returncode not in allowed_codes:
        raise CollectorError(f"Failed to run 'git {' '.join(args)}': {result.stderr.strip()}")
    return result


def is_git_repository() -> bool:
    """Checks if the current directory is a Git repository."""
    try:
        return _run_git(["rev-parse", "--is-inside-work-tree"]).stdout.strip() == "true"
    except CollectorError:
        return False


def get_staged_diff() -> str:
    """Retrieves the staged changes (what is about to be committed)."""
    return _run_git(["diff", "--cached"], allowed_codes=(0, 1)).stdout


def get_worktree_diff() -> str:
    """Retrieves the unstaged changes in the working tree."""
    return _run_git(["diff"], allowed_codes=(0, 1)).stdout


def get_commit_diff(ref: str) -> str:
    """Retrieves a historical commit, header and patch, as printed by ``git show``."""
    return _run_git(["show", "--format=commit %H%n%n    %s%n", ref]).stdout


def commit(message: str) -> None:
    """
    Creates a Git commit with the given message.

    Raises:
        CommitCraftException: If the git commit command fails.
    """
    try:
        _run_git(["commit", "-m", message])
    except CollectorError as e:
        raise CommitCraftException(f"Failed to create commit: {e}") from e
