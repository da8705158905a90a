from typing import Any, Mapping

from core.contracts.collector import Collector
from core.registry import diff_source_registry
from utils.errors import CollectorError
from utils.git import get_commit_diff, get_staged_diff, get_worktree_diff
from utils.logger import logger


class _GitDiffCollector(Collector):
    """Shared collect() for the git-backed diff sources."""

    description = "git diff"

    def _read(self) -> str:
        raise NotImplementedError

    def collect(self) -> Mapping[str, Any]:
        """
        Returns:
            A mapping with the raw diff under ``diff``.

        Raises:
            CollectorError: If the git command fails.
        """
        try:
            diff = self._read()
        except CollectorError:
            raise
        except Exception as e:
            raise CollectorError(f"Failed to collect {self.description}: {e}") from e
        logger.debug(f"Collected {len(diff)} characters from {self.description}")
        return {"diff": diff}


@diff_source_registry.register("staged")
class StagedDiffCollector(_GitDiffCollector):
    """The index: what the next ``git commit`` will record."""

    description = "git diff --cached"

    def _read(self) -> str:
        return get_staged_diff()


@diff_source_registry.register("worktree")
class WorktreeDiffCollector(_GitDiffCollector):
    """Unstaged working tree changes."""

    description = "git diff"

    def _read(self) -> str:
        return get_worktree_diff()


@diff_source_registry.register("commit")
class CommitDiffCollector(_GitDiffCollector):
    """An existing commit, for re-describing history."""

    def __init__(self, ref: str = "HEAD"):
        if not ref:
            raise ValueError("A commit reference is required.")
        self.ref = ref
        self.description = f"git show {ref}"

    def _read(self) -> str:
        return get_commit_diff(self.ref)
