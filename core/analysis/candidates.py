"""
Commit message candidate generation and selection.
"""
from enum import Enum
from typing import List, Optional, Sequence

from core.contracts.models import CandidateSet, FileCategory, Operation, ScoredFile
from utils.logger import logger

NO_FILES_REASONING = "No files to analyze"
DEFAULT_COMPONENT = "component"

ACTION_VERBS = {
    Operation.ADDED: "Add",
    Operation.MODIFIED: "Update",
    Operation.DELETED: "Remove",
    Operation.RENAMED: "Rename",
}
COMPONENT_NOUNS = {
    Operation.ADDED: "implementation",
    Operation.MODIFIED: "updates",
    Operation.DELETED: "removal",
}


class CandidateStyle(str, Enum):
    ACTION = "action"  # "Add authentication"
    COMPONENT = "component"  # "auth: implementation"
    IMPACT = "impact"  # "New feature for auth"


def extract_component_name(path: str) -> str:
    """Returns the file name without its extension(s): ``src/auth.rs`` -> ``auth``."""
    filename = path.rstrip("/").rsplit("/", 1)[-1]
    name_parts = filename.split(".")
    component = name_parts[0] if len(name_parts) > 1 and name_parts[0] else filename
    return component or DEFAULT_COMPONENT


def _impact_kind(ranked: Sequence[ScoredFile]) -> str:
    if any(f.category is FileCategory.SOURCE and f.operation is Operation.ADDED for f in ranked):
        return "feature"
    if any(f.category is FileCategory.TEST for f in ranked):
        return "test"
    if any(f.category is FileCategory.CONFIG for f in ranked):
        return "configuration"
    return "update"


def _action_message(primary: ScoredFile, component: str) -> str:
    return f"{ACTION_VERBS.get(primary.operation, 'Change')} {component}"


def _component_message(primary: ScoredFile, component: str) -> str:
    return f"{component}: {COMPONENT_NOUNS.get(primary.operation, 'changes')}"


def _impact_message(ranked: Sequence[ScoredFile], component: str) -> str:
    kind = _impact_kind(ranked)
    lead = "New" if kind == "feature" else "Update"
    return f"{lead} {kind} for {component}"


def _reasoning(ranked: Sequence[ScoredFile], component: str) -> str:
    primary = ranked[0]
    total_lines = sum(f.total_lines for f in ranked)
    return (
        f"{primary.category.value.capitalize()} changes have highest impact ({primary.impact_score:.2f}) "
        f"affecting {component} functionality. "
        f"Total {len(ranked)} files changed with {total_lines} lines modified."
    )


def generate_candidates(ranked: Sequence[ScoredFile], max_length: int) -> CandidateSet:
    """
    Builds the action, component and impact style candidates for the
    highest-ranked file.

    Args:
        ranked: Scored files, highest impact first.
        max_length: Hard character limit applied to every candidate.

    Returns:
        Three candidates in CandidateStyle order, or none when ``ranked`` is empty.
    """
    logger.debug(f"Generating commit messages (max length: {max_length})")
    if not ranked:
        return CandidateSet(candidates=[], reasoning=NO_FILES_REASONING)

    primary = ranked[0]
    component = extract_component_name(primary.path)
    candidates = [
        _action_message(primary, component),
        _component_message(primary, component),
        _impact_message(ranked, component),
    ]
    return CandidateSet(
        candidates=[candidate[:max_length] for candidate in candidates],
        reasoning=_reasoning(ranked, component),
    )


def select_best_candidate(candidate_set: CandidateSet) -> Optional[str]:
    """Picks the action-style candidate."""
    candidates: List[str] = candidate_set.candidates
    return candidates[0] if candidates else None
