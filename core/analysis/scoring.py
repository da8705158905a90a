"""
Impact scoring: ranks analyzed files by how much they matter to the commit.

score = clamp01(operation weight + category weight + line weight)

Source changes with many lines dominate; documentation and binary churn is
down-weighted so it never drives the headline message.
"""
from typing import Iterable, List, Optional, Union

from core.contracts.models import FileAnalysis, FileCategory, Operation, ScoredFile
from utils.logger import logger

OPERATION_WEIGHTS = {
    Operation.ADDED: 0.30,
    Operation.MODIFIED: 0.20,
    Operation.DELETED: 0.25,
    Operation.RENAMED: 0.10,
    Operation.BINARY: 0.05,
}
UNKNOWN_OPERATION_WEIGHT = 0.20

CATEGORY_WEIGHTS = {
    FileCategory.SOURCE: 0.40,
    FileCategory.BUILD: 0.30,
    FileCategory.CONFIG: 0.25,
    FileCategory.TEST: 0.20,
    FileCategory.DOCS: 0.10,
    FileCategory.BINARY: 0.05,
}

LINES_PER_FULL_WEIGHT = 100.0
LINE_WEIGHT_CAP = 0.30


def clamp01(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def operation_weight(operation: Union[Operation, str, None]) -> float:
    try:
        return OPERATION_WEIGHTS[Operation(operation)]
    except ValueError:
        return UNKNOWN_OPERATION_WEIGHT


def score_file(analysis: FileAnalysis, operation: Optional[Union[Operation, str]] = None) -> float:
    """
    Computes the impact score for one analyzed file.

    Args:
        analysis: The file analysis.
        operation: Overrides the analysis' own operation when given.

    Returns:
        A score in [0.0, 1.0].
    """
    op = analysis.operation if operation is None else operation
    line_weight = min(analysis.total_lines / LINES_PER_FULL_WEIGHT, LINE_WEIGHT_CAP)
    category_weight = CATEGORY_WEIGHTS.get(analysis.category, CATEGORY_WEIGHTS[FileCategory.SOURCE])
    return clamp01(operation_weight(op) + category_weight + line_weight)


def score_files(analyses: Iterable[FileAnalysis]) -> List[ScoredFile]:
    """Scores every analysis, keeping diff-appearance order."""
    return [
        ScoredFile(**analysis.model_dump(exclude={"impact_score"}), impact_score=score_file(analysis))
        for analysis in analyses
    ]


def rank(files: Iterable[ScoredFile]) -> List[ScoredFile]:
    """Sorts by descending impact score; equal scores keep their original order."""
    ranked = sorted(files, key=lambda f: f.impact_score, reverse=True)
    if ranked:
        logger.debug(f"Ranked {len(ranked)} files, primary: {ranked[0].path} ({ranked[0].impact_score:.2f})")
    return ranked


def rank_analyses(analyses: Iterable[FileAnalysis]) -> List[ScoredFile]:
    return rank(score_files(analyses))
