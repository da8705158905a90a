import math
from enum import Enum
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Operation(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    BINARY = "binary"

    @classmethod
    def parse(cls, value: Any) -> "Operation":
        """Lenient conversion used for model output; anything unrecognised is a modification."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.MODIFIED


class FileCategory(str, Enum):
    SOURCE = "source"
    TEST = "test"
    CONFIG = "config"
    DOCS = "docs"
    BINARY = "binary"
    BUILD = "build"

    @classmethod
    def parse(cls, value: Any) -> "FileCategory":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.SOURCE


class FileChange(BaseModel):
    """One file's section of a unified diff."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    operation: Operation = Operation.MODIFIED
    diff_content: str = ""


class FileAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    operation: Operation = Operation.MODIFIED
    lines_added: int = Field(0, ge=0)
    lines_removed: int = Field(0, ge=0)
    category: FileCategory = FileCategory.SOURCE
    summary: str = ""

    @property
    def total_lines(self) -> int:
        return self.lines_added + self.lines_removed

    @classmethod
    def from_payload(cls, change: FileChange, payload: Mapping[str, Any]) -> "FileAnalysis":
        """
        Builds an analysis from a model-produced JSON object.

        Path and operation always come from the parsed change so results stay
        tied to the file they were requested for.
        """
        return cls(
            path=change.path,
            operation=change.operation,
            lines_added=_non_negative(payload.get("lines_added")),
            lines_removed=_non_negative(payload.get("lines_removed")),
            category=FileCategory.parse(payload.get("file_category", payload.get("category"))),
            summary=str(payload.get("summary") or ""),
        )


class ScoredFile(FileAnalysis):
    impact_score: float = 0.0

    @field_validator("impact_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(score):
            return 0.0
        return min(max(score, 0.0), 1.0)


class CandidateSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidates: List[str] = Field(default_factory=list)
    reasoning: str = ""

    def truncated(self, max_length: int) -> "CandidateSet":
        return CandidateSet(
            candidates=[candidate[:max_length] for candidate in self.candidates],
            reasoning=self.reasoning,
        )


class StrategyAttempt(BaseModel):
    """A failed strategy and the error it reported."""
    model_config = ConfigDict(frozen=True)

    strategy: str
    error: str


def _non_negative(value: Optional[Any]) -> int:
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError, OverflowError):
        return 0
