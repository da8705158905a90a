from typing import List, Protocol

from core.contracts.models import CandidateSet, FileAnalysis, FileChange, ScoredFile


class GenerationClient(Protocol):
    """A protocol for remote text-generation clients used by the API strategies."""

    async def analyze_file(self, change: FileChange) -> FileAnalysis:
        """Analyzes a single file's section of the diff."""
        ...

    async def score_files(self, analyses: List[FileAnalysis]) -> List[ScoredFile]:
        """Assigns an impact score to every analyzed file."""
        ...

    async def generate_candidates(self, scored: List[ScoredFile], max_length: int) -> CandidateSet:
        """Proposes commit message candidates for the scored files."""
        ...

    async def select_message(
        self, candidates: CandidateSet, scored: List[ScoredFile], raw_diff: str, max_length: int
    ) -> str:
        """Picks (or rewrites) the final message from the candidates."""
        ...

    async def generate_message_from_diff(self, raw_diff: str, max_length: int) -> str:
        """Produces a commit message from the raw diff in a single call."""
        ...
