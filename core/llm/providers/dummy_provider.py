import asyncio
from typing import List, Optional

from config.models import ModelConfig
from core.analysis.analyzer import analyze_change
from core.analysis.candidates import generate_candidates, select_best_candidate
from core.analysis.scoring import rank_analyses, score_files
from core.contracts.models import CandidateSet, FileAnalysis, FileChange, ScoredFile
from core.diff.parser import parse_diff
from core.registry import provider_registry
from utils.errors import ProviderError


@provider_registry.register("dummy")
class DummyProvider:
    """
    An offline client that answers every remote operation with the local
    heuristics. Useful for testing the API strategies without a network.
    """

    display_name = "Dummy"
    api_key_env = None
    requires_api_key = False

    def __init__(self, config: ModelConfig, response: Optional[str] = None, delay_sec: float = 0.0):
        self.config = config
        self._response = response
        self._delay_sec = delay_sec

    async def _pause(self):
        await asyncio.sleep(self._delay_sec)  # Simulate network delay

    async def aclose(self) -> None:
        return None

    async def analyze_file(self, change: FileChange) -> FileAnalysis:
        await self._pause()
        return analyze_change(change)

    async def score_files(self, analyses: List[FileAnalysis]) -> List[ScoredFile]:
        await self._pause()
        return score_files(analyses)

    async def generate_candidates(self, scored: List[ScoredFile], max_length: int) -> CandidateSet:
        await self._pause()
        return generate_candidates(scored, max_length)

    async def select_message(
        self, candidates: CandidateSet, scored: List[ScoredFile], raw_diff: str, max_length: int
    ) -> str:
        await self._pause()
        message = self._response or select_best_candidate(candidates)
        if not message:
            raise ProviderError("No candidates to select from")
        return message

    async def generate_message_from_diff(self, raw_diff: str, max_length: int) -> str:
        await self._pause()
        if self._response:
            return self._response
        ranked = rank_analyses(analyze_change(change) for change in parse_diff(raw_diff))
        message = select_best_candidate(generate_candidates(ranked, max_length))
        if not message:
            raise ProviderError("No files to describe")
        return message
