"""
The three commit message generation strategies.

The set is closed: the orchestrator only ever builds these three, in the
order remote multi-step, local multi-step, remote single-step.
"""
import asyncio
import time
from typing import List, Optional, Tuple, Union

from core.analysis.analyzer import analyze_change
from core.analysis.candidates import generate_candidates, select_best_candidate
from core.analysis.scoring import rank, rank_analyses
from core.contracts.models import FileAnalysis, FileChange
from core.contracts.provider import GenerationClient
from core.diff.parser import parse_diff
from utils.errors import ProviderError, is_authentication_error
from utils.logger import logger
from utils.trace import GenerationTrace

DEFAULT_MAX_CONCURRENCY = 8


class RemoteMultiStepStrategy:
    """
    Parse locally, then analyze every file, score, generate candidates and
    select the final message through the remote client.
    """

    name = "Multi-step API"
    requires_credential = True

    def __init__(self, client: GenerationClient, max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        self.client = client
        self.max_concurrency = max_concurrency

    async def _analyze_one(
        self, index: int, change: FileChange, semaphore: asyncio.Semaphore
    ) -> Tuple[int, FileChange, Union[FileAnalysis, Exception], float]:
        async with semaphore:
            start = time.perf_counter()
            try:
                result: Union[FileAnalysis, Exception] = await self.client.analyze_file(change)
            except Exception as e:  # collected per file; classified by the caller
                result = e
            return index, change, result, time.perf_counter() - start

    async def analyze_files(self, changes: List[FileChange], trace: GenerationTrace) -> List[FileAnalysis]:
        """
        Analyzes all files concurrently.

        Soft failures drop the file. An authentication failure is raised as
        soon as it is seen; sibling tasks are not cancelled and their results
        are discarded. Once the caller closes the client they fail with a
        transport error instead of completing.

        Surviving analyses are returned in parsed-file order regardless of
        completion order.
        """
        logger.debug(f"Analyzing {len(changes)} files in parallel")
        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [
            asyncio.ensure_future(self._analyze_one(index, change, semaphore))
            for index, change in enumerate(changes)
        ]

        survivors: List[Tuple[int, FileAnalysis]] = []
        for next_done in asyncio.as_completed(tasks):
            index, change, result, duration = await next_done
            ok = not isinstance(result, Exception)
            trace.record(f"analyze:{change.path}", duration, detail=change.operation.value, ok=ok)
            if ok:
                logger.debug(f"Successfully analyzed file {index}: {change.path}")
                survivors.append((index, result))
                continue
            if is_authentication_error(result):
                raise result
            logger.warning(f"Failed to analyze file {change.path}: {result}")

        survivors.sort(key=lambda item: item[0])
        return [analysis for _, analysis in survivors]

    async def generate(self, raw_diff: str, max_length: int, trace: GenerationTrace) -> str:
        logger.info("Starting multi-step commit message generation")
        with trace.stage("parse"):
            changes = parse_diff(raw_diff)
        logger.info(f"Parsed {len(changes)} files from diff")

        analyses = await self.analyze_files(changes, trace)
        if not analyses:
            raise ProviderError("No files analyzed")

        with trace.stage("score", detail=f"{len(analyses)} files"):
            ranked = rank(await self.client.score_files(analyses))
        if not ranked:
            raise ProviderError("No files scored")

        with trace.stage("generate", detail=f"max_length={max_length}"):
            candidates = (await self.client.generate_candidates(ranked, max_length)).truncated(max_length)
        if not candidates.candidates:
            raise ProviderError("No candidates generated")
        logger.debug(f"Candidates: {candidates.candidates}; reasoning: {candidates.reasoning}")

        with trace.stage("select"):
            return await self.client.select_message(candidates, ranked, raw_diff, max_length)


class LocalMultiStepStrategy:
    """The same pipeline with the local heuristics; never touches the network."""

    name = "Local multi-step"
    requires_credential = False

    async def generate(self, raw_diff: str, max_length: int, trace: GenerationTrace) -> str:
        with trace.stage("local"):
            changes = parse_diff(raw_diff)
            ranked = rank_analyses(analyze_change(change) for change in changes)
            candidate_set = generate_candidates(ranked, max_length)
            message: Optional[str] = select_best_candidate(candidate_set)
        if not message:
            raise ProviderError(candidate_set.reasoning)
        logger.debug(f"Local reasoning: {candidate_set.reasoning}")
        return message


class RemoteSingleStepStrategy:
    """One remote call with the raw diff and no intermediate stages."""

    name = "Single-step API"
    requires_credential = True

    def __init__(self, client: GenerationClient):
        self.client = client

    async def generate(self, raw_diff: str, max_length: int, trace: GenerationTrace) -> str:
        with trace.stage("single-step"):
            return await self.client.generate_message_from_diff(raw_diff, max_length)
