"""
Per-invocation timing records for the generation pipeline.

A GenerationTrace is created for one commit-message request and handed to the
orchestrator, which passes it down to each strategy. Nothing here is global:
two concurrent requests use two traces.
"""
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

from pydantic import BaseModel

from utils.logger import logger


class StageTiming(BaseModel):
    stage: str
    duration_sec: float
    detail: Optional[str] = None
    ok: bool = True


class GenerationTrace:
    """Collects stage timings for a single generation request."""

    def __init__(self):
        self._started = time.perf_counter()
        self._entries: List[StageTiming] = []

    @property
    def entries(self) -> List[StageTiming]:
        return list(self._entries)

    def record(self, stage: str, duration_sec: float, detail: Optional[str] = None, ok: bool = True) -> StageTiming:
        entry = StageTiming(stage=stage, duration_sec=duration_sec, detail=detail, ok=ok)
        self._entries.append(entry)
        logger.debug(f"{stage} took {duration_sec:.3f}s" + (f" ({detail})" if detail else ""))
        return entry

    @contextmanager
    def stage(self, name: str, detail: Optional[str] = None) -> Iterator[None]:
        """Times the enclosed block; a raised exception marks the stage as failed."""
        logger.debug(f"Starting {name}")
        start = time.perf_counter()
        ok = False
        try:
            yield
            ok = True
        finally:
            self.record(name, time.perf_counter() - start, detail=detail, ok=ok)

    def total_duration(self) -> float:
        return time.perf_counter() - self._started

    def summary(self) -> dict:
        return {
            "total_sec": round(self.total_duration(), 3),
            "stages": [entry.model_dump() for entry in self._entries],
        }
