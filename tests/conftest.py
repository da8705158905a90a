import asyncio
from collections import Counter
from typing import Dict, List, Optional

import pytest

from config.models import Config, ModelConfig
from core.contracts.models import CandidateSet, FileAnalysis, FileChange, ScoredFile
from core.llm.providers.dummy_provider import DummyProvider

AUTH_DIFF = """diff --git a/src/auth.rs b/src/auth.rs
new file mode 100644
index 0000000..1111111
--- /dev/null
+++ b/src/auth.rs
@@ -0,0 +1,3 @@
+pub fn login() {}
+pub fn logout() {}
+pub fn refresh() {}
"""

TWO_FILE_DIFF = """diff --git a/tests/test_api.py b/tests/test_api.py
index 1111111..2222222 100644
--- a/tests/test_api.py
+++ b/tests/test_api.py
@@ -1,2 +1,2 @@
-def test_old(): pass
+def test_new(): pass
diff --git a/README.md b/README.md
index 3333333..4444444 100644
--- a/README.md
+++ b/README.md
@@ -1 +1,2 @@
 # Project
+More words.
"""


class RecordingClient(DummyProvider):
    """
    A DummyProvider that counts calls and can be told to fail.

    Args:
        errors: Maps an operation name to the exception it raises.
        analyze_errors: Maps a file path to the exception its analysis raises.
        delays: Maps a file path to an analysis delay in seconds.
        candidates: Overrides the candidates returned by generate_candidates.
    """

    def __init__(
        self,
        errors: Optional[Dict[str, Exception]] = None,
        analyze_errors: Optional[Dict[str, Exception]] = None,
        delays: Optional[Dict[str, float]] = None,
        candidates: Optional[List[str]] = None,
        response: Optional[str] = None,
    ):
        super().__init__(ModelConfig(provider="dummy"), response=response)
        self.calls = Counter()
        self.errors = errors or {}
        self.analyze_errors = analyze_errors or {}
        self.delays = delays or {}
        self.candidates = candidates
        self.scored_paths: List[str] = []
        self.selected_from: Optional[CandidateSet] = None
        self.closed = False

    def _enter(self, operation: str):
        self.calls[operation] += 1
        if operation in self.errors:
            raise self.errors[operation]

    async def aclose(self) -> None:
        self.closed = True

    async def analyze_file(self, change: FileChange) -> FileAnalysis:
        self._enter("analyze_file")
        await asyncio.sleep(self.delays.get(change.path, 0))
        if change.path in self.analyze_errors:
            raise self.analyze_errors[change.path]
        return await super().analyze_file(change)

    async def score_files(self, analyses: List[FileAnalysis]) -> List[ScoredFile]:
        self._enter("score_files")
        self.scored_paths = [a.path for a in analyses]
        return await super().score_files(analyses)

    async def generate_candidates(self, scored: List[ScoredFile], max_length: int) -> CandidateSet:
        self._enter("generate_candidates")
        if self.candidates is not None:
            return CandidateSet(candidates=self.candidates, reasoning="fixed")
        return await super().generate_candidates(scored, max_length)

    async def select_message(
        self, candidates: CandidateSet, scored: List[ScoredFile], raw_diff: str, max_length: int
    ) -> str:
        self._enter("select_message")
        self.selected_from = candidates
        return await super().select_message(candidates, scored, raw_diff, max_length)

    async def generate_message_from_diff(self, raw_diff: str, max_length: int) -> str:
        self._enter("generate_message_from_diff")
        return await super().generate_message_from_diff(raw_diff, max_length)


@pytest.fixture
def recording_client():
    return RecordingClient


@pytest.fixture
def auth_diff():
    return AUTH_DIFF


@pytest.fixture
def two_file_diff():
    return TWO_FILE_DIFF


@pytest.fixture
def offline_config(monkeypatch):
    """An openai config with no credential anywhere."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return Config(model=ModelConfig(provider="openai", api_key=None))
