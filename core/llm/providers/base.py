import asyncio
import json
from typing import Any, Dict, List, Optional

import httpx

from config.models import ModelConfig
from core.contracts.models import CandidateSet, FileAnalysis, FileChange, ScoredFile
from core.diff.budget import char_budget, fit_diff, truncate_text
from core.llm import prompts
from core.llm.prompts import PromptRenderer
from core.llm.tools import ANALYZE_TOOL, COMMIT_TOOL, GENERATE_TOOL, SCORE_TOOL
from core.analysis.scoring import score_file
from utils.errors import INVALID_API_KEY_CODE, AuthenticationError, ProviderError
from utils.logger import logger

RETRYABLE_STATUS_CODES = frozenset({408, 409, 429})
AUTH_STATUS_CODES = frozenset({401, 403})
AUTH_ERROR_CODES = frozenset({INVALID_API_KEY_CODE, "authentication_error"})


def file_payload(analysis: FileAnalysis) -> Dict[str, Any]:
    """Serializes an analysis with the field names used by the tool schemas."""
    payload = {
        "file_path": analysis.path,
        "operation_type": analysis.operation.value,
        "lines_added": analysis.lines_added,
        "lines_removed": analysis.lines_removed,
        "file_category": analysis.category.value,
        "summary": analysis.summary,
    }
    if isinstance(analysis, ScoredFile):
        payload["impact_score"] = round(analysis.impact_score, 4)
    return payload


class ToolCallingClient:
    """
    Shared implementation of the GenerationClient operations on top of a
    forced tool call and a plain completion.

    Subclasses provide the HTTP client and the two transport hooks
    (``_call_tool`` and ``_complete``) for their API.
    """

    display_name = "Provider"
    api_key_env: Optional[str] = None
    requires_api_key = True
    default_model = ""

    def __init__(self, config: ModelConfig, renderer: Optional[PromptRenderer] = None):
        self.config = config
        self.model = config.name or self.default_model
        self.renderer = renderer or PromptRenderer()
        self._client: Optional[httpx.AsyncClient] = None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    # -- transport -------------------------------------------------------

    async def _call_tool(self, system: str, prompt: str, tool: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError

    async def _complete(self, system: str, prompt: str) -> str:
        raise NotImplementedError

    def _status_error(self, response: httpx.Response) -> ProviderError:
        """Maps an HTTP error response to ProviderError or AuthenticationError."""
        try:
            error_details = response.json().get("error", {})
        except (json.JSONDecodeError, ValueError, AttributeError):
            error_details = {}
        if not isinstance(error_details, dict):
            error_details = {"message": str(error_details)}

        message = error_details.get("message") or response.text
        code = error_details.get("code") or error_details.get("type")
        if response.status_code in AUTH_STATUS_CODES or code in AUTH_ERROR_CODES:
            return AuthenticationError(
                f"{self.display_name} API authentication failed ({response.status_code}): {message}",
                code=INVALID_API_KEY_CODE,
            )
        return ProviderError(f"{self.display_name} API error ({response.status_code}): {message}", code=code)

    @staticmethod
    def _is_retryable(status_code: int) -> bool:
        return status_code in RETRYABLE_STATUS_CODES or status_code >= 500

    async def _post(self, path: str, payload: dict) -> httpx.Response:
        """
        Sends a POST request, retrying timeouts, network errors, 429 and 5xx
        responses up to ``max_retries`` times with exponential backoff.
        """
        attempt = 0
        while True:
            try:
                response = await self._client.post(path, json=payload)
                response.raise_for_status()
                return response
            except httpx.TimeoutException as e:
                cause = e
                error = ProviderError(f"Request to {self.display_name} timed out: {e}")
            except httpx.HTTPStatusError as e:
                cause = e
                error = self._status_error(e.response)
                if not self._is_retryable(e.response.status_code):
                    raise error from e
            except httpx.RequestError as e:
                cause = e
                error = ProviderError(f"An unexpected network error occurred with {self.display_name}: {e}")

            if attempt >= self.config.max_retries:
                raise error from cause
            delay = self.config.retry_backoff_sec * (2 ** attempt)
            attempt += 1
            logger.warning(f"{error} (retry {attempt}/{self.config.max_retries} in {delay:.1f}s)")
            await asyncio.sleep(delay)

    @staticmethod
    def _parse_arguments(arguments: Any) -> Dict[str, Any]:
        if isinstance(arguments, dict):
            return arguments
        try:
            parsed = json.loads(arguments)
        except (TypeError, json.JSONDecodeError) as e:
            raise ProviderError(f"Malformed tool call arguments: {e}") from e
        if not isinstance(parsed, dict):
            raise ProviderError("Malformed tool call arguments: expected a JSON object")
        return parsed

    # -- GenerationClient -----------------------------------------------

    async def analyze_file(self, change: FileChange) -> FileAnalysis:
        diff_content = truncate_text(change.diff_content, char_budget(self.config.max_diff_tokens))
        prompt = self.renderer.render("analyze_file.j2", change=change, diff_content=diff_content)
        payload = await self._call_tool(prompts.ANALYZE_SYSTEM, prompt, ANALYZE_TOOL)
        return FileAnalysis.from_payload(change, payload)

    async def score_files(self, analyses: List[FileAnalysis]) -> List[ScoredFile]:
        files = [file_payload(analysis) for analysis in analyses]
        prompt = self.renderer.render("score_files.j2", files=files, files_json=json.dumps(files, indent=2))
        payload = await self._call_tool(prompts.SCORE_SYSTEM, prompt, SCORE_TOOL)

        entries = payload.get("files_with_scores")
        if not isinstance(entries, list):
            raise ProviderError("Score response is missing 'files_with_scores'")

        remote_scores: Dict[str, Any] = {}
        for entry in entries:
            if isinstance(entry, dict) and entry.get("file_path") is not None:
                remote_scores.setdefault(str(entry["file_path"]), entry.get("impact_score"))

        scored = []
        for analysis in analyses:
            if analysis.path in remote_scores:
                impact_score = remote_scores[analysis.path]
            else:
                logger.debug(f"No remote score for {analysis.path}; using local score")
                impact_score = score_file(analysis)
            scored.append(ScoredFile(**analysis.model_dump(exclude={"impact_score"}), impact_score=impact_score))
        return scored

    async def generate_candidates(self, scored: List[ScoredFile], max_length: int) -> CandidateSet:
        files = [file_payload(f) for f in scored]
        prompt = self.renderer.render(
            "generate_candidates.j2", max_length=max_length, files_json=json.dumps(files, indent=2)
        )
        payload = await self._call_tool(prompts.GENERATE_SYSTEM, prompt, GENERATE_TOOL)

        raw_candidates = payload.get("candidates")
        if not isinstance(raw_candidates, list):
            raise ProviderError("Generate response is missing 'candidates'")
        candidates = [str(c).strip() for c in raw_candidates if str(c).strip()]
        return CandidateSet(candidates=candidates, reasoning=str(payload.get("reasoning") or ""))

    async def select_message(
        self, candidates: CandidateSet, scored: List[ScoredFile], raw_diff: str, max_length: int
    ) -> str:
        prompt = self.renderer.render(
            "select_message.j2",
            candidates_json=json.dumps(candidates.candidates, indent=2),
            reasoning=candidates.reasoning,
            files_json=json.dumps([file_payload(f) for f in scored], indent=2),
            raw_diff=fit_diff(raw_diff, self.config.max_diff_tokens),
            max_length=max_length,
        )
        payload = await self._call_tool(prompts.SELECT_SYSTEM, prompt, COMMIT_TOOL)
        message = payload.get("message")
        if not isinstance(message, str) or not message.strip():
            raise ProviderError("Commit response is missing 'message'")
        return message.strip()

    async def generate_message_from_diff(self, raw_diff: str, max_length: int) -> str:
        system = self.renderer.render("single_step_system.j2", max_length=max_length)
        message = (await self._complete(system, fit_diff(raw_diff, self.config.max_diff_tokens)) or "").strip()
        if not message:
            raise ProviderError(f"{self.display_name} returned an empty commit message")
        return message
