import os
import httpx
from typing import Any, Dict, Optional

from config.models import ModelConfig
from core.llm.prompts import PromptRenderer
from core.llm.providers.base import ToolCallingClient
from core.registry import provider_registry
from utils.errors import ProviderError

DEFAULT_MAX_TOKENS = 1024


@provider_registry.register("claude")
class ClaudeProvider(ToolCallingClient):
    """
    A client for the Anthropic messages API, using tool use for the
    structured multi-step operations.
    """

    display_name = "Anthropic"
    api_key_env = "ANTHROPIC_API_KEY"
    default_model = "claude-3-5-haiku-latest"

    def __init__(self, config: ModelConfig, renderer: Optional[PromptRenderer] = None):
        super().__init__(config, renderer)
        self._api_key = config.api_key or os.getenv(self.api_key_env)
        if not self._api_key:
            raise ProviderError("Anthropic API key not found. Please set it in the config or as an environment variable ANTHROPIC_API_KEY.")

        self._client = httpx.AsyncClient(
            base_url=config.base_url or "https://api.anthropic.com/v1",
            headers={
                "x-api-key": self._api_key,
                "anthropic-version": "2023-06-01",
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout_sec,
        )

    def _build_payload(self, system: str, prompt: str, **extra: Any) -> dict:
        payload = {
            "model": self.model,
            "system": system,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": DEFAULT_MAX_TOKENS,  # Anthropic requires max_tokens
            **extra,
        }
        payload.update(self.config.parameters)
        return payload

    async def _call_tool(self, system: str, prompt: str, tool: Dict[str, Any]) -> Dict[str, Any]:
        payload = self._build_payload(
            system,
            prompt,
            tools=[{
                "name": tool["name"],
                "description": tool["description"],
                "input_schema": tool["parameters"],
            }],
            tool_choice={"type": "tool", "name": tool["name"]},
        )
        response = await self._post("/messages", payload)
        for block in response.json().get("content", []):
            if block.get("type") == "tool_use" and block.get("name") == tool["name"]:
                return self._parse_arguments(block.get("input", {}))
        raise ProviderError(f"No tool call in Anthropic response for '{tool['name']}'")

    async def _complete(self, system: str, prompt: str) -> str:
        response = await self._post("/messages", self._build_payload(system, prompt))
        blocks = response.json().get("content", [])
        return "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
