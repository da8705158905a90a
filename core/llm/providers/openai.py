import os
import httpx
from typing import Any, Dict, Optional

from config.models import ModelConfig
from core.llm.prompts import PromptRenderer
from core.llm.providers.base import ToolCallingClient
from core.registry import provider_registry
from utils.errors import ProviderError


@provider_registry.register("openai")
class OpenAIProvider(ToolCallingClient):
    """
    A client for OpenAI's chat completions API, using function calling for
    the structured multi-step operations.
    """

    display_name = "OpenAI"
    api_key_env = "OPENAI_API_KEY"
    default_model = "gpt-4o-mini"
    default_base_url = "https://api.openai.com/v1"

    def __init__(self, config: ModelConfig, renderer: Optional[PromptRenderer] = None):
        super().__init__(config, renderer)
        self._api_key = self._resolve_api_key()
        self._client = httpx.AsyncClient(
            base_url=self._resolve_base_url(),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout_sec,
        )

    def _resolve_api_key(self) -> str:
        api_key = self.config.api_key or os.getenv(self.api_key_env)
        if not api_key:
            raise ProviderError("OpenAI API key not found. Please set it in the config or as an environment variable OPENAI_API_KEY.")
        return api_key

    def _resolve_base_url(self) -> str:
        return self.config.base_url or self.default_base_url

    def _build_payload(self, system: str, prompt: str, **extra: Any) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            **extra,
            **self.config.parameters,
        }

    async def _call_tool(self, system: str, prompt: str, tool: Dict[str, Any]) -> Dict[str, Any]:
        payload = self._build_payload(
            system,
            prompt,
            tools=[{"type": "function", "function": tool}],
            tool_choice={"type": "function", "function": {"name": tool["name"]}},
        )
        response = await self._post("/chat/completions", payload)
        data = response.json()
        try:
            arguments = data["choices"][0]["message"]["tool_calls"][0]["function"]["arguments"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(f"No tool call in OpenAI response for '{tool['name']}'") from e
        return self._parse_arguments(arguments)

    async def _complete(self, system: str, prompt: str) -> str:
        response = await self._post("/chat/completions", self._build_payload(system, prompt))
        data = response.json()
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Malformed OpenAI response: no message content") from e
