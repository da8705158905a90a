import os

from core.llm.providers.openai import OpenAIProvider
from core.registry import provider_registry

DEFAULT_LOCAL_BASE_URL = "http://localhost:11434/v1"
DEFAULT_LOCAL_API_KEY = "ollama"


@provider_registry.register("local")
class LocalProvider(OpenAIProvider):
    """
    一个用于本地 OpenAI 兼容 API (如 Ollama) 的 Provider。

    复用 OpenAI 的 function calling 协议，不需要真实的 API 密钥。
    """

    display_name = "Local"
    api_key_env = "LOCAL_API_KEY"
    requires_api_key = False
    default_model = "llama3"

    def _resolve_api_key(self) -> str:
        # 本地服务通常不校验密钥，但如果提供了，我们还是会使用它
        return self.config.api_key or os.getenv(self.api_key_env) or DEFAULT_LOCAL_API_KEY

    def _resolve_base_url(self) -> str:
        return self.config.base_url or os.getenv("OLLAMA_BASE_URL") or DEFAULT_LOCAL_BASE_URL
