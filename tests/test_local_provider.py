import json

import httpx
import pytest

from config.models import Config, ModelConfig
from core.contracts.models import CandidateSet
from core.generation.orchestrator import build_strategies, create_client, generate_commit_message
from core.generation.strategies import RemoteMultiStepStrategy
from core.llm.providers.local import DEFAULT_LOCAL_BASE_URL, LocalProvider
from core.llm.router import get_client, has_usable_credential, resolve_api_key


@pytest.fixture
def no_local_env(monkeypatch):
    for name in ("OLLAMA_BASE_URL", "LOCAL_API_KEY", "OPENAI_API_KEY"):
        monkeypatch.delenv(name, raising=False)


def test_get_client_local(no_local_env):
    """Tests that the router returns a LocalProvider instance."""
    assert isinstance(get_client(ModelConfig(provider="local")), LocalProvider)


def test_local_needs_no_key(no_local_env):
    """Tests that the local provider is usable without any API key."""
    config = ModelConfig(provider="local")
    assert resolve_api_key(config) is None
    assert has_usable_credential(config)


def test_local_defaults(no_local_env):
    """Tests the default server address, model and placeholder key."""
    provider = LocalProvider(ModelConfig(provider="local"))

    assert str(provider._client.base_url).rstrip("/") == DEFAULT_LOCAL_BASE_URL
    assert provider.model == "llama3"
    assert provider._client.headers["Authorization"] == "Bearer ollama"


def test_local_base_url_from_environment(no_local_env, monkeypatch):
    """Tests that OLLAMA_BASE_URL is used when the config has no base_url."""
    monkeypatch.setenv("OLLAMA_BASE_URL", "http://gpu-box:11434/v1")

    provider = LocalProvider(ModelConfig(provider="local"))
    assert str(provider._client.base_url).rstrip("/") == "http://gpu-box:11434/v1"

    configured = LocalProvider(ModelConfig(provider="local", base_url="http://other:8080/v1", api_key="secret"))
    assert str(configured._client.base_url).rstrip("/") == "http://other:8080/v1"
    assert configured._client.headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
async def test_local_uses_function_calling(no_local_env, mocker):
    """Tests that the local provider speaks the OpenAI-compatible protocol."""
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = {
        "choices": [{"message": {"tool_calls": [{"function": {"arguments": json.dumps({"message": "Add auth module"})}}]}}]
    }
    mock_post = mocker.patch("httpx.AsyncClient.post", return_value=mock_response)
    provider = LocalProvider(ModelConfig(provider="local", name="codellama"))

    message = await provider.select_message(CandidateSet(candidates=["Add auth"]), [], "diff", 72)

    assert message == "Add auth module"
    assert mock_post.call_args[0][0] == "/chat/completions"
    assert mock_post.call_args[1]["json"]["model"] == "codellama"


def test_create_client_for_local_provider(no_local_env):
    """Tests that a local server enables the remote strategies without a key."""
    config = Config(model=ModelConfig(provider="local"))

    client = create_client(config)

    assert isinstance(client, LocalProvider)
    assert isinstance(build_strategies(config, client)[0], RemoteMultiStepStrategy)


@pytest.mark.asyncio
async def test_unreachable_local_server_falls_back_to_heuristics(no_local_env, auth_diff, mocker):
    """Tests that a local server that is down falls back to local analysis."""
    mock_post = mocker.patch("httpx.AsyncClient.post", side_effect=httpx.ConnectError("connection refused"))
    config = Config(model=ModelConfig(provider="local", max_retries=0))

    assert await generate_commit_message(auth_diff, config) == "Add auth"
    assert mock_post.called
