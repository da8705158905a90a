import pytest
import httpx

from config.models import ModelConfig
from core.contracts.models import FileChange, Operation
from core.llm.router import get_client
from core.llm.providers.claude import DEFAULT_MAX_TOKENS, ClaudeProvider
from utils.errors import AuthenticationError, ProviderError


@pytest.fixture
def claude_config():
    """Fixture for Claude provider configuration."""
    return ModelConfig(
        provider="claude",
        name="claude-3-opus-20240229",
        api_key="test_claude_api_key",
        max_retries=0,
    )


def messages_response(mocker, content):
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = 200
    mock_response.json.return_value = {"content": content}
    return mock_response


def test_get_client_claude(claude_config):
    """Tests that the router returns a ClaudeProvider instance."""
    assert isinstance(get_client(claude_config), ClaudeProvider)


def test_claude_provider_init_no_api_key(mocker):
    """Tests that the provider raises an error if no API key is provided."""
    mocker.patch("os.getenv", return_value=None)
    config = ModelConfig(provider="claude", api_key=None)
    with pytest.raises(ProviderError, match="Anthropic API key not found"):
        ClaudeProvider(config)


@pytest.mark.asyncio
async def test_claude_single_step(claude_config, mocker):
    """Tests the plain completion used by the single-step strategy."""
    mock_post = mocker.patch(
        "httpx.AsyncClient.post",
        return_value=messages_response(mocker, [
            {"type": "text", "text": "Add login "},
            {"type": "text", "text": "endpoint"},
        ]),
    )

    provider = ClaudeProvider(claude_config)
    result = await provider.generate_message_from_diff("diff --git a/x b/x", 72)

    assert result == "Add login endpoint"
    mock_post.assert_called_once()
    assert mock_post.call_args[0][0] == "/messages"
    call_args = mock_post.call_args[1]['json']
    assert call_args['model'] == "claude-3-opus-20240229"
    assert call_args['max_tokens'] == DEFAULT_MAX_TOKENS
    assert "72 characters" in call_args['system']


@pytest.mark.asyncio
async def test_claude_tool_use(claude_config, mocker):
    """Tests that structured operations force a tool and read its input."""
    mock_post = mocker.patch(
        "httpx.AsyncClient.post",
        return_value=messages_response(mocker, [
            {"type": "text", "text": "Looking at the diff..."},
            {
                "type": "tool_use",
                "name": "analyze",
                "input": {"lines_added": 4, "lines_removed": 1, "file_category": "test", "summary": "More cases"},
            },
        ]),
    )
    change = FileChange(path="tests/test_login.py", operation=Operation.MODIFIED, diff_content="+x\n")

    analysis = await ClaudeProvider(claude_config).analyze_file(change)

    assert analysis.path == "tests/test_login.py"
    assert analysis.category.value == "test"
    assert (analysis.lines_added, analysis.lines_removed) == (4, 1)

    payload = mock_post.call_args[1]['json']
    assert payload['tool_choice'] == {"type": "tool", "name": "analyze"}
    assert payload['tools'][0]['input_schema']['type'] == "object"


@pytest.mark.asyncio
async def test_claude_missing_tool_use(claude_config, mocker):
    """Tests that a response without a tool_use block is an error."""
    mocker.patch("httpx.AsyncClient.post", return_value=messages_response(mocker, [{"type": "text", "text": "no"}]))
    change = FileChange(path="a.py")

    with pytest.raises(ProviderError, match="No tool call in Anthropic response"):
        await ClaudeProvider(claude_config).analyze_file(change)


@pytest.mark.asyncio
async def test_claude_rejected_key(claude_config, mocker):
    """Tests that a rejected key becomes an AuthenticationError."""
    mock_response = mocker.MagicMock(spec=httpx.Response)
    mock_response.status_code = 401
    mock_response.text = "unauthorized"
    mock_response.json.return_value = {
        "type": "error",
        "error": {"type": "authentication_error", "message": "invalid x-api-key"},
    }
    mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "401", request=mocker.MagicMock(), response=mock_response
    )
    mocker.patch("httpx.AsyncClient.post", return_value=mock_response)

    with pytest.raises(AuthenticationError, match="Anthropic API authentication failed"):
        await ClaudeProvider(claude_config).generate_message_from_diff("diff", 72)


@pytest.mark.asyncio
async def test_claude_network_error(claude_config, mocker):
    """Tests that network errors become a ProviderError."""
    mocker.patch("httpx.AsyncClient.post", side_effect=httpx.ConnectError("refused"))

    with pytest.raises(ProviderError, match="network error"):
        await ClaudeProvider(claude_config).generate_message_from_diff("diff", 72)
