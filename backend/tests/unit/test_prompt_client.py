"""Unit tests for the agent's prompt configuration client."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch
import httpx

from app.agent.prompt_client import PromptConfigClient
from app.agent_config.store import DEFAULT_SYSTEM_PROMPT


def config_response(system_prompt: str = "Be concise.", status_code: int = 200) -> MagicMock:
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = {
        "config": {"systemPrompt": system_prompt, "updatedAt": "2024-05-01T12:00:00Z"}
    }
    return mock_response


def mock_async_client(responses=None, side_effect=None) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client.get = AsyncMock(side_effect=side_effect if side_effect is not None else responses)
    return mock_client


class TestPromptConfigClient:
    """Fetching, caching and fallbacks."""

    @pytest.mark.asyncio
    async def test_fetches_and_normalizes_prompt(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_async_client(responses=[config_response("  Be concise.\r\nUse the KB.  ")])
            mock_client_class.return_value = mock_client

            prompt = await PromptConfigClient("http://api:8000/api/").get_system_prompt()

        assert prompt == "Be concise.\nUse the KB."
        assert mock_client.get.call_args[0][0] == "http://api:8000/api/agent/config"

    @pytest.mark.asyncio
    async def test_cached_within_ttl(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_async_client(responses=[config_response("first"), config_response("second")])
            mock_client_class.return_value = mock_client

            client = PromptConfigClient("http://api:8000/api", ttl_seconds=60)
            assert await client.get_system_prompt() == "first"
            assert await client.get_system_prompt() == "first"

        assert mock_client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_refetches_after_ttl(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_async_client(responses=[config_response("first"), config_response("second")])
            mock_client_class.return_value = mock_client

            client = PromptConfigClient("http://api:8000/api", ttl_seconds=0)
            assert await client.get_system_prompt() == "first"
            assert await client.get_system_prompt() == "second"

    @pytest.mark.asyncio
    async def test_failure_keeps_last_good_prompt(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client = mock_async_client(
                side_effect=[config_response("first"), httpx.ConnectError("refused")]
            )
            mock_client_class.return_value = mock_client

            client = PromptConfigClient("http://api:8000/api", ttl_seconds=0)
            assert await client.get_system_prompt() == "first"
            assert await client.get_system_prompt() == "first"

    @pytest.mark.asyncio
    async def test_failure_without_cache_uses_default(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_async_client(responses=[config_response(status_code=500)])

            prompt = await PromptConfigClient("http://api:8000/api").get_system_prompt()

        assert prompt == DEFAULT_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_malformed_body_uses_default(self):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {"config": {"systemPrompt": 42}}

        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_async_client(responses=[mock_response])

            prompt = await PromptConfigClient("http://api:8000/api").get_system_prompt()

        assert prompt == DEFAULT_SYSTEM_PROMPT

    @pytest.mark.asyncio
    async def test_blank_prompt_uses_default(self):
        with patch("httpx.AsyncClient") as mock_client_class:
            mock_client_class.return_value = mock_async_client(responses=[config_response("   ")])

            prompt = await PromptConfigClient("http://api:8000/api").get_system_prompt()

        assert prompt == DEFAULT_SYSTEM_PROMPT
