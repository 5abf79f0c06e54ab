"""Tests for LLM client."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from discovery.core.exceptions import (
    ConfigurationError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from discovery.llm.client import (
    AnthropicClient,
    DeepSeekClient,
    LLMResponse,
    get_matching_llm_client,
)


def make_client(cls=AnthropicClient):
    return cls(
        model="test-model",
        temperature=0.2,
        max_tokens=500,
        timeout=15.0,
        api_key="test-key",
    )


def http_mock(MockClient):
    mock_client = AsyncMock()
    MockClient.return_value.__aenter__.return_value = mock_client
    return mock_client


class TestAnthropicClient:
    def test_init_without_api_key_raises(self):
        with patch("discovery.llm.client.settings") as mock_settings:
            mock_settings.anthropic_api_key = None
            with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
                AnthropicClient(
                    model="test-model", temperature=0.2, max_tokens=500, timeout=15.0
                )

    @pytest.mark.asyncio
    async def test_complete_success(self):
        with patch("httpx.AsyncClient") as MockClient:
            mock_client = http_mock(MockClient)
            mock_response = MagicMock()
            mock_response.json.return_value = {
                "content": [{"type": "text", "text": '{"confidence": 0.4}'}],
                "model": "test-model",
                "usage": {"input_tokens": 10, "output_tokens": 5},
            }
            mock_client.post.return_value = mock_response

            response = await make_client().complete("prompt", system="sistema")

        assert isinstance(response, LLMResponse)
        assert response.content == '{"confidence": 0.4}'
        assert response.usage == {"input_tokens": 10, "output_tokens": 5}
        payload = mock_client.post.call_args.kwargs["json"]
        assert payload["system"] == "sistema"
        assert payload["messages"] == [{"role": "user", "content": "prompt"}]

    @pytest.mark.asyncio
    async def test_timeout_retried_then_raised(self):
        with patch("httpx.AsyncClient") as MockClient, patch(
            "discovery.llm.client.asyncio.sleep", new_callable=AsyncMock
        ):
            mock_client = http_mock(MockClient)
            mock_client.post.side_effect = httpx.TimeoutException("slow")

            with pytest.raises(LLMTimeoutError):
                await make_client().complete("prompt")

        assert mock_client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_rate_limit_retried_then_raised(self):
        error = httpx.HTTPStatusError(
            "rate limited", request=MagicMock(), response=MagicMock(status_code=429)
        )
        with patch("httpx.AsyncClient") as MockClient, patch(
            "discovery.llm.client.asyncio.sleep", new_callable=AsyncMock
        ):
            mock_client = http_mock(MockClient)
            mock_response = MagicMock()
            mock_response.raise_for_status.side_effect = error
            mock_client.post.return_value = mock_response

            with pytest.raises(LLMRateLimitError):
                await make_client().complete("prompt")

        assert mock_client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_other_http_errors_not_retried(self):
        error = httpx.HTTPStatusError(
            "server error", request=MagicMock(), response=MagicMock(status_code=500)
        )
        with patch("httpx.AsyncClient") as MockClient:
            mock_client = http_mock(MockClient)
            mock_response = MagicMock()
            mock_response.raise_for_status.side_effect = error
            mock_client.post.return_value = mock_response

            with pytest.raises(httpx.HTTPStatusError):
                await make_client().complete("prompt")

        assert mock_client.post.call_count == 1


class TestDeepSeekClient:
    @pytest.mark.asyncio
    async def test_complete_parses_choices(self):
        with patch("httpx.AsyncClient") as MockClient:
            mock_client = http_mock(MockClient)
            mock_response = MagicMock()
            mock_response.json.return_value = {
                "choices": [{"message": {"content": "ciao"}}],
                "usage": {"prompt_tokens": 7, "completion_tokens": 2},
            }
            mock_client.post.return_value = mock_response

            response = await make_client(DeepSeekClient).complete("prompt")

        assert response.content == "ciao"
        assert response.usage == {"input_tokens": 7, "output_tokens": 2}
        headers = mock_client.post.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer test-key"


class TestGetMatchingLLMClient:
    def test_default_provider_is_anthropic(self):
        with patch("discovery.llm.client.settings") as mock_settings:
            mock_settings.llm_matching_provider = None
            mock_settings.anthropic_api_key = "test-key"

            assert isinstance(get_matching_llm_client(), AnthropicClient)

    def test_provider_override(self):
        with patch("discovery.llm.client.settings") as mock_settings:
            mock_settings.llm_matching_provider = "deepseek"
            mock_settings.deepseek_api_key = "test-key"

            assert isinstance(get_matching_llm_client(), DeepSeekClient)

    def test_unknown_provider_raises(self):
        with patch("discovery.llm.client.settings") as mock_settings:
            mock_settings.llm_matching_provider = "unknown"

            with pytest.raises(ConfigurationError, match="Unknown LLM provider"):
                get_matching_llm_client()
