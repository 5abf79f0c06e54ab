"""
LLM client abstraction for question matching.

Provides an async interface for single-shot LLM calls with:
- Structured logging of requests/responses
- Timeout handling with one retry on timeout or rate limit
- Usage tracking (tokens)

Supported providers:
- anthropic: Claude models (Messages API)
- deepseek: DeepSeek models (OpenAI-compatible API)
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
import structlog

from discovery.core.config import settings
from discovery.core.exceptions import ConfigurationError, LLMRateLimitError, LLMTimeoutError

log = structlog.get_logger(__name__)


# =============================================================================
# Default configuration
# =============================================================================

# Matching runs while the call is live, so a small fast model and a short
# timeout are preferred. Override the provider via LLM_MATCHING_PROVIDER.
MATCHING_DEFAULTS: Dict[str, Any] = dict(
    provider="anthropic",
    temperature=0.2,
    max_tokens=500,
    timeout=15.0,
)

PROVIDER_MODELS = {
    "anthropic": "claude-3-5-haiku-latest",
    "deepseek": "deepseek-chat",
}

MAX_RETRIES = 1  # 2 total attempts
BASE_DELAY_SECONDS = 1.0


@dataclass
class LLMResponse:
    """Standardized LLM response."""

    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    raw_response: Optional[Dict[str, Any]] = None


class LLMClient(ABC):
    """Abstract base for LLM providers."""

    provider_name: str = "unknown"

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        api_key: str,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.api_key = api_key

        log.info(
            "llm_client_initialized",
            provider=self.provider_name,
            model=self.model,
            timeout=self.timeout,
        )

    @abstractmethod
    def _build_request(
        self, prompt: str, system: Optional[str], temperature: float, max_tokens: int
    ) -> tuple[str, Dict[str, str], Dict[str, Any]]:
        """Return (url, headers, payload) for one completion request."""

    @abstractmethod
    def _parse_response(self, data: Dict[str, Any]) -> tuple[str, Dict[str, int]]:
        """Return (content, usage) from a provider response body."""

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate a completion with one retry on timeout or rate limit.

        Args:
            prompt: User message
            system: Optional system prompt
            temperature: Sampling temperature (defaults to init value)
            max_tokens: Max tokens (defaults to init value)
            timeout: Optional timeout override in seconds

        Returns:
            LLMResponse with content and usage stats

        Raises:
            LLMTimeoutError: After all retries exhausted on timeout
            LLMRateLimitError: After all retries exhausted on rate limit (429)
            httpx.HTTPStatusError: On other API errors (no retry)
        """
        temperature = self.temperature if temperature is None else temperature
        max_tokens = self.max_tokens if max_tokens is None else max_tokens
        timeout = self.timeout if timeout is None else timeout

        url, headers, payload = self._build_request(
            prompt, system, temperature, max_tokens
        )

        for attempt in range(MAX_RETRIES + 1):
            start = time.perf_counter()
            log.debug(
                "llm_call_start",
                provider=self.provider_name,
                model=self.model,
                prompt_length=len(prompt),
                attempt=attempt + 1,
            )

            try:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    data = response.json()

                latency_ms = (time.perf_counter() - start) * 1000
                content, usage = self._parse_response(data)

                log.info(
                    "llm_call_complete",
                    provider=self.provider_name,
                    model=self.model,
                    latency_ms=round(latency_ms, 2),
                    input_tokens=usage.get("input_tokens", 0),
                    output_tokens=usage.get("output_tokens", 0),
                    attempt=attempt + 1,
                )

                return LLMResponse(
                    content=content,
                    model=data.get("model", self.model),
                    usage=usage,
                    latency_ms=latency_ms,
                    raw_response=data,
                )

            except httpx.TimeoutException as e:
                log.warning(
                    "llm_timeout",
                    provider=self.provider_name,
                    attempt=attempt + 1,
                    timeout_seconds=timeout,
                )
                if attempt >= MAX_RETRIES:
                    raise LLMTimeoutError(
                        f"LLM call timed out after {MAX_RETRIES + 1} attempts "
                        f"(timeout={timeout}s)"
                    ) from e

            except httpx.HTTPStatusError as e:
                if e.response.status_code != 429:
                    log.error(
                        "llm_http_error",
                        provider=self.provider_name,
                        status_code=e.response.status_code,
                    )
                    raise
                log.warning(
                    "llm_rate_limit", provider=self.provider_name, attempt=attempt + 1
                )
                if attempt >= MAX_RETRIES:
                    raise LLMRateLimitError(
                        f"Rate limit exceeded after {MAX_RETRIES + 1} attempts"
                    ) from e

            delay = BASE_DELAY_SECONDS * (2**attempt)
            log.info("llm_retry", delay_seconds=delay, next_attempt=attempt + 2)
            await asyncio.sleep(delay)

        # Unreachable: loop either returns LLMResponse or raises an exception
        assert False, "unreachable"


# =============================================================================
# Anthropic Client
# =============================================================================


class AnthropicClient(LLMClient):
    """Anthropic Claude Messages API client."""

    provider_name = "anthropic"
    base_url = "https://api.anthropic.com/v1"

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        api_key: Optional[str] = None,
    ):
        api_key = api_key or settings.anthropic_api_key
        if not api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY not configured. Set it in .env.")
        super().__init__(model, temperature, max_tokens, timeout, api_key)

    def _build_request(self, prompt, system, temperature, max_tokens):
        headers = {
            "x-api-key": self.api_key,
            "content-type": "application/json",
            "anthropic-version": "2023-06-01",
        }
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if system:
            payload["system"] = system
        return f"{self.base_url}/messages", headers, payload

    def _parse_response(self, data):
        content = ""
        if data.get("content"):
            content = data["content"][0].get("text", "")
        usage = {
            "input_tokens": data.get("usage", {}).get("input_tokens", 0),
            "output_tokens": data.get("usage", {}).get("output_tokens", 0),
        }
        return content, usage


# =============================================================================
# DeepSeek Client (OpenAI-compatible)
# =============================================================================


class DeepSeekClient(LLMClient):
    """
    DeepSeek chat-completions client.

    API Docs: https://platform.deepseek.com/api-docs/
    """

    provider_name = "deepseek"
    base_url = "https://api.deepseek.com"

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        api_key: Optional[str] = None,
    ):
        api_key = api_key or settings.deepseek_api_key
        if not api_key:
            raise ConfigurationError("DEEPSEEK_API_KEY not configured. Set it in .env.")
        super().__init__(model, temperature, max_tokens, timeout, api_key)

    def _build_request(self, prompt, system, temperature, max_tokens):
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        return f"{self.base_url}/chat/completions", headers, payload

    def _parse_response(self, data):
        content = ""
        if data.get("choices"):
            content = data["choices"][0].get("message", {}).get("content", "")
        usage = {
            "input_tokens": data.get("usage", {}).get("prompt_tokens", 0),
            "output_tokens": data.get("usage", {}).get("completion_tokens", 0),
        }
        return content, usage


# =============================================================================
# Client Factory
# =============================================================================


def get_matching_llm_client() -> LLMClient:
    """
    Factory for the question-matching LLM client.

    Returns:
        LLMClient configured from MATCHING_DEFAULTS and the provider override

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    provider = settings.llm_matching_provider or MATCHING_DEFAULTS["provider"]
    kwargs = dict(
        temperature=MATCHING_DEFAULTS["temperature"],
        max_tokens=MATCHING_DEFAULTS["max_tokens"],
        timeout=MATCHING_DEFAULTS["timeout"],
    )

    if provider == "anthropic":
        return AnthropicClient(model=PROVIDER_MODELS["anthropic"], **kwargs)
    elif provider == "deepseek":
        return DeepSeekClient(model=PROVIDER_MODELS["deepseek"], **kwargs)
    raise ConfigurationError(
        f"Unknown LLM provider '{provider}' for matching. "
        f"Supported providers: {', '.join(PROVIDER_MODELS)}"
    )
