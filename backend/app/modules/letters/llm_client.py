"""Text-generation provider client.

Talks to an OpenAI-compatible chat completion endpoint (Perplexity by
default). Each call is a single attempt bounded by one timeout.
"""

import asyncio
from typing import Any, Optional

from openai import AsyncOpenAI

from app.core.config import settings


class LLMClientError(Exception):
    """Base exception for text-generation client errors."""
    pass


class ProviderError(LLMClientError):
    """Raised when the provider fails, times out, or returns no text."""
    pass


class LLMClient:
    """Wrapper for an OpenAI-compatible chat completion API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize the client.

        Args:
            api_key: Provider API key. Uses settings if not provided.
            base_url: API base URL. Uses settings if not provided.
            model: Model name. Uses settings if not provided.
            timeout: Seconds allowed for one completion.
        """
        self.api_key = api_key or settings.LLM_API_KEY
        self.base_url = base_url or settings.LLM_BASE_URL
        self.model = model or settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        self.max_tokens = settings.LLM_MAX_TOKENS
        self.timeout = timeout or settings.LLM_TIMEOUT_SECONDS

        if not self.api_key:
            raise LLMClientError("LLM API key not configured")

        # Retries stay with the caller so a request is never billed twice
        self._client = AsyncOpenAI(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.timeout,
            max_retries=0,
        )

    async def complete(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Generate a completion.

        Args:
            prompt: User message
            system_prompt: Optional system message

        Returns:
            str: Generated text (never empty)

        Raises:
            ProviderError: If the call fails, times out, or yields no text
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if self.max_tokens:
            kwargs["max_tokens"] = self.max_tokens

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**kwargs),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise ProviderError(f"Provider timed out after {self.timeout}s") from e
        except Exception as e:
            raise ProviderError(f"Provider API error: {str(e)}") from e

        if not response.choices:
            raise ProviderError("No response generated")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise ProviderError("Provider returned empty content")

        return content


# Singleton instance
_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the LLM client singleton.

    Returns:
        LLMClient: Configured client
    """
    global _client
    if _client is None:
        _client = LLMClient()
    return _client
