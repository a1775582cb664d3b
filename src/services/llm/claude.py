"""
Claude LLM provider implementation.

Uses the Anthropic Python SDK (``anthropic.AsyncAnthropic``) to interact with
the Claude API. SDK exceptions are translated into the application's
provider error types; nothing is retried.
"""

import logging

from anthropic import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncAnthropic,
)

from src.core.config import get_settings
from src.core.exceptions import MalformedResponseError, NetworkError, ProviderError
from src.core.utils import require_api_key
from src.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


class ClaudeLLM(BaseLLM):
    """Claude API LLM provider."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key or settings.claude_api_key
        self._model = model or settings.claude_model
        self._max_tokens = max_tokens or settings.analysis_max_tokens
        self._temperature = (
            temperature if temperature is not None else settings.analysis_temperature
        )
        self._client = AsyncAnthropic(api_key=self._api_key, max_retries=0)

    @property
    def model_name(self) -> str:
        return self._model

    async def generate(self, prompt: str, **kwargs) -> str:
        """Send one message to Claude and return the first text block."""
        require_api_key(self._api_key, "CLAUDE_API_KEY")

        system = kwargs.pop("system", None)
        temperature = kwargs.pop("temperature", None)
        max_tokens = kwargs.pop("max_tokens", None)
        request: dict = {
            "model": self._model,
            "max_tokens": max_tokens or self._max_tokens,
            "temperature": temperature if temperature is not None else self._temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system

        try:
            response = await self._client.messages.create(**request)
        except APITimeoutError as exc:
            logger.warning("Claude API timeout: %s", exc)
            raise NetworkError(detail=f"Claude API request timed out: {exc}") from exc
        except APIConnectionError as exc:
            logger.warning("Claude API connection error: %s", exc)
            raise NetworkError(detail=f"Failed to connect to Claude API: {exc}") from exc
        except APIStatusError as exc:
            body = exc.response.text if exc.response is not None else str(exc)
            logger.error("Claude API error: %s %s", exc.status_code, body[:500])
            raise ProviderError(
                detail=f"Claude API error: {exc.status_code} - {body}",
                provider_status=exc.status_code,
                provider_body=body,
            ) from exc

        if not response.content:
            raise MalformedResponseError(detail="Claude returned no content blocks")
        return response.content[0].text
