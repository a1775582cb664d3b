"""
Groq LLM provider implementation.

Talks to Groq's OpenAI-compatible ``/chat/completions`` endpoint with plain
``httpx`` requests. One request per call; failures surface immediately.
"""

import logging

import httpx

from src.core.config import get_settings
from src.core.exceptions import MalformedResponseError
from src.core.utils import provider_post, require_api_key
from src.services.llm.base import BaseLLM

logger = logging.getLogger(__name__)


class GroqLLM(BaseLLM):
    """Groq chat-completions provider.

    Args:
        api_key: Groq API key (falls back to settings).
        model: Chat model name (falls back to settings).
        base_url: API root, e.g. ``https://api.groq.com/openai/v1``.
        temperature: Default sampling temperature.
        max_tokens: Default completion token limit.
        timeout: Transport timeout in seconds.
        transport: Optional httpx transport (tests inject ``httpx.MockTransport``).
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.groq_api_key
        self._model = model or settings.groq_chat_model
        self._base_url = (base_url or settings.groq_base_url).rstrip("/")
        self._temperature = (
            temperature if temperature is not None else settings.analysis_temperature
        )
        self._max_tokens = max_tokens or settings.analysis_max_tokens
        self._timeout = timeout or settings.request_timeout
        self._transport = transport

    @property
    def model_name(self) -> str:
        return self._model

    async def generate(self, prompt: str, **kwargs) -> str:
        """Send one chat completion request and return the message content."""
        api_key = require_api_key(self._api_key, "GROQ_API_KEY")

        messages: list[dict[str, str]] = []
        system = kwargs.pop("system", None)
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        temperature = kwargs.pop("temperature", None)
        max_tokens = kwargs.pop("max_tokens", None)
        payload = {
            "model": self._model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self._temperature,
            "max_tokens": max_tokens or self._max_tokens,
        }

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await provider_post(
                client,
                f"{self._base_url}/chat/completions",
                provider="Groq",
                headers={"Authorization": f"Bearer {api_key}"},
                json=payload,
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Unexpected Groq completion shape: %s", response.text[:500])
            raise MalformedResponseError(
                detail="Groq returned an unexpected completion payload",
                raw_text=response.text,
            ) from exc
        return content or ""
